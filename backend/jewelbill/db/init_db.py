"""Create all tables and the shop settings row. Run on app startup."""
import logging

from jewelbill.db.base import Base
from jewelbill.db.session import engine, SessionLocal
from jewelbill import models  # noqa: F401 - register models
from jewelbill.services.settings_service import get_shop_settings

logger = logging.getLogger(__name__)


def init_db(bind=None):
    bind = bind or engine
    Base.metadata.create_all(bind=bind)

    db = SessionLocal(bind=bind)
    try:
        shop = get_shop_settings(db)
        logger.info(f"Shop settings ready: {shop.shop_name}")
    finally:
        db.close()
