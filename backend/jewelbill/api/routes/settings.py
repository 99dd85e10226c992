"""Shop settings: shop info, tax rates, metal rates, product types."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from jewelbill.api.deps import get_db
from jewelbill.core.audit import AuditLog
from jewelbill.schemas.settings import (
    MetalRatesUpdate,
    ProductTypesUpdate,
    SettingsResponse,
    SettingsUpdate,
    ShopInfoUpdate,
    TaxConfigUpdate,
)
from jewelbill.services import settings_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _save(db: Session, section: str, values: dict) -> SettingsResponse:
    logger.info(f"[SETTINGS] Update {section}: {sorted(k for k, v in values.items() if v is not None)}")
    shop = settings_service.update_shop_settings(db, values)
    AuditLog.log_action("update", "settings", shop.id, changes={"section": section})
    return shop


@router.get("", response_model=SettingsResponse)
def get_settings(db: Session = Depends(get_db)):
    return settings_service.get_shop_settings(db)


@router.put("", response_model=SettingsResponse)
def update_settings(data: SettingsUpdate, db: Session = Depends(get_db)):
    return _save(db, "all", data.model_dump())


@router.patch("/shop-info", response_model=SettingsResponse)
def update_shop_info(data: ShopInfoUpdate, db: Session = Depends(get_db)):
    return _save(db, "shop_info", data.model_dump())


@router.patch("/tax", response_model=SettingsResponse)
def update_tax_config(data: TaxConfigUpdate, db: Session = Depends(get_db)):
    return _save(db, "tax", data.model_dump())


@router.patch("/metal-rates", response_model=SettingsResponse)
def update_metal_rates(data: MetalRatesUpdate, db: Session = Depends(get_db)):
    return _save(db, "metal_rates", data.model_dump())


@router.put("/product-types", response_model=SettingsResponse)
def update_product_types(data: ProductTypesUpdate, db: Session = Depends(get_db)):
    return _save(db, "product_types", data.model_dump())


@router.post("/reset", response_model=SettingsResponse)
def reset_settings(db: Session = Depends(get_db)):
    shop = settings_service.reset_shop_settings(db)
    AuditLog.log_action("reset", "settings", shop.id)
    return shop
