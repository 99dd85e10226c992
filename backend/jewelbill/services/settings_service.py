"""Shop settings: the single settings row, its tax rates and product type rates."""
import logging
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from jewelbill.core.config import settings as app_settings
from jewelbill.models.shop_settings import ShopSettings, ProductType
from jewelbill.services.invoice_calculator import TaxSettings, quantize_money

logger = logging.getLogger(__name__)

SHOP_INFO_FIELDS = ("shop_name", "address", "phone", "email", "gst_number", "logo")
TAX_FIELDS = ("cgst_rate", "sgst_rate")
METAL_RATE_FIELDS = ("gold_rate", "silver_rate")


def _default_product_types() -> list:
    return [
        ProductType(position=i, name=p["name"], rate_per_ten_gram=quantize_money(p["rate_per_ten_gram"]))
        for i, p in enumerate(app_settings.DEFAULT_PRODUCT_TYPES)
    ]


def _apply_defaults(shop: ShopSettings) -> None:
    shop.shop_name = app_settings.DEFAULT_SHOP_NAME
    shop.address = ""
    shop.phone = ""
    shop.email = ""
    shop.gst_number = ""
    shop.logo = ""
    shop.cgst_rate = quantize_money(app_settings.DEFAULT_CGST_RATE)
    shop.sgst_rate = quantize_money(app_settings.DEFAULT_SGST_RATE)
    shop.gold_rate = quantize_money(app_settings.DEFAULT_GOLD_RATE)
    shop.silver_rate = quantize_money(app_settings.DEFAULT_SILVER_RATE)
    shop.product_types = _default_product_types()


def get_shop_settings(db: Session) -> ShopSettings:
    """Return the settings row, creating it with defaults on first access."""
    shop = db.query(ShopSettings).order_by(ShopSettings.id).first()
    if shop:
        return shop
    shop = ShopSettings()
    _apply_defaults(shop)
    db.add(shop)
    db.commit()
    db.refresh(shop)
    logger.info("[SETTINGS] Created default shop settings")
    return shop


def _set_fields(shop: ShopSettings, values: dict, fields: Iterable[str]) -> None:
    for field in fields:
        value = values.get(field)
        if value is None:
            continue
        if field in TAX_FIELDS or field in METAL_RATE_FIELDS:
            value = quantize_money(value)
        setattr(shop, field, value)


def replace_product_types(shop: ShopSettings, product_types: Iterable[dict]) -> None:
    shop.product_types = [
        ProductType(position=i, name=p["name"], rate_per_ten_gram=quantize_money(p["rate_per_ten_gram"]))
        for i, p in enumerate(product_types)
    ]


def update_shop_settings(db: Session, values: dict) -> ShopSettings:
    """Patch any settings field; None values are left unchanged."""
    shop = get_shop_settings(db)
    if values.get("shop_name") == "":
        values = {**values, "shop_name": None}
    _set_fields(shop, values, SHOP_INFO_FIELDS + TAX_FIELDS + METAL_RATE_FIELDS)
    if values.get("product_types") is not None:
        replace_product_types(shop, values["product_types"])
    db.commit()
    db.refresh(shop)
    return shop


def reset_shop_settings(db: Session) -> ShopSettings:
    shop = get_shop_settings(db)
    _apply_defaults(shop)
    db.commit()
    db.refresh(shop)
    logger.info("[SETTINGS] Reset shop settings to defaults")
    return shop


def tax_settings_for(shop: ShopSettings, cgst_rate=None, sgst_rate=None) -> TaxSettings:
    """Explicit rates win; missing ones come from the shop settings."""
    return TaxSettings.of(
        cgst_rate if cgst_rate is not None else shop.cgst_rate,
        sgst_rate if sgst_rate is not None else shop.sgst_rate,
    )


def product_rate(shop: ShopSettings, product_type: Optional[str]) -> Optional[Decimal]:
    """Rate per 10 g for a product type name (case-insensitive), None if unknown."""
    if not product_type:
        return None
    wanted = product_type.strip().lower()
    for p in shop.product_types:
        if p.name.strip().lower() == wanted:
            return quantize_money(p.rate_per_ten_gram)
    return None
