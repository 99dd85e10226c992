from pydantic import BaseModel, Field, field_validator
from typing import List, Optional


class ProductTypeSchema(BaseModel):
    name: str
    rate_per_ten_gram: float = Field(..., ge=0)

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Product type name is required")
        return v

    class Config:
        from_attributes = True
        allow_inf_nan = False


class SettingsResponse(BaseModel):
    shop_name: str
    address: str
    phone: str
    email: str
    gst_number: str
    logo: str
    cgst_rate: float
    sgst_rate: float
    gold_rate: float
    silver_rate: float
    product_types: List[ProductTypeSchema]

    class Config:
        from_attributes = True


class ShopInfoUpdate(BaseModel):
    shop_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    gst_number: Optional[str] = None
    logo: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("gst_number")
    @classmethod
    def normalize_gst_number(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if isinstance(v, str) else v


class TaxConfigUpdate(BaseModel):
    cgst_rate: Optional[float] = Field(None, ge=0, le=100)
    sgst_rate: Optional[float] = Field(None, ge=0, le=100)

    class Config:
        allow_inf_nan = False


class MetalRatesUpdate(BaseModel):
    gold_rate: Optional[float] = Field(None, ge=0)
    silver_rate: Optional[float] = Field(None, ge=0)

    class Config:
        allow_inf_nan = False


class ProductTypesUpdate(BaseModel):
    product_types: List[ProductTypeSchema]


class SettingsUpdate(ShopInfoUpdate, TaxConfigUpdate, MetalRatesUpdate):
    product_types: Optional[List[ProductTypeSchema]] = None
