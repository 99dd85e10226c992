"""Application configuration.

Environment variables override all defaults. A local .env file next to the
backend directory is loaded when python-dotenv is installed.
"""

import os
from pathlib import Path
from typing import List


# Load .env for local development (safe no-op if not installed)
try:
    from dotenv import load_dotenv  # type: ignore

    _BACKEND_DIR = Path(__file__).resolve().parents[2]
    load_dotenv(dotenv_path=_BACKEND_DIR / ".env", override=False)
except ImportError:
    pass


class Settings:
    # Database Configuration
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./jewelbill.db")

    # CORS (specific origins only, no wildcards)
    CORS_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000",
        ).split(",")
        if origin.strip()
    ]

    # Invoice numbering: INV-MJ + yy + 4-digit sequence
    INVOICE_PREFIX: str = os.getenv("INVOICE_PREFIX", "INV-MJ")

    # Shop defaults, used when the settings row is first created or reset
    DEFAULT_SHOP_NAME: str = os.getenv("DEFAULT_SHOP_NAME", "M J Jewellers")
    DEFAULT_CGST_RATE: float = float(os.getenv("DEFAULT_CGST_RATE", "1.5"))
    DEFAULT_SGST_RATE: float = float(os.getenv("DEFAULT_SGST_RATE", "1.5"))
    DEFAULT_GOLD_RATE: float = float(os.getenv("DEFAULT_GOLD_RATE", "65000"))
    DEFAULT_SILVER_RATE: float = float(os.getenv("DEFAULT_SILVER_RATE", "75000"))
    DEFAULT_PRODUCT_TYPES: List[dict] = [
        {"name": "Gold 24K", "rate_per_ten_gram": 65000},
        {"name": "Gold 22K", "rate_per_ten_gram": 59500},
        {"name": "Gold 18K", "rate_per_ten_gram": 48750},
        {"name": "Silver", "rate_per_ten_gram": 75000},
    ]

    # Due date = invoice date + N days when the caller does not send one
    DEFAULT_PAYMENT_TERMS_DAYS: int = int(os.getenv("DEFAULT_PAYMENT_TERMS_DAYS", "30"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = ENVIRONMENT == "development"


settings = Settings()
