"""Application configuration."""

from decimal import Decimal
from os import getenv

from pydantic import BaseModel


class Settings(BaseModel):
    """Runtime settings for the application."""

    app_name: str = "storefront API"
    app_env: str = getenv("APP_ENV", "dev")
    debug: bool = getenv("DEBUG", "0") == "1"
    database_url: str = getenv("DATABASE_URL", "sqlite:///./storefront.db")
    order_tax_rate: Decimal = Decimal(getenv("ORDER_TAX_RATE", "0.0825"))
    default_actor: str = getenv("DEFAULT_ACTOR", "system")
    log_level: str = getenv("LOG_LEVEL", "INFO")
    log_json: bool = getenv("LOG_JSON", "0") == "1"
    seed_demo_data: bool = getenv("SEED_DEMO_DATA", "0") == "1"
    default_page_size: int = int(getenv("DEFAULT_PAGE_SIZE", "10"))
    max_page_size: int = int(getenv("MAX_PAGE_SIZE", "100"))


settings: Settings = Settings()
