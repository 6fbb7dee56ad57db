from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./attractions.db"
    DATABASE_ECHO: bool = False

    # Security
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Approval tokens (libsodium secretbox key, hex encoded)
    APPROVAL_SECRET_KEY: Optional[str] = None
    APPROVAL_LINK_BASE_URL: str = "https://api.lakbayhub.com/home"
    APPROVAL_CACHE_MINUTES: int = 15

    # Application
    PROJECT_NAME: str = "Attractions Reseller API"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Vendor API
    VENDOR_DEV_BASE_URL: str = "https://stg-api.globaltix.com/api"
    VENDOR_PROD_BASE_URL: str = "https://sg-api.globaltix.com/api"
    VENDOR_USERNAME: Optional[str] = None
    VENDOR_PASSWORD: Optional[str] = None
    VENDOR_DEV_USERNAME: Optional[str] = None
    VENDOR_DEV_PASSWORD: Optional[str] = None
    API_TIMEOUT: float = 30.0

    # Currency
    DEFAULT_CURRENCY: str = "PHP"
    EXCHANGERATE_API_URL: str = "https://api.exchangeratesapi.io/v1/convert"
    EXCHANGERATE_API_KEY: Optional[str] = None
    CURRENCY_MARKUP: float = 0.02
    CURRENCY_CACHE_TTL: int = 3600
    BOOKING_ROUNDING: str = "half_up"
    PRODUCT_ROUNDING: str = "ceiling"

    # Email (AWS SES)
    AWS_SES_KEY: Optional[str] = None
    AWS_SES_SECRET: Optional[str] = None
    AWS_SES_REGION: str = "ap-southeast-1"
    SUPPORT_EMAIL: str = "support@lakbayhub.com"
    SUPPORT_FROM_NAME: str = "LakbayHub"
    BCC_EMAILS: List[str] = ["tech@lakbayhub.com"]

    # Wallet
    ATOMIC_BALANCE_DEBIT: bool = False

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def vendor_base_url(self) -> str:
        return self.VENDOR_PROD_BASE_URL if self.is_production else self.VENDOR_DEV_BASE_URL

    @property
    def vendor_credentials(self) -> dict:
        if self.is_production:
            return {"username": self.VENDOR_USERNAME, "password": self.VENDOR_PASSWORD}
        return {"username": self.VENDOR_DEV_USERNAME, "password": self.VENDOR_DEV_PASSWORD}

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
