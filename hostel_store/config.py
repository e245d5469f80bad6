from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./hostel_store.db"

    # JWT Authentication
    SECRET_KEY: str = "change-this-in-production-secret-key-12345"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Application
    APP_NAME: str = "Hostel Store"
    APP_VERSION: str = "1.0.0"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["*"]  # Restrict in production

    # Password security
    BCRYPT_ROUNDS: int = 12

    # Bootstrap admin, created only when the users table is empty
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_PASSWORD: str = "admin123"

    # Store behaviour
    DEFAULT_CATEGORIES: List[str] = ["food", "stationery", "daily-use", "pooja"]
    DEFAULT_LOW_STOCK_THRESHOLD: int = 10
    INVENTORY_LOG_PAGE_SIZE: int = 100
    RECENT_TRANSACTIONS_LIMIT: int = 5
    ENFORCE_CATALOG_PRICE: bool = False

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()
