"""
Service configuration

All settings come from environment variables; a local .env file is loaded
first so development setups only need to fill that file in.
"""

import os
from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()


class Settings(BaseSettings):
    # Google service account (file path or inline JSON payload)
    GOOGLE_SERVICE_ACCOUNT_FILE: str = "service-account.json"
    GOOGLE_SERVICE_ACCOUNT_JSON: str = ""

    # Invoice template document and destination Drive folder
    INVOICE_TEMPLATE_ID: str = ""
    INVOICE_FOLDER_ID: str = ""
    INVOICE_DATE_FORMAT: str = "%d/%m/%Y"

    # Access code for the shop screens (not a security boundary)
    ACCESS_PASSWORD: str = ""

    # Document store; empty Supabase settings fall back to local JSON files
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""
    LOCAL_DATA_DIR: str = "./shop_data"

    # WhatsApp hand-off
    SHOP_NAME: str = "Shree Designer"
    DEFAULT_COUNTRY_CODE: str = "+91"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ALLOW_ORIGINS: str = "*"

    # Other
    LOG_LEVEL: str = "INFO"

    @property
    def has_service_account(self) -> bool:
        """True when either an inline key or an existing key file is configured"""
        if self.GOOGLE_SERVICE_ACCOUNT_JSON.strip():
            return True
        return bool(self.GOOGLE_SERVICE_ACCOUNT_FILE) and os.path.exists(self.GOOGLE_SERVICE_ACCOUNT_FILE)

    @property
    def invoice_configured(self) -> bool:
        return self.has_service_account and bool(self.INVOICE_TEMPLATE_ID) and bool(self.INVOICE_FOLDER_ID)

    @property
    def uses_supabase(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_ANON_KEY)

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ALLOW_ORIGINS.split(",") if origin.strip()]


settings = Settings()


def get_settings() -> Settings:
    """Get the process-wide settings instance"""
    return settings
