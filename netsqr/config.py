"""
NETS QR Configuration Module

Loads environment variables for the transaction service.
"""
from pydantic_settings import BaseSettings
from typing import Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Notes:
    - NETS credentials are injected by the host environment (NETS_CLIENT_ID,
      NETS_CLIENT_SECRET); the service never generates them
    - Terminal, merchant and institution identifiers default to the UAT values
    """

    # NETS Credentials
    nets_client_id: str = ""
    nets_client_secret: str = ""

    # NETS Gateway
    nets_gateway_base_url: str = "https://uat-api.nets.com.sg/uat/merchantservices/qr/dynamic/v1"
    nets_callback_url: str = "https://localhost:8000/api/nets/callback"
    gateway_timeout_seconds: float = 30.0

    # Merchant identity (fixed per deployment)
    nets_terminal_id: str = "37066801"
    nets_merchant_id: str = "11137066800"
    nets_institution_code: str = "20000000001"

    # Order amount charged by the no-argument create call
    order_amount_cents: int = 100

    # Demo Configuration
    demo_mode: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Database
    database_path: str = "./netsqr.db"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
