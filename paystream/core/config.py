from typing import Optional, Tuple
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class MerchantConfig(BaseModel):
    """Apple Pay merchant identity used for session validation"""
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    merchant_id: Optional[str] = None
    domain: Optional[str] = None
    display_name: Optional[str] = None
    cert_path: Optional[str] = None
    timeout: float = 10.0
    allowed_hosts: Tuple[str, ...] = ()

    @property
    def is_complete(self) -> bool:
        """True when every merchant field is present and non-empty"""
        return all([self.merchant_id, self.domain, self.display_name, self.cert_path])

    def allows_url(self, url: str) -> bool:
        """Check a validation URL against the host allow-list (empty list allows all)"""
        if not self.allowed_hosts:
            return True
        host = (urlsplit(url).hostname or "").lower()
        return host in self.allowed_hosts


class Settings(BaseSettings):
    # Server Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 5050
    RELOAD: bool = False
    # Grace period for open connections (live streams) on shutdown
    SHUTDOWN_TIMEOUT_SECONDS: float = 5.0

    # Largest accepted request body
    MAX_BODY_BYTES: int = 256 * 1024

    # Logging
    LOG_LEVEL: str = "INFO"

    # CORS (comma separated list, "*" for any origin)
    CORS_ORIGIN: str = "*"

    # Apple Pay merchant validation
    APPLE_PAY_ENABLED: bool = False
    MERCHANT_ID: Optional[str] = None
    MERCHANT_DOMAIN: Optional[str] = None
    MERCHANT_DISPLAY_NAME: Optional[str] = None
    MERCHANT_CERT_PATH: Optional[str] = None  # PEM containing cert + private key
    APPLE_PAY_ALLOWED_HOSTS: str = ""

    # Outbound API timeout (in seconds)
    API_TIMEOUT: float = 10.0

    # Live payment stream
    SSE_KEEPALIVE_SECONDS: float = 25.0
    SSE_QUEUE_SIZE: int = 100
    SSE_MAX_SUBSCRIBERS: int = 0  # 0 = unlimited

    # Payments
    PAYMENTS_DEFAULT_LIMIT: int = 25
    PAYMENTS_MAX_LIMIT: int = 200
    PAYMENT_MAX_AMOUNT: float = 5000
    SEED_DEMO_PAYMENTS: bool = True

    # Rate limiting for /api/ routes
    RATE_LIMIT_WINDOW_SECONDS: int = 60
    RATE_LIMIT_MAX_REQUESTS: int = 120

    @property
    def cors_origins(self) -> list[str]:
        """Allowed CORS origins"""
        return [origin.strip() for origin in self.CORS_ORIGIN.split(",") if origin.strip()]

    @property
    def merchant(self) -> MerchantConfig:
        """Merchant configuration handed to the session validator"""
        hosts = tuple(
            host.strip().lower()
            for host in self.APPLE_PAY_ALLOWED_HOSTS.split(",")
            if host.strip()
        )
        return MerchantConfig(
            enabled=self.APPLE_PAY_ENABLED,
            merchant_id=self.MERCHANT_ID,
            domain=self.MERCHANT_DOMAIN,
            display_name=self.MERCHANT_DISPLAY_NAME,
            cert_path=self.MERCHANT_CERT_PATH,
            timeout=self.API_TIMEOUT,
            allowed_hosts=hosts,
        )

    # Pydantic Settings Config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )


settings = Settings()
