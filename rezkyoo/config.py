"""Configuration management for RezKyoo using Pydantic."""

import logging
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Call mode and MCP backend
    rezkyoo_call_mode: Literal["live", "simulate"] = Field(
        default="live", description="Forward calls to MCP (live) or simulate them"
    )
    rezkyoo_mcp_base_url: str | None = Field(
        None, description="Base URL of the MCP restaurant-calling server"
    )
    rezkyoo_mcp_timeout: float = Field(
        default=60.0, description="Timeout in seconds for MCP requests"
    )
    rezkyoo_disable_auth: bool = Field(
        default=False, description="Treat every request as the dev user"
    )
    rezkyoo_sim_max_duration_ms: int | None = Field(
        None,
        description="Maximum synthetic call duration before an item times out",
    )

    # Paywall
    paywall_token_secret: str | None = Field(
        None, description="HMAC secret used to sign paid tokens"
    )
    paid_token_ttl_seconds: int = Field(
        default=2 * 60 * 60, description="Lifetime of a paid token cookie"
    )

    # PayPal Configuration
    paypal_env: Literal["sandbox", "live"] = Field(
        default="sandbox", description="PayPal environment"
    )
    paypal_client_id: str | None = Field(None, description="PayPal client ID")
    paypal_client_secret: str | None = Field(None, description="PayPal client secret")

    # Firebase Configuration
    firebase_project_id: str | None = Field(None, description="Firebase project ID")
    firebase_client_email: str | None = Field(
        None, description="Service account client email"
    )
    firebase_private_key: str | None = Field(
        None, description="Service account private key (\\n escaped)"
    )
    google_application_credentials: str | None = Field(
        None, description="Path to a service account JSON file"
    )

    # Google Places
    google_maps_api_key: str | None = Field(None, description="Google Maps API key")

    # Contact form
    resend_api_key: str | None = Field(None, description="Resend API key")
    contact_to_email: str = Field(
        default="support@rezkyoo.com", description="Contact form recipient"
    )
    contact_from_email: str = Field(
        default="RezKyoo Support <support@contact.rezkyoo.com>",
        description="Contact form sender",
    )
    contact_form_webhook_url: str | None = Field(
        None, description="Fallback webhook for contact form submissions"
    )

    # Twilio Configuration (SMS notifications)
    twilio_account_sid: str | None = Field(None, description="Twilio account SID")
    twilio_auth_token: str | None = Field(None, description="Twilio auth token")
    twilio_phone_number: str | None = Field(None, description="Twilio phone number")

    # Server Configuration
    server_host: str = Field(default="0.0.0.0", description="Server host")
    server_port: int = Field(default=8080, description="Server port")
    server_url: str = Field(
        default="http://localhost:8080",
        description="Server URL for CLI to connect to API",
    )
    rezkyoo_id_token: str | None = Field(
        None, description="Firebase ID token the CLI sends as a bearer token"
    )
    environment: str = Field(
        default="development", description="development or production"
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")

    @property
    def simulate_calls(self) -> bool:
        """Whether call-related routes use the simulation engine."""
        return self.rezkyoo_call_mode == "simulate"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def paypal_api_base(self) -> str:
        if self.paypal_env == "live":
            return "https://api-m.paypal.com"
        return "https://api-m.sandbox.paypal.com"

    def has_twilio_config(self) -> bool:
        """Check if Twilio is properly configured."""
        return bool(
            self.twilio_account_sid
            and self.twilio_auth_token
            and self.twilio_phone_number
        )

    def has_paypal_config(self) -> bool:
        return bool(self.paypal_client_id and self.paypal_client_secret)

    def model_post_init(self, __context) -> None:
        """Validate configuration after initialization."""
        if not self.simulate_calls and not self.rezkyoo_mcp_base_url:
            logger.warning("REZKYOO_MCP_BASE_URL not set - live call routes will fail")

        if not self.paywall_token_secret:
            logger.warning("PAYWALL_TOKEN_SECRET not set - paid tokens disabled")

        if not self.has_paypal_config():
            logger.warning("PayPal credentials not set - PayPal checkout disabled")

        if not self.has_twilio_config():
            logger.warning("Twilio not configured - SMS notifications disabled")


# Global config instance
config: Config | None = None


def get_config() -> Config:
    """Get or create the global configuration instance."""
    global config
    if config is None:
        config = Config()
    return config


def setup_logging(cfg: Config | None = None) -> None:
    """Configure logging for the application."""
    if cfg is None:
        cfg = get_config()

    log_level = getattr(logging, cfg.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from external libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("twilio").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)
