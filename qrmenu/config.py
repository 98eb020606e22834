"""Configuration management for QR Menu using Pydantic."""

import logging

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

    # Server Configuration
    server_host: str = Field(default="0.0.0.0", description="Server host")
    server_port: int = Field(default=8080, description="Server port")
    server_url: str = Field(
        default="http://localhost:8080",
        description="Server URL for CLI to connect to API",
    )
    public_base_url: str = Field(
        default="http://localhost:8080",
        description="Base URL of the public diner menu page",
    )

    # Menu Configuration
    default_restaurant_id: str = Field(
        default="ajwa", description="Restaurant shown when no identifier is given"
    )
    default_currency: str = Field(default="USD", description="Fallback currency code")
    price_locale: str = Field(default="en_US", description="Locale for price display")

    # Static menu files
    static_base_url: str = Field(
        default="http://localhost:8080",
        description="Base URL static menu.json files are fetched from",
    )
    static_path_prefixes: list[str] = Field(
        default_factory=lambda: [""],
        description="Deployment sub-path prefixes tried in order",
    )
    restaurants_dir: str = Field(
        default="restaurants",
        description="Directory holding restaurants/<id>/menu.json files",
    )

    # Document store
    store_backend: str = Field(
        default="memory", description="Document store backend: memory or firestore"
    )
    firebase_credentials_path: str | None = Field(
        None, description="Path to a Firebase service account JSON file"
    )
    firebase_project_id: str | None = Field(None, description="Firebase project id")

    # Owner dashboard
    debounce_seconds: float = Field(
        default=0.45, description="Quiet period before a text edit is written"
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")

    def uses_firestore(self) -> bool:
        """Check if the Firestore backend is selected."""
        return self.store_backend.lower() == "firestore"

    def model_post_init(self, __context) -> None:
        """Validate configuration after initialization."""
        if self.uses_firestore() and not self.firebase_credentials_path:
            logger.warning(
                "FIREBASE_CREDENTIALS_PATH not set - using application default credentials"
            )


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
    logging.getLogger("google").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
