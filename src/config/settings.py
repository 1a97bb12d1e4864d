"""Job configuration: init kwargs > environment > .env > configs/job.yaml."""

from typing import Literal, Optional, Tuple, Type

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

CONFIG_PATH = "configs/job.yaml"


class Settings(BaseSettings):
    """Settings for one products import run."""

    model_config = SettingsConfigDict(
        env_prefix="CATALOG_IMPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        yaml_file=CONFIG_PATH,
        extra="ignore",
    )

    # Catalog service
    project_key: str = ""
    client_id: str = ""
    client_secret: str = ""
    scope: Optional[str] = None
    api_url: str = "https://api.europe-west1.gcp.commercetools.com"
    auth_url: str = "https://auth.europe-west1.gcp.commercetools.com"

    # Record source
    products_resource: str = "data/products.csv"
    max_products: int = Field(1000, ge=0)
    primary_locale: str = "en"
    secondary_locale: str = "de"

    # Chunking
    chunk_size: int = Field(20, ge=1)
    publish_chunk_size: int = Field(20, ge=1)

    # Reference data natural keys
    customer_group_name: str = "b2b"
    tax_category_name: str = "standard"

    # Blocking waits (seconds)
    customer_group_timeout: float = 30
    tax_category_timeout: float = 30
    category_load_timeout: float = 180
    product_types_timeout: float = 30
    product_create_timeout: float = 30
    publish_timeout: float = 60

    # Retry policy; 1 attempt means fail fast
    max_attempts: int = Field(1, ge=1)
    retry_backoff_seconds: float = 1.0

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "console"] = "console"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
