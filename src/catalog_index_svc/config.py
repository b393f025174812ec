"""Configuration for the catalog index service."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .ids import CATALOGS_ROOT_ID


logger = logging.getLogger(__name__)

# Environment variable pointing at a YAML/JSON config file
CONFIG_ENV_VAR = "CATALOG_INDEX_CONFIG"


@dataclass
class ServerConfig:
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = 8060
    reload: bool = False


@dataclass
class CommerceConfig:
    """Connection settings for the Commerce Engine services."""
    shops_service_url: str = "https://localhost:5000/api/"
    ops_service_url: str = "https://localhost:5000/commerceops/"

    # Sent as request headers on every call
    default_shop_name: str = "Storefront"
    default_shop_currency: str = "USD"
    default_environment: str = "HabitatAuthoring"
    default_language: str = "en-US"

    # Client certificate, either inline (base64) or read from a file
    certificate: str | None = None
    certificate_path: str | None = None
    certificate_header_name: str = "X-CommerceEngineCert"

    # 0 = no timeout
    request_timeout_seconds: float = 180.0

    def get_certificate(self) -> str | None:
        """Return the certificate header value, if one is configured."""
        if self.certificate:
            return self.certificate
        if self.certificate_path:
            path = Path(self.certificate_path)
            if not path.exists():
                logger.warning(f"Commerce certificate file not found: {path}")
                return None
            return path.read_text(encoding="utf-8").strip() or None
        return None


@dataclass
class MappingConfig:
    """Parent index configuration."""
    # Catalog items requested per page
    page_size: int = 100

    # Container every top-level catalog is linked under
    catalogs_root_id: str = CATALOGS_ROOT_ID

    # Build the index during startup instead of on the first lookup
    warm_on_startup: bool = False


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class Config:
    """Main configuration container."""
    server: ServerConfig = field(default_factory=ServerConfig)
    commerce: CommerceConfig = field(default_factory=CommerceConfig)
    mapping: MappingConfig = field(default_factory=MappingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict) -> Config:
        """Create config from dictionary."""
        return cls(
            server=ServerConfig(**data.get("server", {})),
            commerce=CommerceConfig(**data.get("commerce", {})),
            mapping=MappingConfig(**data.get("mapping", {})),
            logging=LoggingConfig(**data.get("logging", {})),
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> Config:
        """Load config from YAML file."""
        import yaml
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_json(cls, path: str | Path) -> Config:
        """Load config from JSON file."""
        import json
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: str | Path) -> Config:
        """Load config from a YAML or JSON file, chosen by suffix."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        if path.suffix in (".yaml", ".yml"):
            return cls.from_yaml(path)
        return cls.from_json(path)


def load_config(path: str | Path | None = None) -> Config:
    """
    Locate and load the service configuration.

    Lookup order:
    1. Explicit path argument
    2. CATALOG_INDEX_CONFIG environment variable
    3. config.yaml in the working directory
    4. Built-in defaults
    """
    candidate = path or os.environ.get(CONFIG_ENV_VAR)
    if candidate:
        logger.info(f"Loading config from {candidate}")
        return Config.from_file(candidate)

    local = Path("config.yaml")
    if local.exists():
        logger.info(f"Loading config from {local.resolve()}")
        return Config.from_yaml(local)

    logger.info("No config file found, using defaults")
    return Config()
