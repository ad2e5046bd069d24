"""
Frame Relay Configuration
=========================

This module handles configuration loading for the relay server.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    PORT                  -> server.port (Render / Cloud Run)
    RELAY_PORT            -> server.port
    RELAY_MAX_BODY_BYTES  -> ingress.max_body_bytes
    RELAY_CORS_ORIGINS    -> cors.allow_origins (comma separated)
    RELAY_LOG_LEVEL       -> logging.level

Example:
    from frame_relay.config import settings

    print(settings.server.port)
    print(settings.ingress.max_body_bytes)
"""

import os
import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ServiceConfig(BaseModel):
    """Service identification reported by GET /."""

    name: str = Field(default="Parking Stream Server", description="Service name")
    version: str = Field(default="1.0.0", description="Service version")


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=10000, ge=1, le=65535, description="Bind port")


class IngressConfig(BaseModel):
    """Frame upload configuration."""

    max_body_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1,
        description="Maximum size of a POST /frame body in bytes",
    )
    log_every_n_frames: int = Field(
        default=30,
        ge=1,
        description="Log a progress line every N ingested frames",
    )


class ViewerConfig(BaseModel):
    """Push channel and viewer page configuration."""

    ws_path: str = Field(
        default="/ws/stream",
        description="WebSocket path viewers connect to",
    )
    outbox_size: int = Field(
        default=1,
        ge=1,
        description="Frames pending per viewer before the oldest is dropped",
    )
    enable_page: bool = Field(
        default=True,
        description="Serve the embedded HTML viewer at /viewer",
    )
    page_title: str = Field(default="Streaming Parking", description="Viewer page title")


class CorsConfig(BaseModel):
    """CORS configuration. Unrestricted by default."""

    allow_origins: List[str] = Field(default_factory=lambda: ["*"])
    allow_methods: List[str] = Field(default_factory=lambda: ["GET", "POST"])


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the frame relay.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    ingress: IngressConfig = Field(default_factory=IngressConfig)
    viewer: ViewerConfig = Field(default_factory=ViewerConfig)
    cors: CorsConfig = Field(default_factory=CorsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path("/app/config.yaml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Server settings (Render and Cloud Run set PORT)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("RELAY_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Ingress settings
    if env_max := os.environ.get("RELAY_MAX_BODY_BYTES"):
        config_data.setdefault("ingress", {})["max_body_bytes"] = int(env_max)

    if env_origins := os.environ.get("RELAY_CORS_ORIGINS"):
        config_data.setdefault("cors", {})["allow_origins"] = [
            origin.strip() for origin in env_origins.split(",") if origin.strip()
        ]

    # Logging settings
    if env_log := os.environ.get("RELAY_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
