"""
KV-Router Configuration Settings

This module contains all configuration constants for the cluster router.
Values that operators may want to tune are read from the environment.
"""

import logging
import os
import sys
from dataclasses import dataclass


@dataclass
class Settings:
    """Router configuration settings."""

    # Cluster keyspace
    HASH_SLOTS: int = 16384
    MAX_REDIRECTIONS: int = 16

    # Connection cache settings
    MAX_CACHED_CONNECTIONS: int = int(os.environ.get("KV_ROUTER_MAX_CACHED_CONNECTIONS", "2"))

    # Store client settings
    CONNECT_TIMEOUT: float = float(os.environ.get("KV_ROUTER_CONNECT_TIMEOUT", "5.0"))
    SOCKET_TIMEOUT: float = float(os.environ.get("KV_ROUTER_SOCKET_TIMEOUT", "5.0"))
    PROBE_TOKEN: str = "PONG"

    # Logging settings
    DEBUG: bool = os.environ.get("KV_ROUTER_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("KV_ROUTER_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()


def setup_logging(debug: bool = None) -> None:
    """
    Configure root logging for applications embedding the router.

    The library itself never installs handlers; call this from the
    application entry point if plain stdout logging is wanted.

    Args:
        debug: Force DEBUG level (default from settings.DEBUG)
    """
    if debug is None:
        debug = settings.DEBUG
    level = logging.DEBUG if debug else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )
