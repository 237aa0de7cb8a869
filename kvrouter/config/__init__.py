"""Configuration module for KV-Router."""

from .settings import Settings, settings, setup_logging

__all__ = ["Settings", "settings", "setup_logging"]
