"""Cache module for KV-Router."""

from .connections import ConnectionCache

__all__ = ["ConnectionCache"]
