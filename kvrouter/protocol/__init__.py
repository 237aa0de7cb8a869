"""Protocol module for KV-Router."""

from .commands import (
    KEYLESS_COMMANDS,
    Connection,
    Redirection,
    RedirectionType,
    StoreClient,
    extract_key,
)
from .errors import (
    ClusterError,
    NodeConnectionError,
    NoAvailableNode,
    RedirectionLimitExceeded,
    ReplyError,
    StartupFailure,
)
from .parser import NodeRecord, ReplyParser, SlotRecord

__all__ = [
    "KEYLESS_COMMANDS",
    "Connection",
    "Redirection",
    "RedirectionType",
    "StoreClient",
    "extract_key",
    "ClusterError",
    "NodeConnectionError",
    "NoAvailableNode",
    "RedirectionLimitExceeded",
    "ReplyError",
    "StartupFailure",
    "NodeRecord",
    "ReplyParser",
    "SlotRecord",
]
