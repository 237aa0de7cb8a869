"""
KV-Router: Cluster-Aware Command Routing

Routes commands for a hash-slot partitioned key-value store (16384
slots, Redis Cluster compatible) to the node that owns each key,
following MOVED/ASK redirections and caching a bounded number of
node connections.
"""

from .client import ClusterClient
from .cluster.router import CommandRouter
from .protocol.errors import (
    ClusterError,
    NodeConnectionError,
    NoAvailableNode,
    RedirectionLimitExceeded,
    ReplyError,
    StartupFailure,
)

__version__ = "1.0.0"

__all__ = [
    "ClusterClient",
    "CommandRouter",
    "ClusterError",
    "NodeConnectionError",
    "NoAvailableNode",
    "RedirectionLimitExceeded",
    "ReplyError",
    "StartupFailure",
]
