"""
Cluster Client

Thin veneer over CommandRouter that exposes store commands as methods:

    with ClusterClient([("127.0.0.1", 7000), ("127.0.0.1", 7001)]) as client:
        client.set("user:{42}:name", "alice")
        client.get("user:{42}:name")
        client.execute("CONFIG", "GET", "maxmemory")

Any attribute that is not defined here is treated as a command name and
upper-cased, so client.hgetall("h") sends HGETALL h.
"""

from typing import Any, Callable, Iterable

from .cluster.router import CommandRouter
from .protocol.commands import StoreClient


class ClusterClient:
    """Cluster-aware client for a hash-slot partitioned store."""

    def __init__(
            self,
            startup_nodes: Iterable[Any],
            max_cached_connections: int = None,
            store_client: StoreClient = None,
    ):
        self.router = CommandRouter(
            startup_nodes,
            max_cached_connections=max_cached_connections,
            store_client=store_client,
        )

    def execute(self, command: str, *args: Any) -> Any:
        """Send one command to the node that owns it and return the reply."""
        return self.router.dispatch(command, args)

    def refresh(self) -> None:
        self.router.refresh()

    def close(self) -> None:
        self.router.close()

    def __getattr__(self, name: str) -> Callable[..., Any]:
        if name.startswith("_"):
            raise AttributeError(name)
        command = name.upper()

        def send(*args: Any) -> Any:
            return self.router.dispatch(command, args)

        send.__name__ = name
        return send

    def __enter__(self) -> "ClusterClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
