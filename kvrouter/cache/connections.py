"""
Connection Cache Module

Bounded pool of live per-node connections with FIFO eviction.

FIFO Concept:
- Connections are kept in an OrderedDict keyed by node name
- New connections are inserted at the END
- Reusing a cached connection does NOT change its position
- On eviction, the connection at the BEGINNING (oldest insert) is
  removed and closed

Every connection that leaves the cache is closed exactly once.
"""

import logging
import random
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..cluster.nodes import Node
from ..config.settings import settings
from ..protocol.commands import Connection, StoreClient
from ..protocol.errors import NoAvailableNode, NodeConnectionError, ReplyError

logger = logging.getLogger(__name__)


class ConnectionCache:
    """
    FIFO-bounded cache of node connections.

    Usage:
        cache = ConnectionCache(store_client, max_size=2)
        conn = cache.get_or_create(node)          # probe, reconnect if stale
        conn = cache.get_random(registry.nodes())  # any healthy node
        cache.close_all()

    Attributes:
        store_client: Factory used to open new connections
        max_size: Maximum number of cached connections
    """

    def __init__(self, store_client: StoreClient, max_size: int = None):
        """
        Initialize the connection cache.

        Args:
            store_client: Factory for node connections
            max_size: Maximum cached connections (default from
                settings.MAX_CACHED_CONNECTIONS)

        Raises:
            ValueError: If max_size is not positive
        """
        max_size = max_size if max_size is not None else settings.MAX_CACHED_CONNECTIONS
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self.store_client = store_client
        self.max_size = max_size
        self.probe_token = settings.PROBE_TOKEN
        self._connections: "OrderedDict[str, Connection]" = OrderedDict()
        self._evictions = 0

    def get_or_create(self, node: Node) -> Connection:
        """
        Return the cached connection for node, opening one on a miss.

        A cached connection that fails the liveness probe is closed and
        replaced by a fresh one.

        Args:
            node: The node to connect to

        Returns:
            A live connection

        Raises:
            NodeConnectionError: If connecting or the liveness probe fails;
                the caller should fall back to get_random()
        """
        connection = self._connections.get(node.name)
        if connection is not None:
            if self._probe(connection):
                return connection
            logger.warning(f"Cached connection to {node} failed its probe, reconnecting")
            self.discard(node)

        connection = self._open(node)
        self._insert(node.name, connection)
        return connection

    def get_random(self, known_nodes: Iterable[Node]) -> Connection:
        """
        Return a healthy connection to any of the given nodes.

        Nodes are tried in random order. Cached connections are reused if
        they still answer the probe; otherwise a fresh connection is made.

        Args:
            known_nodes: Candidate nodes

        Returns:
            The first healthy connection found

        Raises:
            NoAvailableNode: If no node produced a healthy connection
        """
        _, connection = self.choose_random(known_nodes)
        return connection

    def choose_random(self, known_nodes: Iterable[Node]) -> Tuple[Node, Connection]:
        """Like get_random(), but also return the node that was picked."""
        candidates = list(known_nodes)
        random.shuffle(candidates)

        for node in candidates:
            cached = self._connections.get(node.name)
            if cached is not None:
                if self._probe(cached):
                    return node, cached
                logger.warning(f"Cached connection to {node} failed its probe")
                self.discard(node)

            try:
                connection = self._open(node)
            except NodeConnectionError as e:
                logger.debug(f"Skipping {node} during random selection: {e}")
                continue

            self._insert(node.name, connection)
            return node, connection

        raise NoAvailableNode(
            f"failed to get a connection to any of {len(candidates)} known nodes"
        )

    def discard(self, node: Node) -> bool:
        """
        Close and drop the cached connection for node.

        Returns:
            True if a connection was dropped, False if none was cached
        """
        connection = self._connections.pop(node.name, None)
        if connection is None:
            return False
        self._close(node.name, connection)
        return True

    def close_all(self) -> None:
        """Close and remove every cached connection. Safe to call twice."""
        while self._connections:
            name, connection = self._connections.popitem(last=False)
            self._close(name, connection)

    def _open(self, node: Node) -> Connection:
        try:
            connection = self.store_client.connect(node.host, node.port)
        except ConnectionError as e:
            raise NodeConnectionError(f"cannot connect to {node}: {e}") from e

        if self._probe(connection):
            return connection

        self._close(node.name, connection)
        raise NodeConnectionError(f"{node} did not answer the liveness probe")

    def _probe(self, connection: Connection) -> bool:
        try:
            return connection.ping() == self.probe_token
        except (ConnectionError, ReplyError):
            return False

    def _insert(self, name: str, connection: Connection) -> None:
        while len(self._connections) >= self.max_size:
            oldest_name, oldest = self._connections.popitem(last=False)
            self._evictions += 1
            logger.debug(f"Connection cache full, evicting {oldest_name}")
            self._close(oldest_name, oldest)

        self._connections[name] = connection
        logger.debug(f"Cached connection to {name} ({len(self._connections)}/{self.max_size})")

    def _close(self, name: str, connection: Connection) -> None:
        try:
            connection.close()
        except ConnectionError as e:
            logger.debug(f"Error closing connection to {name}: {e}")

    def get(self, node: Node) -> Optional[Connection]:
        """Return the cached connection for node without connecting."""
        return self._connections.get(node.name)

    def names(self) -> List[str]:
        """Cached node names, oldest insert first."""
        return list(self._connections.keys())

    def size(self) -> int:
        """Get current number of cached connections."""
        return len(self._connections)

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, item: Any) -> bool:
        name = item.name if isinstance(item, Node) else item
        return name in self._connections

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        return {
            "size": len(self._connections),
            "max_size": self.max_size,
            "evictions": self._evictions,
            "nodes": self.names(),
        }
