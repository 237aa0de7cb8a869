"""
Cluster Router Module

Routes commands to the node that owns their key's hash slot and follows
the cluster's redirection protocol:

- MOVED <slot> <host:port>: the slot has a new owner. The slot table is
  patched immediately and a full topology refresh is scheduled for the
  start of the next dispatch.
- ASK <slot> <host:port>: the key is mid-migration. Exactly the next
  attempt goes to the given node, preceded by an ASKING command.
- Transport failures: the next attempt goes to a random healthy node.

Each dispatch gets at most MAX_REDIRECTIONS attempts.
"""

import logging
import threading
from typing import Any, Iterable, Optional, Sequence, Tuple

from ..cache.connections import ConnectionCache
from ..config.settings import settings
from ..network.redis_connection import RedisStoreClient
from ..protocol.commands import ASKING, Connection, RedirectionType, StoreClient, extract_key
from ..protocol.errors import NodeConnectionError, RedirectionLimitExceeded, ReplyError
from ..protocol.parser import ReplyParser
from .discovery import TopologyDiscoverer
from .hashing import hash_slot
from .nodes import Node, NodeRegistry
from .slots import SlotTable

logger = logging.getLogger(__name__)


class CommandRouter:
    """
    Dispatches commands across the cluster.

    Responsibilities:
    - Discover the topology at construction and on demand
    - Pick the owning node for each command's key
    - Follow MOVED/ASK redirections within the retry budget
    - Fall back to random nodes on transport failures

    Shared state (slot table, node registry, connection cache and the
    refresh flag) is only touched while holding the router lock, which
    spans each full dispatch.
    """

    def __init__(
            self,
            startup_nodes: Iterable[Any],
            max_cached_connections: int = None,
            store_client: StoreClient = None,
    ):
        """
        Initialize the router and discover the cluster topology.

        Args:
            startup_nodes: Seed node addresses used for discovery
            max_cached_connections: Connection cache bound (default from
                settings.MAX_CACHED_CONNECTIONS)
            store_client: Connection factory (default: redis-py backed)

        Raises:
            StartupFailure: If no seed node answered discovery
        """
        if store_client is None:
            store_client = RedisStoreClient()

        self.store_client = store_client
        self.max_redirections = settings.MAX_REDIRECTIONS
        self.parser = ReplyParser()
        self.discoverer = TopologyDiscoverer(startup_nodes, store_client)
        self.connections = ConnectionCache(store_client, max_cached_connections)

        self._lock = threading.RLock()
        self._nodes = NodeRegistry()
        self._slots = SlotTable()
        self._needs_refresh = False

        self._refresh()

    @property
    def slots(self) -> SlotTable:
        return self._slots

    @property
    def nodes(self) -> NodeRegistry:
        return self._nodes

    @property
    def needs_refresh(self) -> bool:
        return self._needs_refresh

    def refresh(self) -> None:
        """Rebuild the node registry and slot table from the seed nodes."""
        with self._lock:
            self._refresh()

    def _refresh(self) -> None:
        # Cleared even if discovery fails; the next MOVED schedules another one
        self._needs_refresh = False
        self._nodes, self._slots = self.discoverer.discover()

    def dispatch(self, command: str, args: Sequence[Any] = ()) -> Any:
        """
        Execute a command on the node that owns it.

        Args:
            command: Command name, e.g. "GET"
            args: Command arguments; the first one is the key for
                keyed commands

        Returns:
            The reply of the node that finally served the command

        Raises:
            ReplyError: For any error reply other than MOVED/ASK
            RedirectionLimitExceeded: If the retry budget ran out
            NoAvailableNode: If random selection found no healthy node
            StartupFailure: If a scheduled topology refresh failed
        """
        args = tuple(args)
        with self._lock:
            if self._needs_refresh:
                logger.debug("Refreshing cluster topology after MOVED")
                self._refresh()

            num_redirects = 0
            asking = False
            force_random = False
            target_hint: Optional[Node] = None

            while num_redirects < self.max_redirections:
                num_redirects += 1

                if target_hint is not None:
                    node = target_hint
                    target_hint = None
                elif force_random:
                    node = None
                    force_random = False
                else:
                    node = self._node_for(command, args)

                connection, node = self._connection_for(node)

                try:
                    if asking:
                        asking = False
                        connection.execute(ASKING)
                    return connection.execute(command, *args)
                except ConnectionError as e:
                    logger.warning(f"Transport failure on {node} for {command}: {e}")
                    self.connections.discard(node)
                    force_random = True
                except ReplyError as e:
                    redirection = self.parser.parse_redirection(e.message)
                    if redirection is None:
                        raise

                    target = Node(host=redirection.host, port=redirection.port)
                    if redirection.type is RedirectionType.MOVED:
                        logger.debug(f"MOVED slot {redirection.slot} to {target}")
                        self._needs_refresh = True
                        self._nodes.add(target)
                        self._slots[redirection.slot] = self._nodes.get(target.name)
                    else:
                        logger.debug(f"ASK slot {redirection.slot} at {target}")
                        asking = True
                        target_hint = target

            raise RedirectionLimitExceeded(command, args, self.max_redirections)

    def _node_for(self, command: str, args: Sequence[Any]) -> Optional[Node]:
        key = extract_key(command, args)
        if key is None:
            return None

        slot = hash_slot(key)
        node = self._slots[slot]
        if node is None:
            logger.debug(f"Slot {slot} is unmapped, using a random node")
        return node

    def _connection_for(self, node: Optional[Node]) -> Tuple[Connection, Node]:
        """Connect to node, or to a random node when node is None or down."""
        if node is not None:
            try:
                return self.connections.get_or_create(node), node
            except NodeConnectionError as e:
                logger.warning(f"Cannot use {node}, falling back to a random node: {e}")

        node, connection = self.connections.choose_random(self._nodes.nodes())
        return connection, node

    def close(self) -> None:
        """Close every cached connection."""
        with self._lock:
            self.connections.close_all()
