"""
Topology Discovery Module

Builds the node registry and slot table by asking seed nodes for the
cluster membership (CLUSTER NODES) and slot ownership (CLUSTER SLOTS).
"""

import logging
from typing import Any, Iterable, List, Optional, Tuple

from ..protocol.commands import Connection, StoreClient
from ..protocol.errors import ReplyError, StartupFailure
from ..protocol.parser import NodeRecord, ReplyParser, SlotRecord
from .nodes import Node, NodeRegistry
from .slots import SlotTable

logger = logging.getLogger(__name__)


class TopologyDiscoverer:
    """
    Discovers cluster topology from an ordered list of seed nodes.

    The first seed that answers both topology queries wins; connection
    failures, error replies and malformed replies move on to the next
    seed. Every call performs a full rebuild from the seed list.

    Attributes:
        seeds: The seed nodes, in the order they are tried
        store_client: Collaborator used to open seed connections
    """

    def __init__(self, seeds: Iterable[Any], store_client: StoreClient):
        """
        Initialize the discoverer.

        Args:
            seeds: Seed node addresses (anything Node.parse accepts)
            store_client: Factory for node connections
        """
        self.seeds: List[Node] = [Node.parse(seed) for seed in seeds]
        self.store_client = store_client
        self.parser = ReplyParser()

    def discover(self, seeds: Optional[Iterable[Any]] = None) -> Tuple[NodeRegistry, SlotTable]:
        """
        Build a fresh node registry and slot table.

        Args:
            seeds: Override the seed list for this call

        Returns:
            Tuple of (NodeRegistry, SlotTable)

        Raises:
            StartupFailure: If no seed answered both queries
        """
        seed_nodes = [Node.parse(seed) for seed in seeds] if seeds is not None else self.seeds

        for seed in seed_nodes:
            try:
                node_records, slot_records = self._query(seed)
                registry, table = self._build(node_records, slot_records)
            except (ConnectionError, ReplyError, ValueError) as e:
                logger.warning(f"Topology discovery via {seed} failed: {e}")
                continue

            logger.info(
                f"Cluster topology discovered via {seed}: {len(registry)} nodes, "
                f"{table.mapped_count()} slots mapped"
            )
            return registry, table

        raise StartupFailure(seed_nodes)

    def cluster_nodes(self, connection: Connection, seed: Node) -> List[NodeRecord]:
        """Run the membership query on an open seed connection."""
        records = self.parser.parse_nodes(connection.execute("CLUSTER", "NODES"))
        for record in records:
            if not record.host:
                record.host = seed.host
        return records

    def cluster_slots(self, connection: Connection, seed: Node) -> List[SlotRecord]:
        """Run the slot-ownership query on an open seed connection."""
        records = self.parser.parse_slots(connection.execute("CLUSTER", "SLOTS"))
        for record in records:
            if not record.host:
                record.host = seed.host
        return records

    def _query(self, seed: Node) -> Tuple[List[NodeRecord], List[SlotRecord]]:
        connection = self.store_client.connect(seed.host, seed.port)
        try:
            node_records = self.cluster_nodes(connection, seed)
            slot_records = self.cluster_slots(connection, seed)
        finally:
            connection.close()
        return node_records, slot_records

    def _build(
            self,
            node_records: List[NodeRecord],
            slot_records: List[SlotRecord],
    ) -> Tuple[NodeRegistry, SlotTable]:
        registry = NodeRegistry()
        for record in node_records:
            registry.add(Node(host=record.host, port=record.port, id=record.id, flags=record.flags))

        table = SlotTable()
        for record in slot_records:
            owner = Node(host=record.host, port=record.port)
            # Reuse the registry entry so id/flags stay attached
            if not registry.add(owner):
                owner = registry.get(owner.name)
            table.assign_range(record.start, record.end, owner)

        return registry, table
