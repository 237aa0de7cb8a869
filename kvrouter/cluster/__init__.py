"""
Cluster module for KV-Router.

This module provides:
- Key to hash slot mapping
- Slot ownership table and node registry
- Topology discovery from seed nodes
- Command routing with redirection handling (cluster.router)
"""

from .discovery import TopologyDiscoverer
from .hashing import crc16, hash_slot
from .nodes import Node, NodeRegistry
from .slots import SlotTable

__all__ = [
    'TopologyDiscoverer',
    'crc16',
    'hash_slot',
    'Node',
    'NodeRegistry',
    'SlotTable',
]
