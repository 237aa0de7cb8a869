"""
Cluster Node Definitions

Node identity is its "host:port" name; id and flags are informational.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Mapping, Optional

from ..protocol.parser import ReplyParser


@dataclass(frozen=True)
class Node:
    """
    A single addressable store node.

    Attributes:
        host: Hostname or IP address
        port: TCP port
        id: Cluster node id, when known from discovery
        flags: Comma-separated node flags ("master", "myself,master", ...)
    """
    host: str
    port: int
    id: Optional[str] = field(default=None, compare=False)
    flags: Optional[str] = field(default=None, compare=False)

    @property
    def name(self) -> str:
        return f"{self.host}:{self.port}"

    @classmethod
    def parse(cls, value: Any) -> "Node":
        """
        Build a Node from the usual ways of writing a node address.

        Accepts a Node, "host:port", a (host, port) tuple or a mapping
        with "host" and "port" keys.
        """
        if isinstance(value, Node):
            return value
        if isinstance(value, str):
            host, port = ReplyParser.split_address(value)
            return cls(host=host, port=port)
        if isinstance(value, Mapping):
            return cls(
                host=str(value["host"]),
                port=int(value["port"]),
                id=value.get("id"),
                flags=value.get("flags"),
            )
        if isinstance(value, (tuple, list)) and len(value) == 2:
            return cls(host=str(value[0]), port=int(value[1]))
        raise ValueError(f"cannot interpret {value!r} as a node address")

    def __str__(self) -> str:
        return self.name


class NodeRegistry:
    """
    Insertion-ordered set of known nodes, deduplicated by name.

    The registry only grows; a topology refresh replaces it wholesale.
    """

    def __init__(self, nodes: Optional[List[Node]] = None):
        self._nodes: "OrderedDict[str, Node]" = OrderedDict()
        for node in nodes or []:
            self.add(node)

    def add(self, node: Node) -> bool:
        """
        Add a node unless one with the same name is already known.

        Returns:
            True if the node was new, False otherwise
        """
        if node.name in self._nodes:
            return False
        self._nodes[node.name] = node
        return True

    def get(self, name: str) -> Optional[Node]:
        return self._nodes.get(name)

    def nodes(self) -> List[Node]:
        return list(self._nodes.values())

    def __contains__(self, item: Any) -> bool:
        name = item.name if isinstance(item, Node) else item
        return name in self._nodes

    def __iter__(self) -> Iterator[Node]:
        return iter(list(self._nodes.values()))

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"NodeRegistry({list(self._nodes)})"
