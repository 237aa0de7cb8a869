"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.

FakeStoreClient stands in for a running cluster: each node can be marked
down, given topology replies, and scripted with per-command replies or
errors. Every connection records the commands it executed.
"""

from collections import defaultdict, deque
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from kvrouter.cache.connections import ConnectionCache
from kvrouter.cluster.discovery import TopologyDiscoverer
from kvrouter.cluster.nodes import Node
from kvrouter.cluster.router import CommandRouter
from kvrouter.protocol.errors import NodeConnectionError, ReplyError
from kvrouter.protocol.parser import ReplyParser


NODE_A = ("10.0.0.1", 7000)
NODE_B = ("10.0.0.2", 7000)
NODE_C = ("10.0.0.3", 7000)


# ============================================================================
# Fake store client
# ============================================================================

class FakeConnection:
    """Connection to a FakeNode; records everything it executes."""

    def __init__(self, node: "FakeNode"):
        self.node = node
        self.executed: List[Tuple[Any, ...]] = []
        self.close_count = 0

    @property
    def closed(self) -> bool:
        return self.close_count > 0

    def ping(self) -> str:
        if self.node.down:
            raise NodeConnectionError(f"{self.node.name} is down")
        return self.node.ping_reply

    def execute(self, command: str, *args: Any) -> Any:
        if self.node.down:
            raise NodeConnectionError(f"{self.node.name} is down")

        call = (command,) + args
        self.executed.append(call)
        self.node.executed.append(call)

        if command.upper() == "CLUSTER":
            query = str(args[0]).upper()
            if query not in self.node.topology:
                raise ReplyError("ERR This instance has cluster support disabled")
            return self.node.topology[query]

        script = self.node.scripts.get(command.upper())
        if script:
            outcome = script.popleft() if len(script) > 1 else script[0]
            if isinstance(outcome, Exception):
                raise outcome
            if callable(outcome):
                return outcome(command, *args)
            return outcome

        return self.node.default_reply(command, *args)

    def close(self) -> None:
        self.close_count += 1


class FakeNode:
    """One simulated cluster node."""

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port
        self.down = False
        self.ping_reply = "PONG"
        self.topology: Dict[str, Any] = {}
        self.scripts: Dict[str, deque] = {}
        self.executed: List[Tuple[Any, ...]] = []

    @property
    def name(self) -> str:
        return f"{self.host}:{self.port}"

    def script(self, command: str, *outcomes: Any) -> None:
        """Queue replies/errors for a command; the last one repeats."""
        self.scripts[command.upper()] = deque(outcomes)

    def default_reply(self, command: str, *args: Any) -> Any:
        return f"{self.name} {command} {' '.join(str(arg) for arg in args)}".strip()

    def commands(self) -> List[str]:
        """Names of non-topology commands executed on this node."""
        return [call[0] for call in self.executed if call[0].upper() != "CLUSTER"]


class FakeStoreClient:
    """StoreClient backed by FakeNodes."""

    def __init__(self):
        self.nodes: Dict[str, FakeNode] = {}
        self.connections: List[FakeConnection] = []
        self.connect_calls: Dict[str, int] = defaultdict(int)

    def node(self, host: str, port: int) -> FakeNode:
        name = f"{host}:{port}"
        if name not in self.nodes:
            self.nodes[name] = FakeNode(host, port)
        return self.nodes[name]

    def connect(self, host: str, port: int) -> FakeConnection:
        node = self.node(host, port)
        self.connect_calls[node.name] += 1
        if node.down:
            raise NodeConnectionError(f"connection refused: {node.name}")
        connection = FakeConnection(node)
        self.connections.append(connection)
        return connection

    def connections_to(self, name: str) -> List[FakeConnection]:
        return [c for c in self.connections if c.node.name == name]

    def set_topology(self, nodes_text: str, slots: List[Any], on: Optional[List[str]] = None) -> None:
        """Install the same topology replies on every (or the given) node."""
        names = on if on is not None else list(self.nodes)
        for name in names:
            self.nodes[name].topology = {"NODES": nodes_text, "SLOTS": slots}


def nodes_text(*entries: Tuple[str, str, int, str]) -> str:
    """Render CLUSTER NODES text from (id, host, port, flags) entries."""
    lines = [
        f"{node_id} {host}:{port}@{port + 10000} {flags} - 0 0 1 connected"
        for node_id, host, port, flags in entries
    ]
    return "\n".join(lines) + "\n"


def three_node_cluster(client: FakeStoreClient) -> None:
    """A healthy A/B/C cluster with the usual three-way slot split."""
    for host, port in (NODE_A, NODE_B, NODE_C):
        client.node(host, port)

    text = nodes_text(
        ("id-a", *NODE_A, "myself,master"),
        ("id-b", *NODE_B, "master"),
        ("id-c", *NODE_C, "master"),
    )
    slots = [
        [0, 5460, list(NODE_A), ["10.0.1.1", 7001]],
        [5461, 10922, list(NODE_B)],
        [10923, 16383, list(NODE_C)],
    ]
    client.set_topology(text, slots)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def store_client() -> FakeStoreClient:
    """A fake store client with a healthy three-node cluster."""
    client = FakeStoreClient()
    three_node_cluster(client)
    return client


@pytest.fixture
def parser() -> ReplyParser:
    """Create a ReplyParser instance."""
    return ReplyParser()


@pytest.fixture
def discoverer(store_client: FakeStoreClient) -> TopologyDiscoverer:
    """Discoverer seeded with all three nodes."""
    return TopologyDiscoverer([NODE_A, NODE_B, NODE_C], store_client)


@pytest.fixture
def connection_cache(store_client: FakeStoreClient) -> ConnectionCache:
    """Connection cache with the default bound of 2."""
    return ConnectionCache(store_client, max_size=2)


@pytest.fixture
def router_factory(store_client: FakeStoreClient) -> Callable[..., CommandRouter]:
    """
    Factory fixture to create routers over the fake cluster.

    Usage:
        def test_something(router_factory):
            router = router_factory(max_cached_connections=3)
    """
    def factory(seeds=None, max_cached_connections=None) -> CommandRouter:
        return CommandRouter(
            seeds if seeds is not None else [NODE_A],
            max_cached_connections=max_cached_connections,
            store_client=store_client,
        )
    return factory


@pytest.fixture
def router(router_factory) -> CommandRouter:
    """A router over the healthy three-node cluster."""
    return router_factory()


def node(address: Tuple[str, int]) -> Node:
    return Node(host=address[0], port=address[1])


def moved(slot: int, address: Tuple[str, int]) -> ReplyError:
    return ReplyError(f"MOVED {slot} {address[0]}:{address[1]}")


def ask(slot: int, address: Tuple[str, int]) -> ReplyError:
    return ReplyError(f"ASK {slot} {address[0]}:{address[1]}")


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
