"""
Protocol Command and Redirection Definitions

This module defines the data structures shared between the router and
the store client: the collaborator contract, redirection replies and
the rule for picking the routing key out of a command.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol, Sequence


# Commands that carry no key and are routed to a random node.
KEYLESS_COMMANDS = frozenset({
    "INFO",
    "MULTI",
    "EXEC",
    "SLAVEOF",
    "REPLICAOF",
    "CONFIG",
    "SHUTDOWN",
})

ASKING = "ASKING"


class Connection(Protocol):
    """A live connection to one store node."""

    def ping(self) -> str:
        ...

    def execute(self, command: str, *args: Any) -> Any:
        ...

    def close(self) -> None:
        ...


class StoreClient(Protocol):
    """Factory for node connections."""

    def connect(self, host: str, port: int) -> Connection:
        ...


class RedirectionType(Enum):
    """Kinds of redirection replies a node can send."""
    MOVED = "MOVED"
    ASK = "ASK"


@dataclass(frozen=True)
class Redirection:
    """
    A parsed MOVED or ASK error reply.

    Attributes:
        type: MOVED (slot owner changed) or ASK (key is mid-migration)
        slot: The hash slot the reply is about
        host: Host of the node that now serves the slot
        port: Port of the node that now serves the slot
    """
    type: RedirectionType
    slot: int
    host: str
    port: int

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


def extract_key(command: str, args: Sequence[Any]) -> Optional[Any]:
    """
    Return the routing key for a command.

    Administrative commands and commands without arguments have no key;
    everything else is routed by its first argument.

    Examples:
        >>> extract_key("GET", ["user:1"])
        'user:1'
        >>> extract_key("config", ["GET", "maxmemory"]) is None
        True
    """
    if str(command).upper() in KEYLESS_COMMANDS:
        return None
    if not args:
        return None
    return args[0]
