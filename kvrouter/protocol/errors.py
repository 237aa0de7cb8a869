"""
Error Taxonomy

Every error raised by the router derives from ClusterError.

Surfaced to callers:
    StartupFailure            - no seed node answered topology discovery
    NoAvailableNode           - random selection exhausted every known node
    ReplyError                - error reply other than MOVED/ASK
    RedirectionLimitExceeded  - redirection budget used up

Handled internally by the router:
    NodeConnectionError       - transport failure talking to one node
    ReplyError (MOVED / ASK)  - drive the redirection state machine
"""

from typing import Any, Sequence


class ClusterError(Exception):
    """Base class for all router errors."""


class StartupFailure(ClusterError):
    """Raised when no seed node answers the topology queries."""

    def __init__(self, seeds: Sequence[Any]):
        self.seeds = list(seeds)
        names = ", ".join(str(seed) for seed in self.seeds) or "<none>"
        super().__init__(f"failed to discover cluster topology from seeds: {names}")


class NoAvailableNode(ClusterError):
    """Raised when no known node yields a healthy connection."""


class NodeConnectionError(ClusterError, ConnectionError):
    """
    Transport-level failure talking to a node.

    Also a builtin ConnectionError, so store clients that raise plain
    socket errors are handled the same way.
    """


class ReplyError(ClusterError):
    """
    Error reply returned by a node.

    Attributes:
        message: The full error text, e.g. "MOVED 5000 10.0.0.2:7000"
        code: The leading token of the message ("MOVED", "ASK", "ERR", ...)
    """

    def __init__(self, message: str):
        self.message = message
        parts = message.split(None, 1)
        self.code = parts[0].upper() if parts else ""
        super().__init__(message)


class RedirectionLimitExceeded(ClusterError):
    """Raised when a command keeps being redirected past the budget."""

    def __init__(self, command: str, args: Sequence[Any], limit: int):
        self.command = command
        self.command_args = tuple(args)
        self.limit = limit
        rendered = " ".join(str(part) for part in (command,) + self.command_args)
        super().__init__(
            f"{rendered} - max redirection limit exceeded ({limit} times)"
        )
