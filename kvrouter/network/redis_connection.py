"""
Redis Store Client

Default store-client collaborator, built on redis-py. It adapts a
single-node redis.Redis client to the contract the router consumes:

    connect(host, port) -> RedisConnection
    RedisConnection.ping() -> "PONG"
    RedisConnection.execute(command, *args) -> reply
    RedisConnection.close()

redis-py errors are translated:
- ConnectionError / TimeoutError      -> NodeConnectionError
- any ResponseError                   -> ReplyError("<CODE> <message>")

redis-py's parser strips the leading code from every error it maps to its
own exception class (MOVED, ASK, ERR, CLUSTERDOWN, TRYAGAIN, ...), so the
code is put back before the reply reaches the router.
"""

import logging
from typing import Any, Dict, Optional, Type

import redis
from redis._parsers.base import BaseParser
from redis.exceptions import ResponseError
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from ..config.settings import settings
from ..protocol.errors import NodeConnectionError, ReplyError

logger = logging.getLogger(__name__)

# Messages redis-py turns into ResponseError subclasses after stripping "ERR"
_ERR_MESSAGES = BaseParser.EXCEPTION_CLASSES["ERR"]


def _error_codes() -> Dict[Type[ResponseError], str]:
    """Map each redis-py error class back to the first code that produces it."""
    codes: Dict[Type[ResponseError], str] = {}
    for code, exception_class in BaseParser.EXCEPTION_CLASSES.items():
        if not isinstance(exception_class, dict):
            codes.setdefault(exception_class, code)
    return codes


_ERROR_CODES = _error_codes()


def _error_code(error: ResponseError) -> Optional[str]:
    # Newer redis-py releases keep the stripped code on the exception
    status_code = getattr(error, "status_code", None)
    if status_code:
        return status_code

    message = str(error)
    if message in _ERR_MESSAGES:
        return "ERR"
    code = _ERROR_CODES.get(type(error))
    if code is not None:
        return code

    # Codes redis-py has no class for are left in the message
    first = message.split(" ", 1)[0]
    if first.isalpha() and first.isupper():
        return None
    return "ERR"


def to_reply_error(error: ResponseError) -> ReplyError:
    """Rebuild the "<CODE> <message>" error reply redis-py received."""
    message = str(error)
    code = _error_code(error)
    if code is None:
        return ReplyError(message)
    return ReplyError(f"{code} {message}".rstrip())


class RedisConnection:
    """
    One connection to a single store node.

    redis.Redis connects lazily, so transport errors surface on the first
    ping() or execute() rather than in RedisStoreClient.connect().
    """

    def __init__(self, client: redis.Redis, host: str, port: int):
        self._client = client
        self.host = host
        self.port = port
        self._closed = False

    @property
    def name(self) -> str:
        return f"{self.host}:{self.port}"

    def ping(self) -> str:
        try:
            ok = self._client.ping()
        except (RedisConnectionError, RedisTimeoutError) as e:
            raise NodeConnectionError(f"{self.name}: {e}") from e
        except ResponseError as e:
            raise to_reply_error(e) from e
        return settings.PROBE_TOKEN if ok else ""

    def execute(self, command: str, *args: Any) -> Any:
        try:
            return self._client.execute_command(command, *args)
        except (RedisConnectionError, RedisTimeoutError) as e:
            raise NodeConnectionError(f"{self.name}: {e}") from e
        except ResponseError as e:
            raise to_reply_error(e) from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._client.close()
        except (RedisConnectionError, RedisTimeoutError) as e:
            logger.debug(f"Error closing connection to {self.name}: {e}")

    def __repr__(self) -> str:
        return f"RedisConnection({self.name})"


class RedisStoreClient:
    """
    Factory for RedisConnection objects.

    Attributes:
        connect_timeout: Seconds to wait for a TCP connection
        socket_timeout: Seconds to wait for a reply
        options: Extra keyword arguments passed to redis.Redis
            (password, ssl, ...)
    """

    def __init__(
            self,
            connect_timeout: float = None,
            socket_timeout: float = None,
            **options: Any,
    ):
        self.connect_timeout = connect_timeout if connect_timeout is not None else settings.CONNECT_TIMEOUT
        self.socket_timeout = socket_timeout if socket_timeout is not None else settings.SOCKET_TIMEOUT
        self.options = options

    def connect(self, host: str, port: int) -> RedisConnection:
        logger.debug(f"Opening connection to {host}:{port}")
        try:
            client = redis.Redis(
                host=host,
                port=port,
                socket_connect_timeout=self.connect_timeout,
                socket_timeout=self.socket_timeout,
                decode_responses=True,
                **self.options,
            )
        except (RedisConnectionError, RedisTimeoutError) as e:
            raise NodeConnectionError(f"{host}:{port}: {e}") from e
        return RedisConnection(client, host, port)
