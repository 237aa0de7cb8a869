"""
Reply Parser Module

Turns the raw replies of the store into router data structures:
- parse_redirection(): MOVED / ASK error replies
- parse_nodes(): the CLUSTER NODES membership text
- parse_slots(): the CLUSTER SLOTS ownership reply
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from .commands import Redirection, RedirectionType


@dataclass
class NodeRecord:
    """One line of the CLUSTER NODES reply."""
    id: str
    host: str
    port: int
    flags: str = ""


@dataclass
class SlotRecord:
    """One entry of the CLUSTER SLOTS reply (replicas are dropped)."""
    start: int
    end: int
    host: str
    port: int


class ReplyParser:
    """
    Parser for cluster topology and redirection replies.

    Reply formats:
        MOVED <slot> <host:port>
        ASK <slot> <host:port>
        CLUSTER NODES: <id> <host:port[@cport[,hostname]]> <flags> ...\\n
        CLUSTER SLOTS: [[start, end, [host, port, ...], [replica...]], ...]

    Malformed topology replies raise ValueError so the discoverer can
    move on to the next seed.
    """

    def parse_redirection(self, message: str) -> Optional[Redirection]:
        """
        Parse an error message into a Redirection.

        Args:
            message: Error reply text, e.g. "MOVED 5000 10.0.0.2:7000"

        Returns:
            Redirection for MOVED/ASK replies, None for any other error
            (including malformed MOVED/ASK lines).

        Examples:
            >>> r = ReplyParser().parse_redirection("ASK 5000 10.0.0.2:7000")
            >>> (r.type.name, r.slot, r.host, r.port)
            ('ASK', 5000, '10.0.0.2', 7000)
        """
        parts = message.split()
        if len(parts) != 3:
            return None

        code = parts[0].upper()
        if code not in (RedirectionType.MOVED.value, RedirectionType.ASK.value):
            return None

        try:
            slot = int(parts[1])
            host, port = self.split_address(parts[2])
        except ValueError:
            return None

        return Redirection(type=RedirectionType(code), slot=slot, host=host, port=port)

    def parse_nodes(self, text: Any) -> List[NodeRecord]:
        """
        Parse the CLUSTER NODES membership reply.

        Args:
            text: Newline-delimited records (str or bytes)

        Returns:
            List of NodeRecord, in reply order
        """
        if isinstance(text, bytes):
            text = text.decode("utf-8")
        if not isinstance(text, str):
            raise ValueError(f"unexpected membership reply: {text!r}")

        records = []
        for line in text.splitlines():
            fields = line.split()
            if not fields:
                continue
            if len(fields) < 2:
                raise ValueError(f"malformed membership record: {line!r}")

            # host:port@cport[,hostname] since the cluster bus port was added
            address = fields[1].split("@", 1)[0]
            host, port = self.split_address(address)
            flags = fields[2] if len(fields) > 2 else ""
            records.append(NodeRecord(id=fields[0], host=host, port=port, flags=flags))
        return records

    def parse_slots(self, reply: Any) -> List[SlotRecord]:
        """
        Parse the CLUSTER SLOTS ownership reply.

        Args:
            reply: Sequence of [start, end, [host, port, ...], replicas...]

        Returns:
            List of SlotRecord with the master of each range
        """
        if not isinstance(reply, (list, tuple)):
            raise ValueError(f"unexpected slots reply: {reply!r}")

        records = []
        for entry in reply:
            if not isinstance(entry, (list, tuple)) or len(entry) < 3:
                raise ValueError(f"malformed slot range: {entry!r}")

            start, end, master = entry[0], entry[1], entry[2]
            if not isinstance(master, (list, tuple)) or len(master) < 2:
                raise ValueError(f"malformed slot owner: {master!r}")

            host = master[0]
            if isinstance(host, bytes):
                host = host.decode("utf-8")
            records.append(SlotRecord(
                start=int(start),
                end=int(end),
                host=str(host),
                port=int(master[1]),
            ))
        return records

    @staticmethod
    def split_address(address: str) -> Tuple[str, int]:
        """
        Split "host:port" into its parts.

        The last colon separates the port, so IPv6 hosts keep theirs.
        Raises ValueError for anything without a numeric port.
        """
        host, sep, port = address.rpartition(":")
        if not sep:
            raise ValueError(f"invalid node address: {address!r}")
        return host, int(port)
