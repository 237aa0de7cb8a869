"""
Tests for nodes, the node registry and the slot table

Run with: python -m pytest tests/test_slots.py -v
"""

import pytest

from kvrouter.cluster.nodes import Node, NodeRegistry
from kvrouter.cluster.slots import SlotTable


class TestNode:
    """Test Node identity and parsing."""

    def test_name(self):
        """Test the host:port name."""
        assert Node("10.0.0.1", 7000).name == "10.0.0.1:7000"

    def test_identity_is_name(self):
        """id and flags do not take part in equality."""
        a = Node("10.0.0.1", 7000, id="abc", flags="master")
        b = Node("10.0.0.1", 7000)
        assert a == b
        assert hash(a) == hash(b)

    @pytest.mark.parametrize("value", [
        "10.0.0.1:7000",
        ("10.0.0.1", 7000),
        ["10.0.0.1", "7000"],
        {"host": "10.0.0.1", "port": 7000},
        Node("10.0.0.1", 7000),
    ])
    def test_parse(self, value):
        """Test parsing node addresses."""
        assert Node.parse(value) == Node("10.0.0.1", 7000)

    def test_parse_mapping_keeps_id(self):
        """Test mappings keep the node id."""
        node = Node.parse({"host": "h", "port": 1, "id": "abc", "flags": "master"})
        assert node.id == "abc"
        assert node.flags == "master"

    @pytest.mark.parametrize("value", ["no-port", ("h",), 42])
    def test_parse_invalid(self, value):
        """Test invalid node addresses."""
        with pytest.raises(ValueError):
            Node.parse(value)


class TestNodeRegistry:
    """Test registry deduplication and ordering."""

    def test_dedup_by_name(self):
        """Test nodes are deduplicated by name."""
        registry = NodeRegistry()

        assert registry.add(Node("h", 1, id="first")) is True
        assert registry.add(Node("h", 1, id="second")) is False
        assert len(registry) == 1
        assert registry.get("h:1").id == "first"

    def test_insertion_order(self):
        """Test nodes keep insertion order."""
        registry = NodeRegistry([Node("c", 3), Node("a", 1), Node("b", 2)])
        assert [n.name for n in registry] == ["c:3", "a:1", "b:2"]

    def test_contains(self):
        """Test membership by node or name."""
        registry = NodeRegistry([Node("h", 1)])
        assert Node("h", 1) in registry
        assert "h:1" in registry
        assert "h:2" not in registry


class TestSlotTable:
    """Test slot assignment."""

    def test_starts_unmapped(self):
        """Test a new table has no owners."""
        table = SlotTable()
        assert len(table) == 16384
        assert table[0] is None
        assert table.mapped_count() == 0

    def test_assign_range_is_inclusive(self):
        """Test assign_range() includes both ends."""
        table = SlotTable()
        node = Node("h", 1)
        table.assign_range(100, 200, node)

        assert table[99] is None
        assert table[100] == node
        assert table[200] == node
        assert table[201] is None
        assert table.mapped_count() == 101

    def test_single_slot_range(self):
        """Test a one-slot range."""
        table = SlotTable()
        table.assign_range(16383, 16383, Node("h", 1))
        assert table.mapped_count() == 1

    def test_patch_overrides_owner(self):
        """Each slot has at most one owner."""
        table = SlotTable()
        a, b = Node("a", 1), Node("b", 1)
        table.assign_range(0, 16383, a)
        table[5000] = b

        assert table[5000] == b
        assert table.owners() == {"a:1": 16383, "b:1": 1}
        assert table.is_complete()

    @pytest.mark.parametrize("slot", [-1, 16384, "5"])
    def test_out_of_range(self, slot):
        """Test slot indexes outside the table."""
        table = SlotTable()
        with pytest.raises(ValueError):
            table[slot]

    def test_invalid_ranges(self):
        """Test reversed or invalid ranges."""
        table = SlotTable()
        with pytest.raises(ValueError):
            table.assign_range(10, 5, Node("h", 1))
        with pytest.raises(ValueError):
            table.assign_range(0, 16384, Node("h", 1))

    def test_clear(self):
        """Test clear() unmaps every slot."""
        table = SlotTable()
        table.assign_range(0, 10, Node("h", 1))
        table.clear()
        assert table.mapped_count() == 0
