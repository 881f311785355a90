"""
Tests for tree-backed configurations and typed property access.
"""

import pytest

from configtree.configuration import HierarchicalConfiguration, MapConfiguration, convert_to_hierarchical
from configtree.events import EventType
from configtree.exceptions import ConfigurationStateError, ConversionError, InvalidKeyError
from configtree.tree import ExpressionEngine, ExpressionSymbols, node_from_mapping


@pytest.fixture
def config():
    """Provides a configuration with nested and repeated properties."""
    return HierarchicalConfiguration(node_from_mapping({
        "server": {"host": "localhost", "port": "8080", "debug": "yes"},
        "tables": {"table": [{"name": "users"}, {"name": "documents"}]},
        "ratio": 0.5
    }))


class TestPropertyAccess:
    """Test reading properties."""

    def test_get_property(self, config):
        """Test single and multiple values."""
        assert config.get_property("server.host") == "localhost"
        assert config.get_property("tables.table.name") == ["users", "documents"]
        assert config.get_property("missing") is None

    def test_contains_key(self, config):
        """Test checking for keys."""
        assert config.contains_key("server.port")
        assert "server.port" in config
        assert not config.contains_key("server")

    def test_keys_in_tree_order(self, config):
        """Test that keys are listed depth-first and only once."""
        assert config.keys() == ["server.host", "server.port", "server.debug", "tables.table.name", "ratio"]
        assert config.size() == 5

    def test_keys_with_prefix(self, config):
        """Test listing the keys below a prefix."""
        assert config.keys("server") == ["server.host", "server.port", "server.debug"]
        assert config.keys("tables.table(1)") == ["tables.table(1).name"]
        assert config.keys("unknown") == []

    def test_attribute_keys(self):
        """Test that attributes are listed as keys."""
        config = HierarchicalConfiguration()
        config.add_property("server[@port]", 8080)
        config.add_property("server.host", "localhost")

        assert config.keys() == ["server[@port]", "server.host"]
        assert config.get_int("server[@port]") == 8080
        assert config.keys("server[@port]") == ["server[@port]"]

    def test_is_empty(self, config):
        """Test emptiness checks."""
        assert not config.is_empty()
        assert HierarchicalConfiguration().is_empty()

    def test_get_max_index(self, config):
        """Test the maximum index of a key."""
        assert config.get_max_index("tables.table") == 1
        assert config.get_max_index("server") == 0
        assert config.get_max_index("missing") == -1

    def test_custom_expression_engine(self):
        """Test that keys are interpreted by the configured engine."""
        engine = ExpressionEngine(ExpressionSymbols(property_delimiter="/", escaped_delimiter=None))
        config = HierarchicalConfiguration(node_from_mapping({"a": {"b.c": 1}}), engine)

        assert config.get_int("a/b.c") == 1
        assert config.keys() == ["a/b.c"]


class TestTypedAccess:
    """Test typed getters."""

    def test_conversions(self, config):
        """Test converting string values."""
        assert config.get_int("server.port") == 8080
        assert config.get_float("ratio") == 0.5
        assert config.get_bool("server.debug") is True
        assert config.get_string("ratio") == "0.5"

    def test_defaults(self, config):
        """Test default values for undefined keys."""
        assert config.get_int("missing", 42) == 42
        assert config.get_string("missing") is None
        assert config.get_list("missing") == []
        assert config.get_list("missing", ["a"]) == ["a"]

    def test_multiple_values_use_first(self, config):
        """Test that scalar getters use the first of several values."""
        assert config.get_string("tables.table.name") == "users"
        assert config.get_list("tables.table.name") == ["users", "documents"]
        assert config.get_list("server.host") == ["localhost"]

    def test_bool_as_string(self):
        """Test that booleans are rendered in lower case."""
        config = MapConfiguration({"flag": True})
        assert config.get_string("flag") == "true"

    def test_conversion_error(self, config):
        """Test that invalid values raise ConversionError."""
        with pytest.raises(ConversionError) as exc_info:
            config.get_int("server.host")

        error = exc_info.value
        assert error.error_code == "CONVERSION_ERROR"
        assert error.context == {"key": "server.host", "target_type": "int"}
        assert error.cause is not None


class TestModification:
    """Test changing properties."""

    def test_add_property_creates_path(self):
        """Test that missing path nodes are created."""
        config = HierarchicalConfiguration()
        config.add_property("database.connection.host", "db1")

        assert config.get_string("database.connection.host") == "db1"
        assert config.get_root_node().get_children("database")[0].child_count() == 1

    def test_add_property_appends_values(self):
        """Test that adding to an existing key keeps the old values."""
        config = HierarchicalConfiguration()
        config.add_property("hosts.host", "a")
        config.add_property("hosts.host", ["b", "c"])

        assert config.get_list("hosts.host") == ["a", "b", "c"]
        assert config.get_max_index("hosts") == 0

    def test_add_property_invalid_key(self):
        """Test that invalid keys are rejected."""
        with pytest.raises(InvalidKeyError):
            HierarchicalConfiguration().add_property("", 1)

    def test_set_property_replaces_values(self, config):
        """Test that setting a property replaces all values."""
        config.set_property("tables.table.name", "roles")
        assert config.get_property("tables.table.name") == "roles"
        assert config.get_max_index("tables.table") == 0

    def test_set_property_with_more_values(self, config):
        """Test that additional values are added."""
        config.set_property("server.host", ["h1", "h2"])
        assert config.get_list("server.host") == ["h1", "h2"]

    def test_set_attribute(self, config):
        """Test setting an attribute value."""
        config.set_property("server[@id]", "main")
        assert config.get_string("server[@id]") == "main"

    def test_clear_property_removes_empty_nodes(self, config):
        """Test that clearing the last value removes undefined nodes."""
        config.clear_property("tables.table.name")

        assert not config.contains_key("tables.table.name")
        assert config.get_max_index("tables") == -1
        assert config.keys() == ["server.host", "server.port", "server.debug", "ratio"]

    def test_clear_property_keeps_children(self):
        """Test that a node with children survives clearing its value."""
        config = HierarchicalConfiguration()
        config.add_property("a", 1)
        config.add_property("a.b", 2)

        config.clear_property("a")
        assert config.get_property("a") is None
        assert config.get_int("a.b") == 2

    def test_clear_tree(self, config):
        """Test removing a whole sub tree."""
        config.clear_tree("tables")
        assert config.keys() == ["server.host", "server.port", "server.debug", "ratio"]

    def test_clear(self, config):
        """Test removing all properties."""
        config.clear()
        assert config.is_empty()
        assert config.keys() == []


class TestSubConfigurations:
    """Test configurations for sub trees."""

    def test_configuration_at(self, config):
        """Test creating a configuration for a unique node."""
        sub = config.configuration_at("server")
        assert sub.keys() == ["host", "port", "debug"]

        sub.set_property("host", "remote")
        assert config.get_string("server.host") == "localhost"

    def test_configuration_at_requires_unique_node(self, config):
        """Test that the key must select exactly one node."""
        with pytest.raises(ConfigurationStateError):
            config.configuration_at("tables.table")
        with pytest.raises(ConfigurationStateError):
            config.configuration_at("missing")

    def test_configurations_at(self, config):
        """Test creating configurations for all selected nodes."""
        subs = config.configurations_at("tables.table")
        assert [sub.get_string("name") for sub in subs] == ["users", "documents"]

    def test_copy(self, config, collector):
        """Test that copies are independent and have no listeners."""
        config.add_event_listener(collector)
        copy = config.copy()
        copy.set_property("server.host", "other")

        assert config.get_string("server.host") == "localhost"
        assert copy.get_event_listeners() == []
        assert collector.events == []


class TestEvents:
    """Test change events of hierarchical configurations."""

    def test_mutations_fire_before_and_after(self, config, collector):
        """Test that each mutation fires two events."""
        config.add_event_listener(collector)
        config.set_property("server.host", "remote")

        assert [e.before_update for e in collector.events] == [True, False]
        assert all(e.event_type == EventType.SET_PROPERTY for e in collector.events)
        assert collector.events[1].property_name == "server.host"
        assert collector.events[1].property_value == "remote"

    def test_clear_tree_event(self, config, collector):
        """Test the event fired for removing a sub tree."""
        config.add_event_listener(collector)
        config.clear_tree("tables.table")

        events = collector.of_type(EventType.CLEAR_TREE)
        assert len(events) == 1
        assert len(events[0].property_value) == 2


class TestConversion:
    """Test converting flat configurations to trees."""

    def test_convert_flat_configuration(self):
        """Test that dotted keys become paths."""
        flat = MapConfiguration({"db.host": "localhost", "db.ports": [1, 2]})
        config = convert_to_hierarchical(flat)

        assert config.get_string("db.host") == "localhost"
        assert config.get_list("db.ports") == [1, 2]
        assert config.get_max_index("db") == 0

    def test_convert_with_engine(self):
        """Test that the engine determines how keys are split."""
        engine = ExpressionEngine(ExpressionSymbols(property_delimiter="/", escaped_delimiter=None))
        config = convert_to_hierarchical(MapConfiguration({"db.host": "x"}), engine)

        assert config.get_root_node().get_children()[0].name == "db.host"

    def test_hierarchical_is_returned_unchanged(self, config):
        """Test that hierarchical configurations are not converted."""
        assert convert_to_hierarchical(config) is config
