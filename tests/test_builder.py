"""
Tests for the combined configuration builder, definition files and utilities.
"""

import os
import yaml
import pytest
from unittest.mock import patch

from configtree.configuration import (
    CombinedConfiguration,
    CombinedConfigurationBuilder,
    CombinedDefinition,
    ConfigurationValidationError,
    ConfigurationValidator,
    EnvironmentConfiguration,
    MapConfiguration,
    SourceDefinition,
    YAMLConfiguration,
    create_combined_builder,
    load_combined_configuration,
    load_layered_configuration,
    load_yaml_configuration
)
from configtree.exceptions import ConfigurationError
from configtree.tree import OverrideCombiner, UnionCombiner


class TestDefinitionModels:
    """Test definition data models."""

    def test_source_definition_valid(self):
        """Test a valid YAML source."""
        source = SourceDefinition(type="yaml", path="config.yaml", name="main", optional=True)
        assert source.path == "config.yaml"
        assert source.optional is True

    def test_yaml_source_requires_path(self):
        """Test that YAML sources need a path."""
        with pytest.raises(ValueError, match="path is required"):
            SourceDefinition(type="yaml")

    def test_invalid_source_type(self):
        """Test that unknown source types are rejected."""
        with pytest.raises(ValueError):
            SourceDefinition(type="jndi")

    def test_definition_defaults(self):
        """Test default values."""
        definition = CombinedDefinition()
        assert definition.combiner == "union"
        assert definition.list_nodes == []
        assert definition.sources == []

    def test_duplicate_source_names(self):
        """Test that source names must be unique."""
        with pytest.raises(ValueError, match="Duplicate source names: a"):
            CombinedDefinition(sources=[
                {"type": "env", "name": "a"},
                {"type": "mapping", "name": "a"}
            ])


class TestDefinitionValidation:
    """Test validating definition data."""

    def test_validation_valid_definition(self):
        """Test validation of a valid definition."""
        definition = ConfigurationValidator.validate_definition({
            'combiner': 'override',
            'sources': [{'type': 'env', 'prefix': 'APP_'}]
        })
        assert definition.combiner == 'override'
        assert definition.sources[0].prefix == 'APP_'

    def test_validation_invalid_definition(self):
        """Test validation of an invalid definition."""
        with pytest.raises(ConfigurationValidationError) as exc_info:
            ConfigurationValidator.validate_definition({
                'combiner': 'intersection',
                'sources': [{'type': 'yaml', 'optional': 'maybe'}]
            })

        error = exc_info.value
        assert error.error_code == "CONFIGURATION_VALIDATION_ERROR"
        assert len(error.validation_errors) >= 2
        assert "combiner" in str(error.validation_errors)
        assert "Validation errors:" in error.get_detailed_message()

    def test_validation_requires_mapping(self):
        """Test that a definition must be a mapping."""
        with pytest.raises(ConfigurationValidationError):
            ConfigurationValidator.validate_definition(["not", "a", "mapping"])

    def test_validation_unknown_keys(self):
        """Test warnings for unknown keys."""
        warnings = ConfigurationValidator.get_warnings({'combiner': 'union', 'unknown_key': 1})
        assert warnings == ["Unknown definition key: unknown_key"]


class TestCombinedConfigurationBuilder:
    """Test the builder."""

    def test_builder_basic(self):
        """Test building without sources."""
        config = CombinedConfigurationBuilder().build()

        assert isinstance(config, CombinedConfiguration)
        assert isinstance(config.node_combiner, UnionCombiner)
        assert config.get_number_of_configurations() == 0

    def test_builder_with_yaml_and_env(self, fixtures_dir):
        """Test combining YAML files with environment variables."""
        with patch.dict(os.environ, {'APP_GUI_BGCOLOR': 'white'}):
            config = (CombinedConfigurationBuilder()
                      .with_combiner("override")
                      .add_environment_source("APP_", name="env")
                      .add_yaml_source(fixtures_dir / "testcombine1.yaml", name="c1")
                      .build())

        assert isinstance(config.node_combiner, OverrideCombiner)
        assert isinstance(config.get_configuration("env"), EnvironmentConfiguration)
        assert config.get_string("gui.bgcolor") == "white"
        assert config.get_string("gui.selcolor") == "yellow"
        assert config.get_source("gui.selcolor") is config.get_configuration("c1")

    def test_builder_list_nodes(self, fixtures_dir):
        """Test registering list nodes."""
        config = (CombinedConfigurationBuilder()
                  .add_list_nodes("table")
                  .add_yaml_source(fixtures_dir / "testcombine1.yaml")
                  .add_yaml_source(fixtures_dir / "testcombine2.yaml")
                  .build())

        assert config.node_combiner.list_nodes == frozenset({"table"})
        assert config.get_max_index("database.tables.table") == 1

    def test_builder_mapping_and_configuration(self, config1):
        """Test adding in-memory data and existing configurations."""
        config = (CombinedConfigurationBuilder()
                  .with_combiner(OverrideCombiner())
                  .add_configuration(config1, name="c1")
                  .add_mapping_source({"gui": {"bgcolor": "red", "width": 800}}, name="defaults")
                  .build())

        assert config.get_configuration("c1") is config1
        assert isinstance(config.get_configuration("defaults"), MapConfiguration)
        assert config.get_string("gui.bgcolor") == "green"
        assert config.get_int("gui.width") == 800

    def test_optional_missing_yaml(self, tmp_path, caplog):
        """Test that optional missing files are skipped with a warning."""
        with caplog.at_level("WARNING"):
            config = (CombinedConfigurationBuilder()
                      .add_yaml_source(tmp_path / "missing.yaml", optional=True)
                      .build())

        assert config.get_number_of_configurations() == 0
        assert "Optional configuration file not found" in caplog.text

    def test_required_missing_yaml(self, tmp_path):
        """Test that required missing files raise an error."""
        builder = CombinedConfigurationBuilder().add_yaml_source(tmp_path / "missing.yaml")

        with pytest.raises(ConfigurationError) as exc_info:
            builder.build()
        assert exc_info.value.error_code == "CONFIG_FILE_NOT_FOUND"

    def test_function_combiner(self):
        """Test using a function as combiner."""
        config = (CombinedConfigurationBuilder()
                  .with_combiner(lambda node1, node2, combiner: node2.copy())
                  .add_mapping_source({"a": 1})
                  .add_mapping_source({"b": 2})
                  .build())

        assert config.keys() == ["b"]


class TestDefinitionFiles:
    """Test loading definition files."""

    def test_load_definition_file(self, fixtures_dir):
        """Test loading the definition fixture."""
        config = load_combined_configuration(fixtures_dir / "definition.yaml")

        assert isinstance(config.node_combiner, OverrideCombiner)
        assert config.get_number_of_configurations() == 3
        assert config.get_configuration_names() == {"first", "second", "defaults"}
        assert config.get_string("gui.bgcolor") == "green"
        assert config.get_string("mail.host") == "mailhost.com"
        assert config.get_max_index("database.tables.table") == 0
        assert config.get_int("app.timeout") == 30
        assert config.get_list("app.hosts") == ["alpha", "beta"]

    def test_relative_paths(self, tmp_path):
        """Test that paths are resolved relative to the definition file."""
        (tmp_path / "conf").mkdir()
        (tmp_path / "conf" / "app.yaml").write_text(yaml.dump({'name': 'app'}))
        definition = tmp_path / "conf" / "definition.yaml"
        definition.write_text(yaml.dump({
            'sources': [{'type': 'yaml', 'path': 'app.yaml', 'at': 'settings'}]
        }))

        config = load_combined_configuration(definition)
        assert config.get_string("settings.name") == "app"

    def test_invalid_definition_file(self, tmp_path):
        """Test that invalid definitions raise validation errors."""
        definition = tmp_path / "definition.yaml"
        definition.write_text(yaml.dump({'sources': [{'type': 'unknown'}]}))

        with pytest.raises(ConfigurationValidationError):
            load_combined_configuration(definition)

    def test_missing_definition_file(self, tmp_path):
        """Test that a missing definition file raises an error."""
        with pytest.raises(ConfigurationError):
            load_combined_configuration(tmp_path / "missing.yaml")


class TestUtilityFunctions:
    """Test utility functions."""

    def test_load_yaml_configuration(self, fixtures_dir):
        """Test loading a single file."""
        config = load_yaml_configuration(fixtures_dir / "testcombine2.yaml")
        assert isinstance(config, YAMLConfiguration)
        assert config.get_string("mail.host") == "mailhost.com"

    def test_load_layered_configuration(self, fixtures_dir, tmp_path):
        """Test that the environment overrides files and missing files are skipped."""
        with patch.dict(os.environ, {'APP_GUI_LEVEL': '9'}):
            config = load_layered_configuration(
                fixtures_dir / "testcombine1.yaml",
                tmp_path / "missing.yaml",
                fixtures_dir / "testcombine2.yaml",
                env_prefix="APP_"
            )

        assert config.get_configuration_name_list() == ["environment", None, None]
        assert config.get_int("gui.level") == 9
        assert config.get_string("gui.bgcolor") == "green"
        assert config.get_string("gui.fgcolor") == "blue"

    def test_create_combined_builder(self):
        """Test builder creation."""
        assert isinstance(create_combined_builder(), CombinedConfigurationBuilder)
