"""Unit tests for configuration management module."""

import json
import os
from pathlib import Path
from typing import Any

import pytest
import yaml
from pydantic import ValidationError

from taskgraph.config import (
    ApiConfig,
    HierarchyConfig,
    TaskGraphConfig,
    TraversalConfig,
    get_config,
    load_config,
    reset_config,
)


@pytest.fixture
def valid_config_dict() -> dict[str, Any]:
    """Fixture providing valid configuration dictionary."""
    return {
        "traversal": {
            "default_max_depth": 5,
            "max_depth_limit": 20,
        },
        "hierarchy": {
            "allow_reparent": False,
        },
        "api": {
            "duplicate_edge_status": 400,
        },
        "logging_level": "DEBUG",
        "json_logs": False,
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, valid_config_dict: dict[str, Any]) -> Path:
    """Fixture providing temporary YAML config file."""
    config_path = tmp_path / "config.yaml"
    with config_path.open("w") as f:
        yaml.dump(valid_config_dict, f)
    return config_path


@pytest.fixture
def temp_json_config_file(tmp_path: Path, valid_config_dict: dict[str, Any]) -> Path:
    """Fixture providing temporary JSON config file (JSON is a YAML subset)."""
    config_path = tmp_path / "config.json"
    with config_path.open("w") as f:
        json.dump(valid_config_dict, f)
    return config_path


@pytest.fixture(autouse=True)
def reset_config_singleton():
    """Reset configuration singleton before and after each test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture(autouse=True)
def clean_env_vars(monkeypatch):
    """Clean environment variables before each test."""
    for key in list(os.environ.keys()):
        if key.startswith("TASKGRAPH_"):
            monkeypatch.delenv(key, raising=False)


class TestTraversalConfig:
    """Tests for TraversalConfig model."""

    def test_defaults(self):
        """Test default depth values."""
        config = TraversalConfig()
        assert config.default_max_depth == 10
        assert config.max_depth_limit == 100

    def test_negative_default_rejected(self):
        """Test default_max_depth must be non-negative."""
        with pytest.raises(ValidationError):
            TraversalConfig(default_max_depth=-1)

    def test_zero_limit_rejected(self):
        """Test max_depth_limit must be at least 1."""
        with pytest.raises(ValidationError):
            TraversalConfig(max_depth_limit=0)

    def test_default_above_limit_rejected(self):
        """Test default_max_depth may not exceed max_depth_limit."""
        with pytest.raises(ValidationError, match="must not exceed"):
            TraversalConfig(default_max_depth=30, max_depth_limit=20)


class TestHierarchyConfig:
    """Tests for HierarchyConfig model."""

    def test_reparent_allowed_by_default(self):
        assert HierarchyConfig().allow_reparent is True


class TestApiConfig:
    """Tests for ApiConfig model."""

    def test_default_status(self):
        assert ApiConfig().duplicate_edge_status == 409

    @pytest.mark.parametrize("status", [400, 409])
    def test_allowed_statuses(self, status):
        assert ApiConfig(duplicate_edge_status=status).duplicate_edge_status == status

    @pytest.mark.parametrize("status", [200, 404, 422, 500])
    def test_other_statuses_rejected(self, status):
        """Test statuses outside the 400/409 convention are rejected."""
        with pytest.raises(ValidationError, match="400 or 409"):
            ApiConfig(duplicate_edge_status=status)


class TestTaskGraphConfig:
    """Tests for the root configuration model."""

    def test_empty_config_is_valid(self):
        """Test every section has defaults."""
        config = TaskGraphConfig()
        assert config.traversal.default_max_depth == 10
        assert config.hierarchy.allow_reparent is True
        assert config.api.duplicate_edge_status == 409
        assert config.logging_level == "INFO"
        assert config.json_logs is True

    def test_logging_level_validation(self):
        """Test logging level validation."""
        for level in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            assert TaskGraphConfig(logging_level=level).logging_level == level

        with pytest.raises(ValidationError):
            TaskGraphConfig(logging_level="VERBOSE")

    def test_nested_validation_errors(self):
        """Test validation errors in nested sections surface."""
        with pytest.raises(ValidationError) as exc_info:
            TaskGraphConfig(traversal={"default_max_depth": -5})

        assert "default_max_depth" in str(exc_info.value)

    def test_validate_config_defaults_warn_on_high_limit(self):
        """Test the default limit of 100 is reported as high."""
        warnings = TaskGraphConfig().validate_config()
        assert len(warnings) == 1
        assert "max_depth_limit is high" in warnings[0]

    def test_validate_config_warnings(self):
        """Test every warning condition is reported."""
        config = TaskGraphConfig(
            traversal={"default_max_depth": 0, "max_depth_limit": 10},
            hierarchy={"allow_reparent": False},
        )

        warnings = config.validate_config()

        assert any("default_max_depth is 0" in w for w in warnings)
        assert any("move_subtask" in w for w in warnings)
        assert not any("max_depth_limit is high" in w for w in warnings)

    def test_validate_config_no_warnings(self):
        config = TaskGraphConfig(traversal={"default_max_depth": 5, "max_depth_limit": 20})
        assert config.validate_config() == []


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_yaml_config(self, temp_config_file):
        """Test loading configuration from YAML file."""
        config = load_config(temp_config_file)
        assert isinstance(config, TaskGraphConfig)
        assert config.traversal.default_max_depth == 5
        assert config.hierarchy.allow_reparent is False
        assert config.api.duplicate_edge_status == 400

    def test_load_json_config(self, temp_json_config_file):
        """Test loading configuration from JSON file."""
        config = load_config(temp_json_config_file)
        assert isinstance(config, TaskGraphConfig)
        assert config.traversal.max_depth_limit == 20

    def test_load_config_not_found(self, tmp_path):
        """Test load_config raises FileNotFoundError for missing file."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nonexistent.yaml")

    def test_load_config_invalid_yaml(self, tmp_path):
        """Test load_config raises ValueError for invalid YAML."""
        config_path = tmp_path / "invalid.yaml"
        config_path.write_text("invalid: yaml: content: [")

        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config(config_path)

    def test_load_config_non_mapping(self, tmp_path):
        """Test a YAML list is rejected."""
        config_path = tmp_path / "list.yaml"
        config_path.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="mapping"):
            load_config(config_path)

    def test_load_config_empty_file(self, tmp_path):
        """Test an empty file yields the defaults."""
        config_path = tmp_path / "empty.yaml"
        config_path.write_text("")

        config = load_config(config_path)
        assert config == TaskGraphConfig()

    def test_load_config_validation_error(self, tmp_path):
        """Test load_config raises ValueError for invalid configuration."""
        config_path = tmp_path / "config.yaml"
        with config_path.open("w") as f:
            yaml.dump({"api": {"duplicate_edge_status": 418}}, f)

        with pytest.raises(ValueError, match="duplicate_edge_status"):
            load_config(config_path)

    def test_load_config_default_location(self, tmp_path, valid_config_dict, monkeypatch):
        """Test load_config finds taskgraph.yaml in the current directory."""
        monkeypatch.chdir(tmp_path)
        with Path("taskgraph.yaml").open("w") as f:
            yaml.dump(valid_config_dict, f)

        config = load_config()
        assert config.traversal.default_max_depth == 5

    def test_load_config_default_location_not_found(self, tmp_path, monkeypatch):
        """Test load_config falls back to defaults when no file is present."""
        monkeypatch.chdir(tmp_path)

        config = load_config()
        assert config == TaskGraphConfig()


class TestEnvironmentVariableOverrides:
    """Tests for environment variable override support."""

    def test_depth_override(self, temp_config_file, monkeypatch):
        """Test TASKGRAPH_TRAVERSAL_DEFAULT_MAX_DEPTH overrides file value."""
        monkeypatch.setenv("TASKGRAPH_TRAVERSAL_DEFAULT_MAX_DEPTH", "7")

        config = load_config(temp_config_file)
        assert config.traversal.default_max_depth == 7
        assert config.traversal.max_depth_limit == 20

    def test_bool_override(self, temp_config_file, monkeypatch):
        """Test boolean environment variable override."""
        monkeypatch.setenv("TASKGRAPH_HIERARCHY_ALLOW_REPARENT", "true")

        config = load_config(temp_config_file)
        assert config.hierarchy.allow_reparent is True

    def test_multiple_overrides(self, temp_config_file, monkeypatch):
        """Test multiple environment variable overrides."""
        monkeypatch.setenv("TASKGRAPH_API_DUPLICATE_EDGE_STATUS", "409")
        monkeypatch.setenv("TASKGRAPH_LOGGING_LEVEL", "WARNING")
        monkeypatch.setenv("TASKGRAPH_JSON_LOGS", "1")

        config = load_config(temp_config_file)
        assert config.api.duplicate_edge_status == 409
        assert config.logging_level == "WARNING"
        assert config.json_logs is True

    def test_overrides_without_file(self, monkeypatch):
        """Test from_env applies overrides to the defaults."""
        monkeypatch.setenv("TASKGRAPH_TRAVERSAL_MAX_DEPTH_LIMIT", "30")

        config = TaskGraphConfig.from_env()
        assert config.traversal.max_depth_limit == 30
        assert config.traversal.default_max_depth == 10

    def test_invalid_override_rejected(self, monkeypatch):
        """Test an override that breaks validation raises."""
        monkeypatch.setenv("TASKGRAPH_API_DUPLICATE_EDGE_STATUS", "201")

        with pytest.raises(ValidationError):
            TaskGraphConfig.from_env()


class TestGetConfig:
    """Tests for get_config singleton function."""

    def test_get_config_singleton(self, temp_config_file):
        """Test get_config returns same instance."""
        config1 = get_config(temp_config_file)
        config2 = get_config()

        assert config1 is config2

    def test_get_config_reload(self, temp_config_file, tmp_path, valid_config_dict):
        """Test get_config with reload parameter."""
        config1 = get_config(temp_config_file)
        assert config1.traversal.default_max_depth == 5

        modified_config = dict(valid_config_dict)
        modified_config["traversal"] = {"default_max_depth": 3, "max_depth_limit": 20}
        modified_path = tmp_path / "modified.yaml"
        with modified_path.open("w") as f:
            yaml.dump(modified_config, f)

        config2 = get_config(modified_path, reload=True)
        assert config2.traversal.default_max_depth == 3

    def test_reset_config(self, temp_config_file):
        """Test reset_config clears cached instance."""
        config1 = get_config(temp_config_file)
        reset_config()
        config2 = get_config(temp_config_file)

        assert config1 is not config2
