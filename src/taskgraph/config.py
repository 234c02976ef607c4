"""Configuration Management with Pydantic.

This module implements configuration models using Pydantic for parsing and
validation of YAML/JSON configuration files with environment variable overrides.
Every section has defaults, so an empty configuration is valid.
"""

import os
import threading
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

# Initialize logger
logger = structlog.get_logger(__name__)

# Constants
DEFAULT_MAX_DEPTH = 10
DEFAULT_MAX_DEPTH_LIMIT = 100
HIGH_DEPTH_THRESHOLD = 50
ALLOWED_DUPLICATE_EDGE_STATUSES = (400, 409)


class TraversalConfig(BaseModel):
    """Tree query settings.

    Attributes:
        default_max_depth: Depth used when a tree query does not ask for one
        max_depth_limit: Upper bound applied to requested depths
    """

    default_max_depth: int = Field(
        default=DEFAULT_MAX_DEPTH,
        ge=0,
        description="Default depth for dependency and subtask trees",
    )
    max_depth_limit: int = Field(
        default=DEFAULT_MAX_DEPTH_LIMIT,
        ge=1,
        description="Requested depths above this are clamped",
    )

    @model_validator(mode="after")
    def validate_default_within_limit(self) -> "TraversalConfig":
        """Ensure the default depth does not exceed the limit.

        Raises:
            ValueError: If default_max_depth is greater than max_depth_limit
        """
        if self.default_max_depth > self.max_depth_limit:
            msg = "default_max_depth must not exceed max_depth_limit"
            raise ValueError(msg)
        return self


class HierarchyConfig(BaseModel):
    """Subtask relation settings.

    Attributes:
        allow_reparent: If True, add_subtask silently moves a child that
            already has another parent. If False, it raises
            SubtaskAlreadyParentedError and move_subtask must be used.
    """

    allow_reparent: bool = Field(
        default=True,
        description="Silently re-parent on add_subtask",
    )


class ApiConfig(BaseModel):
    """Presentation contract settings.

    Attributes:
        duplicate_edge_status: HTTP status for duplicate relations (400 or 409)
    """

    duplicate_edge_status: int = Field(
        default=409,
        description="HTTP status for EdgeAlreadyExists",
    )

    @field_validator("duplicate_edge_status")
    @classmethod
    def validate_duplicate_edge_status(cls, v: int) -> int:
        """Validate the duplicate edge status convention.

        Raises:
            ValueError: If the status is neither 400 nor 409
        """
        if v not in ALLOWED_DUPLICATE_EDGE_STATUSES:
            msg = "duplicate_edge_status must be 400 or 409"
            raise ValueError(msg)
        return v


class TaskGraphConfig(BaseModel):
    """Main configuration combining all settings.

    Attributes:
        traversal: Tree query settings
        hierarchy: Subtask relation settings
        api: Presentation contract settings
        logging_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render logs as JSON instead of console output
    """

    traversal: TraversalConfig = Field(default_factory=TraversalConfig)
    hierarchy: HierarchyConfig = Field(default_factory=HierarchyConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    logging_level: str = Field(
        default="INFO",
        description="Logging level",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    json_logs: bool = Field(
        default=True,
        description="Use JSON log rendering",
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "TaskGraphConfig":
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file

        Returns:
            Parsed and validated TaskGraphConfig instance

        Raises:
            FileNotFoundError: If configuration file doesn't exist
            ValueError: If configuration is invalid or not valid YAML
        """
        config_path = Path(path)

        if not config_path.exists():
            msg = f"Configuration file not found: {config_path}"
            raise FileNotFoundError(msg)

        logger.info("loading_configuration", path=str(config_path))

        try:
            with config_path.open() as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.exception("yaml_parse_error", error=str(e), path=str(config_path))
            msg = f"Invalid YAML in configuration file: {e}"
            raise ValueError(msg) from e

        if config_data is None:
            config_data = {}
        if not isinstance(config_data, dict):
            msg = "Configuration file must contain a mapping"
            raise ValueError(msg)  # noqa: TRY004

        config_data = cls._apply_env_overrides(config_data)
        config = cls(**config_data)

        logger.info(
            "configuration_loaded",
            default_max_depth=config.traversal.default_max_depth,
            allow_reparent=config.hierarchy.allow_reparent,
            logging_level=config.logging_level,
        )
        return config

    @classmethod
    def from_env(cls) -> "TaskGraphConfig":
        """Build a configuration from defaults plus environment overrides."""
        return cls(**cls._apply_env_overrides({}))

    @classmethod
    def _apply_env_overrides(cls, config_data: dict[str, Any]) -> dict[str, Any]:
        """Apply environment variable overrides to configuration.

        Environment variables follow the pattern: TASKGRAPH_<SECTION>_<KEY>
        Example: TASKGRAPH_TRAVERSAL_DEFAULT_MAX_DEPTH, TASKGRAPH_LOGGING_LEVEL

        Args:
            config_data: Base configuration dictionary from file

        Returns:
            Configuration dictionary with environment overrides applied
        """
        env_overrides = {
            ("traversal", "default_max_depth"): "TASKGRAPH_TRAVERSAL_DEFAULT_MAX_DEPTH",
            ("traversal", "max_depth_limit"): "TASKGRAPH_TRAVERSAL_MAX_DEPTH_LIMIT",
            ("hierarchy", "allow_reparent"): "TASKGRAPH_HIERARCHY_ALLOW_REPARENT",
            ("api", "duplicate_edge_status"): "TASKGRAPH_API_DUPLICATE_EDGE_STATUS",
            ("logging_level",): "TASKGRAPH_LOGGING_LEVEL",
            ("json_logs",): "TASKGRAPH_JSON_LOGS",
        }

        for path, env_var in env_overrides.items():
            value: Any = os.environ.get(env_var)
            if value is None:
                continue

            # Navigate to nested config section
            current = config_data
            for key in path[:-1]:
                if not isinstance(current.get(key), dict):
                    current[key] = {}
                current = current[key]

            # Convert string values to appropriate types
            if env_var.endswith(("_DEPTH", "_LIMIT", "_STATUS")):
                value = int(value)
            elif env_var.endswith(("_REPARENT", "_LOGS")):
                value = value.lower() in ("true", "1", "yes")

            current[path[-1]] = value
            logger.debug(
                "env_override_applied",
                env_var=env_var,
                config_path=".".join(path),
            )

        return config_data

    def validate_config(self) -> list[str]:
        """Validate configuration and return list of warnings.

        Returns:
            List of validation warning messages (empty if no warnings)
        """
        warnings = []

        if self.traversal.default_max_depth == 0:
            warnings.append("default_max_depth is 0 - tree queries return only the root task")

        if self.traversal.max_depth_limit > HIGH_DEPTH_THRESHOLD:
            warnings.append(
                f"max_depth_limit is high ({self.traversal.max_depth_limit}) - "
                "tree queries over shared dependencies may return very large results",
            )

        if not self.hierarchy.allow_reparent:
            warnings.append(
                "Re-parenting through add_subtask is disabled - clients must call move_subtask",
            )

        return warnings


class ConfigManager:
    """Configuration manager using singleton pattern."""

    _instance: TaskGraphConfig | None = None
    _init_lock: threading.Lock = threading.Lock()

    @classmethod
    def load_config(cls, config_path: str | Path | None = None) -> TaskGraphConfig:
        """Load configuration from file.

        Args:
            config_path: Path to configuration file. If None, looks for
                taskgraph.yaml, taskgraph.yml or taskgraph.json in the current
                directory and falls back to defaults plus environment overrides.

        Returns:
            Loaded TaskGraphConfig instance

        Raises:
            FileNotFoundError: If an explicit config file is not found
            ValueError: If config file is invalid
        """
        if config_path is None:
            for default_name in ["taskgraph.yaml", "taskgraph.yml", "taskgraph.json"]:
                default_path = Path(default_name)
                if default_path.exists():
                    config_path = default_path
                    break
            else:
                logger.debug("no_configuration_file_found_using_defaults")
                return TaskGraphConfig.from_env()

        return TaskGraphConfig.from_yaml(config_path)

    @classmethod
    def get_config(
        cls,
        config_path: str | Path | None = None,
        reload: bool = False,
    ) -> TaskGraphConfig:
        """Get configuration instance (singleton pattern).

        Uses double-checked locking so concurrent first calls load only once.

        Args:
            config_path: Path to configuration file. Only used on first call or when reload=True.
            reload: If True, force reload configuration from file.

        Returns:
            TaskGraphConfig instance
        """
        if cls._instance is not None and not reload:
            return cls._instance

        with cls._init_lock:
            if cls._instance is None or reload:
                cls._instance = cls.load_config(config_path)

            return cls._instance

    @classmethod
    def reset_config(cls) -> None:
        """Reset the configuration instance."""
        cls._instance = None


def load_config(config_path: str | Path | None = None) -> TaskGraphConfig:
    """Load configuration from file."""
    return ConfigManager.load_config(config_path)


def get_config(config_path: str | Path | None = None, reload: bool = False) -> TaskGraphConfig:
    """Get configuration instance (singleton pattern)."""
    return ConfigManager.get_config(config_path, reload)


def reset_config() -> None:
    """Reset the configuration instance."""
    ConfigManager.reset_config()


__all__ = [
    "ApiConfig",
    "HierarchyConfig",
    "TaskGraphConfig",
    "TraversalConfig",
    "get_config",
    "load_config",
    "reset_config",
]
