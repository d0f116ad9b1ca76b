"""
settings_loader.py

Configuration management for the concurrence clustering library.
Loads and validates settings from YAML configuration with environment variable substitution.

Features:
- YAML configuration loading with validation
- Environment variable substitution (${VAR_NAME} syntax)
- Singleton pattern for global settings access
- Type-safe configuration with Pydantic models
- Default values when no configuration file exists
"""

import os
import re
import yaml
import logging
from typing import Any, List, Optional
from pydantic import BaseModel, Field, field_validator
from pathlib import Path

from concurrence_clustering.schemas.data_models import (
    ClusterAlgorithm,
    QualityModelType,
    ResolutionMode,
    SelectorType,
    SimilarityType,
)
from concurrence_clustering.utils.error_handling import ConfigurationError

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models (Pydantic)
# =============================================================================

class ServiceSettings(BaseModel):
    """General library settings."""
    name: str = Field(default="concurrence-clustering", description="Name attached to log events")
    version: str = Field(default="1.0.0", description="Library version attached to log events")
    environment: str = Field(default="production", description="Environment attached to log events (development, staging, production)")


class LouvainSettings(BaseModel):
    """Louvain partition optimizer settings."""
    quality_model: QualityModelType = Field(default=QualityModelType.MODULARITY, description="Quality model to maximize")
    resolution_parameter: float = Field(default=1.0, ge=0.0, description="Resolution parameter r")
    selector: SelectorType = Field(default=SelectorType.SEQUENTIAL, description="Move selector (sequential or priority)")
    resolution: ResolutionMode = Field(default=ResolutionMode.MULTI, description="Resolution mode (single or multi)")
    shuffle: bool = Field(default=False, description="Shuffle node visit order")
    seed: Optional[int] = Field(default=None, description="Random seed for shuffled visit orders")


class LeidenSettings(LouvainSettings):
    """Leiden partition optimizer settings."""
    quality_model: QualityModelType = Field(default=QualityModelType.CPM, description="Quality model to maximize")
    resolution_parameter: float = Field(default=0.05, ge=0.0, description="Resolution parameter r")


class DBSCANSettings(BaseModel):
    """DBSCAN clustering algorithm settings."""
    eps: float = Field(default=0.5, ge=0.0, le=1.0, description="Neighborhood radius (sim + eps >= 1)")
    min_points: int = Field(default=3, ge=1, description="Minimum neighborhood size, center included")
    similarity: SimilarityType = Field(default=SimilarityType.PLAIN, description="Similarity transform")


class AgglomerativeSettings(BaseModel):
    """Agglomerative clustering algorithm settings."""
    eps: float = Field(default=0.5, ge=0.0, description="Largest merge distance (1 - similarity)")
    similarity: SimilarityType = Field(default=SimilarityType.PLAIN, description="Similarity transform")


class ClusteringAlgorithmsSettings(BaseModel):
    """Algorithm-specific settings."""
    louvain: LouvainSettings = Field(default_factory=LouvainSettings)
    leiden: LeidenSettings = Field(default_factory=LeidenSettings)
    dbscan: DBSCANSettings = Field(default_factory=DBSCANSettings)
    agglomerative: AgglomerativeSettings = Field(default_factory=AgglomerativeSettings)


class ClusteringSettings(BaseModel):
    """Main clustering configuration."""
    default_algorithm: ClusterAlgorithm = Field(default=ClusterAlgorithm.LOUVAIN, description="Default clustering algorithm")
    small_graph_threshold: int = Field(default=100, ge=1, description="Graphs below this node count get agglomerative recommended")
    algorithms: ClusteringAlgorithmsSettings = Field(default_factory=ClusteringAlgorithmsSettings)


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format (json or console)")
    file: Optional[str] = Field(default=None, description="Optional log file path")

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("format")
    @classmethod
    def validate_format(cls, value: str) -> str:
        if value not in ("json", "console"):
            raise ValueError(f"Log format must be 'json' or 'console', got {value}")
        return value


class Settings(BaseModel):
    """Root configuration model."""
    service: ServiceSettings = Field(default_factory=ServiceSettings)
    clustering: ClusteringSettings = Field(default_factory=ClusteringSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# =============================================================================
# Configuration Manager (Singleton)
# =============================================================================

class ConfigManager:
    """
    Singleton configuration manager that loads and caches settings.

    Features:
    - Loads YAML configuration from file
    - Substitutes environment variables using ${VAR_NAME} syntax
    - Validates configuration using Pydantic models
    - Falls back to defaults when no configuration file is found
    """

    _instance: Optional['ConfigManager'] = None
    _settings: Optional[Settings] = None

    def __new__(cls):
        """Ensure singleton pattern."""
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
        return cls._instance

    @classmethod
    def load_config(cls, config_path: Optional[str] = None) -> Settings:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to configuration file. If None, searches the
                default locations and falls back to built-in defaults.

        Returns:
            Settings object with validated configuration

        Raises:
            FileNotFoundError: If an explicit configuration file is not found
            ConfigurationError: If configuration is invalid
        """
        if cls._settings is not None:
            return cls._settings

        # Determine config path
        if config_path is None:
            possible_paths: List[Path] = []
            if os.getenv("CONFIG_PATH"):
                possible_paths.append(Path(os.environ["CONFIG_PATH"]))
            possible_paths.append(Path("config/settings.yaml"))

            config_path_obj = None
            for path in possible_paths:
                if path.exists():
                    config_path_obj = path
                    break

            if config_path_obj is None:
                logger.info("No configuration file found, using default settings")
                cls._settings = Settings()
                return cls._settings
        else:
            config_path_obj = Path(config_path)
            if not config_path_obj.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")

        logger.info(f"Loading configuration from: {config_path_obj}")

        # Load YAML file
        try:
            with open(config_path_obj, 'r') as f:
                raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Failed to load YAML configuration: {e}")
            raise ConfigurationError(
                f"Invalid YAML configuration: {e}",
                details={"path": str(config_path_obj)},
            ) from e

        # Substitute environment variables
        config_dict = cls._substitute_env_vars(raw_config)

        # Validate and create Settings object
        try:
            cls._settings = Settings(**config_dict)
        except (TypeError, ValueError) as e:
            logger.error(f"Configuration validation failed: {e}")
            raise ConfigurationError(
                f"Invalid configuration: {e}",
                details={"path": str(config_path_obj)},
            ) from e

        logger.info("Configuration loaded and validated successfully")
        return cls._settings

    @classmethod
    def get_settings(cls) -> Settings:
        """
        Get cached settings. Loads from default path if not already loaded.

        Returns:
            Settings object
        """
        if cls._settings is None:
            cls.load_config()
        return cls._settings

    @classmethod
    def _substitute_env_vars(cls, config: Any) -> Any:
        """
        Recursively substitute environment variables in configuration.

        Supports ${VAR_NAME} and ${VAR_NAME:default_value} syntax.

        Args:
            config: Configuration dictionary or value

        Returns:
            Configuration with substituted values
        """
        if isinstance(config, dict):
            return {k: cls._substitute_env_vars(v) for k, v in config.items()}
        elif isinstance(config, list):
            return [cls._substitute_env_vars(item) for item in config]
        elif isinstance(config, str):
            # Match ${VAR_NAME} or ${VAR_NAME:default}
            pattern = r'\$\{([^}:]+)(?::([^}]*))?\}'

            def replace_var(match):
                var_name = match.group(1)
                default_value = match.group(2) if match.group(2) is not None else ""
                return os.getenv(var_name, default_value)

            return re.sub(pattern, replace_var, config)
        else:
            return config

    @classmethod
    def reload_config(cls, config_path: Optional[str] = None) -> Settings:
        """
        Reload configuration from file.

        Args:
            config_path: Path to configuration file

        Returns:
            Reloaded Settings object
        """
        cls._settings = None
        return cls.load_config(config_path)


# =============================================================================
# Convenience Functions
# =============================================================================

def get_settings() -> Settings:
    """
    Get library settings (convenience function).

    Returns:
        Settings object
    """
    return ConfigManager.get_settings()
