"""
Unit tests for configuration loading.

Tests:
- Built-in defaults
- YAML loading with environment variable substitution
- Validation errors
- Singleton caching and reload
"""

import pytest

from concurrence_clustering.config.settings_loader import (
    ConfigManager,
    Settings,
    get_settings,
)
from concurrence_clustering.schemas.data_models import (
    ClusterAlgorithm,
    QualityModelType,
    SimilarityType,
)
from concurrence_clustering.utils.error_handling import ConfigurationError


@pytest.mark.unit
class TestSettingsModels:
    """Test pydantic settings models."""

    def test_defaults(self):
        settings = Settings()
        assert settings.service.name == "concurrence-clustering"
        assert settings.clustering.default_algorithm == ClusterAlgorithm.LOUVAIN
        assert settings.clustering.algorithms.louvain.quality_model == QualityModelType.MODULARITY
        assert settings.clustering.algorithms.leiden.quality_model == QualityModelType.CPM
        assert settings.clustering.algorithms.dbscan.similarity == SimilarityType.PLAIN
        assert settings.logging.file is None

    def test_log_level_normalized(self):
        settings = Settings(logging={"level": "debug"})
        assert settings.logging.level == "DEBUG"

    def test_invalid_values_rejected(self):
        with pytest.raises(ValueError):
            Settings(logging={"level": "LOUD"})
        with pytest.raises(ValueError):
            Settings(clustering={"algorithms": {"dbscan": {"eps": 2.0}}})
        with pytest.raises(ValueError):
            Settings(clustering={"default_algorithm": "kmeans"})


@pytest.mark.unit
class TestConfigManager:
    """Test YAML loading."""

    def test_load_yaml_with_env_substitution(self, fresh_config, tmp_path, monkeypatch):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(
            "service:\n"
            "  environment: ${CLUSTERING_TEST_ENV:staging}\n"
            "clustering:\n"
            "  default_algorithm: ${CLUSTERING_TEST_ALGORITHM}\n"
            "  algorithms:\n"
            "    dbscan:\n"
            "      eps: 0.3\n"
        )
        monkeypatch.delenv("CLUSTERING_TEST_ENV", raising=False)
        monkeypatch.setenv("CLUSTERING_TEST_ALGORITHM", "dbscan")

        settings = fresh_config.load_config(str(config_file))

        assert settings.service.environment == "staging"
        assert settings.clustering.default_algorithm == ClusterAlgorithm.DBSCAN
        assert settings.clustering.algorithms.dbscan.eps == 0.3
        assert settings.clustering.algorithms.dbscan.min_points == 3

    def test_missing_explicit_file(self, fresh_config, tmp_path):
        with pytest.raises(FileNotFoundError):
            fresh_config.load_config(str(tmp_path / "missing.yaml"))

    def test_defaults_when_no_file(self, fresh_config, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("CONFIG_PATH", raising=False)
        settings = fresh_config.load_config()
        assert settings == Settings()

    def test_config_path_env(self, fresh_config, tmp_path, monkeypatch):
        config_file = tmp_path / "custom.yaml"
        config_file.write_text("logging:\n  format: console\n")
        monkeypatch.setenv("CONFIG_PATH", str(config_file))
        assert fresh_config.load_config().logging.format == "console"

    def test_invalid_config(self, fresh_config, tmp_path):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("logging:\n  format: xml\n")
        with pytest.raises(ConfigurationError):
            fresh_config.load_config(str(config_file))

    def test_invalid_yaml(self, fresh_config, tmp_path):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("logging: [unclosed\n")
        with pytest.raises(ConfigurationError):
            fresh_config.load_config(str(config_file))

    def test_empty_file_gives_defaults(self, fresh_config, tmp_path):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("")
        assert fresh_config.load_config(str(config_file)) == Settings()

    def test_caching_and_reload(self, fresh_config, tmp_path):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("service:\n  name: first\n")
        first = fresh_config.load_config(str(config_file))
        assert get_settings() is first
        assert ConfigManager() is ConfigManager()

        config_file.write_text("service:\n  name: second\n")
        assert fresh_config.load_config(str(config_file)) is first
        assert fresh_config.reload_config(str(config_file)).service.name == "second"

    def test_substitute_nested(self):
        result = ConfigManager._substitute_env_vars({"a": ["${UNSET_VAR_FOR_TEST:x}", 3]})
        assert result == {"a": ["x", 3]}
