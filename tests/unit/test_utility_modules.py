"""
Unit tests for utility modules.

Tests for error_handling and advanced_logging.
"""

import pytest
import structlog

from concurrence_clustering.config.settings_loader import Settings
from concurrence_clustering.utils.advanced_logging import (
    PerformanceLogger,
    add_service_context,
    configure_from_settings,
    configure_logging,
    get_logger,
    log_exceptions,
    timed,
)
from concurrence_clustering.utils.error_handling import (
    AsymmetricConcurrenceError,
    ConcurrenceClusteringError,
    ConfigurationError,
    DuplicateAssignmentError,
    InvalidGroupError,
    NodeOutOfRangeError,
    PreconditionViolationError,
    raise_precondition,
)


@pytest.mark.unit
class TestErrorHandling:
    """Test the exception hierarchy."""

    def test_error_to_dict(self):
        error = ConfigurationError("bad config", details={"path": "x.yaml"})
        data = error.to_dict()
        assert data["error_type"] == "ConfigurationError"
        assert data["error_code"] == "ConfigurationError"
        assert data["message"] == "bad config"
        assert data["details"] == {"path": "x.yaml"}
        assert str(error) == "bad config"

    def test_custom_error_code(self):
        error = ConcurrenceClusteringError("boom", error_code="E42")
        assert error.error_code == "E42"
        assert error.details == {}

    def test_precondition_hierarchy(self):
        for error_class in (AsymmetricConcurrenceError, NodeOutOfRangeError, DuplicateAssignmentError):
            assert issubclass(error_class, PreconditionViolationError)
            assert issubclass(error_class, ValueError)
        assert issubclass(InvalidGroupError, IndexError)
        assert not issubclass(ConfigurationError, ValueError)

    def test_raise_precondition(self):
        with pytest.raises(NodeOutOfRangeError) as exc_info:
            raise_precondition(NodeOutOfRangeError, "node 9 out of range", node=9, n=3)
        assert exc_info.value.details == {"node": 9, "n": 3}
        assert exc_info.value.message == "node 9 out of range"


@pytest.mark.unit
class TestAdvancedLogging:
    """Test structlog configuration and timing helpers."""

    def test_configure_logging_console(self):
        configure_logging(log_level="DEBUG", log_format="console")
        assert get_logger("test") is not None

    def test_service_context(self):
        processor = add_service_context("clusters", "1.0.0", "staging")
        event = processor(None, "info", {"event": "done"})
        assert event == {
            "event": "done",
            "service": "clusters",
            "version": "1.0.0",
            "environment": "staging",
        }
        assert "version" not in add_service_context("clusters")(None, "info", {})

    def test_configure_from_settings(self):
        settings = Settings(service={"environment": "development"}, logging={"format": "console"})
        configure_from_settings(settings)
        assert get_logger("test") is not None

    def test_configure_logging_with_file(self, tmp_path):
        log_file = tmp_path / "logs" / "clustering.log"
        configure_logging(log_level="INFO", log_format="json", log_file=str(log_file))
        assert log_file.parent.exists()

    def test_performance_logger_elapsed_time(self):
        perf = PerformanceLogger("unit_operation", item_count=10)
        assert perf.elapsed_time == 0.0
        with perf:
            assert perf.elapsed_time >= 0.0
        assert perf.end_time is not None
        assert perf.elapsed_time >= 0.0

    def test_performance_logger_propagates_errors(self):
        with pytest.raises(RuntimeError):
            with PerformanceLogger("failing_operation"):
                raise RuntimeError("failed")

    def test_timed_decorator(self):
        @timed(operation="add")
        def add(a, b):
            return a + b

        assert add(2, 3) == 5
        assert add.__name__ == "add"

    def test_log_exceptions_reraises(self):
        with pytest.raises(KeyError):
            with log_exceptions(operation="lookup"):
                {}["missing"]

    def test_log_exceptions_can_suppress(self):
        with log_exceptions(structlog.get_logger("test"), operation="lookup", reraise=False):
            raise KeyError("missing")
