"""Tests for correlation-aware logging."""

import logging

import pytest

from stringiconv import InvalidMultiByteSequence, Transcoder
from stringiconv.shared.logging import CorrelationLogger, get_logger


class TestCorrelationLogger:
    """Test CorrelationLogger records."""

    def test_component_defaults_to_module_name(self):
        """Test the default component name."""
        logger = get_logger("stringiconv.conversion.engine")

        assert isinstance(logger, CorrelationLogger)
        assert logger.component == "engine"
        assert logger.correlation_id is None

    def test_records_carry_correlation_info(self, caplog):
        """Test that extra fields are attached to records."""
        logger = get_logger("stringiconv.test", "req-1", "unit")

        with caplog.at_level(logging.INFO, logger="stringiconv.test"):
            logger.info("Converted", extra={"output_size": 4})

        record = caplog.records[-1]
        assert record.getMessage() == "Converted"
        assert record.component == "unit"
        assert record.correlation_id == "req-1"
        assert record.output_size == 4

    def test_is_enabled_for(self, caplog):
        """Test level checks against the underlying logger."""
        logger = get_logger("stringiconv.level_test")

        with caplog.at_level(logging.WARNING, logger="stringiconv.level_test"):
            assert not logger.is_enabled_for(logging.DEBUG)
            assert logger.is_enabled_for(logging.ERROR)

    def test_engine_failure_warning(self, caplog):
        """Test that conversion failures are logged with their location."""
        transcoder = Transcoder(correlation_id="req-2")

        with caplog.at_level(logging.WARNING, logger="stringiconv"):
            with pytest.raises(InvalidMultiByteSequence):
                transcoder.convert(b"ab\xff", "UTF-8", "UTF-8")

        record = next(r for r in caplog.records if r.getMessage() == "Conversion failed")
        assert record.levelno == logging.WARNING
        assert record.correlation_id == "req-2"
        assert record.location == 2
        assert record.status == "INVALID_SEQUENCE"

    def test_only_used_levels_exposed(self):
        """Test the logging surface used by stringiconv components."""
        logger = get_logger("stringiconv.surface")

        for level in ("debug", "info", "warning"):
            assert callable(getattr(logger, level))
        assert not hasattr(logger, "exception")
