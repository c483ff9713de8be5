"""Tests for level/severity translation."""

import logging

import pytest

from tagtrack.models import OpCompCode, OpLevel, OpType
from tagtrack.severity import (
    DEFAULT_MAPPING,
    LEVEL_MAP,
    level_name,
    map_level,
    parse_comp_code,
    parse_op_type,
    parse_severity,
    to_logging_level,
)


class TestMapLevel:
    @pytest.mark.parametrize("level,expected", [
        ("TRACE", (OpLevel.TRACE, OpCompCode.SUCCESS)),
        ("DEBUG", (OpLevel.DEBUG, OpCompCode.SUCCESS)),
        ("INFO", (OpLevel.INFO, OpCompCode.SUCCESS)),
        ("WARN", (OpLevel.WARNING, OpCompCode.WARNING)),
        ("WARNING", (OpLevel.WARNING, OpCompCode.WARNING)),
        ("ERROR", (OpLevel.ERROR, OpCompCode.ERROR)),
        ("CRITICAL", (OpLevel.CRITICAL, OpCompCode.ERROR)),
        ("FATAL", (OpLevel.FATAL, OpCompCode.ERROR)),
        ("OFF", (OpLevel.NONE, OpCompCode.SUCCESS)),
    ])
    def test_named_levels(self, level, expected):
        assert map_level(level) == expected

    def test_every_source_level_is_mapped(self):
        for name in LEVEL_MAP:
            severity, ccode = map_level(name)
            assert isinstance(severity, OpLevel)
            assert isinstance(ccode, OpCompCode)

    def test_case_insensitive(self):
        assert map_level("error") == (OpLevel.ERROR, OpCompCode.ERROR)

    @pytest.mark.parametrize("level", ["VERBOSE", "", None, "  "])
    def test_unknown_maps_to_default(self, level):
        assert map_level(level) == DEFAULT_MAPPING

    @pytest.mark.parametrize("number,name", [
        (0, "NOTSET"),
        (5, "TRACE"),
        (logging.DEBUG, "DEBUG"),
        (logging.INFO, "INFO"),
        (25, "INFO"),
        (logging.WARNING, "WARNING"),
        (logging.ERROR, "ERROR"),
        (logging.CRITICAL, "CRITICAL"),
        (99, "CRITICAL"),
        (-3, "NOTSET"),
    ])
    def test_numeric_levels(self, number, name):
        assert level_name(number) == name

    def test_numeric_level_mapping_is_total(self):
        for number in range(-5, 120):
            severity, ccode = map_level(number)
            assert isinstance(severity, OpLevel)
            assert isinstance(ccode, OpCompCode)


class TestParsing:
    def test_parse_severity_name(self):
        assert parse_severity("error") is OpLevel.ERROR
        assert parse_severity("WARN") is OpLevel.WARNING

    def test_parse_severity_numeric_clamped(self):
        assert parse_severity("6") is OpLevel.ERROR
        assert parse_severity("42") is OpLevel.HALT
        assert parse_severity("-1") is OpLevel.NONE

    def test_parse_severity_invalid(self):
        with pytest.raises(ValueError):
            parse_severity("LOUD")

    def test_parse_comp_code(self):
        assert parse_comp_code("WARNING") is OpCompCode.WARNING
        assert parse_comp_code("2") is OpCompCode.ERROR

    def test_parse_comp_code_invalid(self):
        with pytest.raises(ValueError):
            parse_comp_code("7")
        with pytest.raises(ValueError):
            parse_comp_code("maybe")

    def test_parse_op_type(self):
        assert parse_op_type("send") is OpType.SEND
        assert parse_op_type(str(OpType.CALL.value)) is OpType.CALL

    def test_parse_op_type_invalid(self):
        with pytest.raises(ValueError):
            parse_op_type("teleport")


class TestToLoggingLevel:
    def test_every_severity_has_a_logging_level(self):
        for sev in OpLevel:
            assert to_logging_level(sev) in (
                logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL,
            )

    def test_fatal_maps_to_critical(self):
        assert to_logging_level(OpLevel.FATAL) == logging.CRITICAL
        assert to_logging_level(OpLevel.NOTICE) == logging.WARNING
