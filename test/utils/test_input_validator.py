import pytest

from schedule_police.utils.input_validator import InputValidator, SuspiciousInputError


def test_validate_field_accepts_normal_text():
    InputValidator.validate_field("sick", "reason")
    InputValidator.validate_field("Stuck in traffic\non the toll road", "status_reason")
    InputValidator.validate_field("", "reason")


def test_validate_field_rejects_long_text():
    with pytest.raises(SuspiciousInputError, match="maximum length"):
        InputValidator.validate_field("a" * 501, "reason")

    with pytest.raises(SuspiciousInputError):
        InputValidator.validate_field("a" * 51, "region")


def test_validate_field_rejects_control_characters():
    with pytest.raises(SuspiciousInputError, match="control characters"):
        InputValidator.validate_field("ab\x00\x01\x02", "reason")


def test_validate_field_rejects_non_string():
    with pytest.raises(SuspiciousInputError):
        InputValidator.validate_field(123, "reason")  # type: ignore


def test_sanitize_for_logging():
    assert InputValidator.sanitize_for_logging("short") == "short"
    assert InputValidator.sanitize_for_logging("x" * 150) == "x" * 100 + "..."


def test_sanitize_for_logging_flattens_lines():
    assert InputValidator.sanitize_for_logging("/latepermission\nsick\t today") == "/latepermission sick today"
