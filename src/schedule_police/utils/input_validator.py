import logging

_LOGGER = logging.getLogger(__name__)
_LOGGER.setLevel(logging.INFO)

DEFAULT_MAX_LENGTH = 500
# Share of control characters (tab and newlines excluded) a chat text may contain, in percent.
MAX_CONTROL_CHAR_PERCENTAGE = 5


class SuspiciousInputError(ValueError):
    pass


def _control_char_percentage(text: str) -> float:
    control_chars = [c for c in text if ord(c) < 32 and c not in "\n\r\t"]
    return len(control_chars) * 100 / len(text)


class InputValidator:
    """
    Bounds free text typed by assistants and administrators before it is stored.

    Emptiness is not checked here; each caller decides whether a blank value is allowed.
    """

    MAX_LENGTHS = {
        "reason": 500,
        "status_reason": 500,
        "region": 50,
    }

    @classmethod
    def validate_field(cls, text: str, field_name: str) -> None:
        """
        :raises SuspiciousInputError: If the text is too long or mostly control characters
        """
        if not isinstance(text, str):
            raise SuspiciousInputError(f"{field_name} must be a string")
        if not text:
            return

        limit = cls.MAX_LENGTHS.get(field_name, DEFAULT_MAX_LENGTH)
        if len(text) > limit:
            _LOGGER.warning(f"Rejected {field_name}: {len(text)} characters, limit is {limit}")
            raise SuspiciousInputError(f"{field_name} exceeds maximum length of {limit} characters")

        percentage = _control_char_percentage(text)
        if percentage > MAX_CONTROL_CHAR_PERCENTAGE:
            _LOGGER.warning(f"Rejected {field_name}: {percentage:.1f}% control characters")
            raise SuspiciousInputError(f"{field_name} contains too many control characters")

    @classmethod
    def sanitize_for_logging(cls, text: str, max_length: int = 100) -> str:
        """Flattens chat text onto one line and shortens it so it can be logged safely."""
        flattened = " ".join(text.split())
        if len(flattened) <= max_length:
            return flattened
        return f"{flattened[:max_length]}..."
