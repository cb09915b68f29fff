import logging
import typing

from linebot.v3.webhook import SignatureValidator

_LOGGER = logging.getLogger(__name__)
_LOGGER.setLevel(logging.INFO)

LINE_SIGNATURE_HEADER = "x-line-signature"


class LineSignatureVerifier:
    """
    Checks that a webhook body was sent by LINE.

    LINE signs the raw request body with HMAC-SHA256 keyed by the channel secret and sends
    the base64 digest in the X-Line-Signature header. The body must be the exact bytes
    received; re-serialized JSON will not match.
    """

    def __init__(self, channel_secret: str) -> None:
        self.validator = SignatureValidator(channel_secret)

    def verify(self, raw_body: bytes, signature_header: typing.Optional[str]) -> bool:
        if not signature_header:
            _LOGGER.warning("Webhook request has no signature header.")
            return False

        if not signature_header.isascii():
            _LOGGER.warning("Webhook signature header is not ASCII.")
            return False

        try:
            body = raw_body.decode("utf-8")
        except UnicodeDecodeError:
            _LOGGER.warning("Webhook body is not valid UTF-8.")
            return False

        return self.validator.validate(body, signature_header.strip())
