import logging
import typing

import urllib3
from linebot.v3.messaging import (
    ApiClient,
    ApiException,
    Configuration,
    MessagingApi,
    PushMessageRequest,
    ReplyMessageRequest,
    TextMessage,
)

from schedule_police.utils.base_types import ReplyToken

_LOGGER = logging.getLogger(__name__)
_LOGGER.setLevel(logging.INFO)

# LINE rejects text messages longer than this.
MAX_TEXT_LENGTH = 5000


class LineApiError(Exception):
    def __init__(self, msg: str, status_code: int = 502) -> None:
        super().__init__(msg)
        self.status_code = status_code


def _is_timeout(error: urllib3.exceptions.HTTPError) -> bool:
    # Connection timeouts surface wrapped in MaxRetryError.
    return isinstance(error, urllib3.exceptions.TimeoutError) or isinstance(
        getattr(error, "reason", None), urllib3.exceptions.TimeoutError
    )


class LineMessagingClient:
    """
    Wrapper around the LINE Messaging API used to talk back to assistants.

    Delivery is best-effort: every failure is raised as LineApiError and it is up to the
    caller to log it. Nothing is retried.
    """

    def __init__(self, channel_access_token: str, api_base_url: str, timeout_seconds: float) -> None:
        configuration = Configuration(access_token=channel_access_token, host=api_base_url)
        configuration.retries = 0
        self.messaging_api = MessagingApi(ApiClient(configuration))
        self.timeout_seconds = timeout_seconds

    @staticmethod
    def _text_message(text: str) -> TextMessage:
        if len(text) > MAX_TEXT_LENGTH:
            _LOGGER.warning(f"Truncating LINE message from {len(text)} to {MAX_TEXT_LENGTH} characters")
            text = text[: MAX_TEXT_LENGTH - 3] + "..."
        return TextMessage(text=text)

    def _send(self, operation: str, send: typing.Callable[[], object]) -> None:
        try:
            send()
        except ApiException as e:
            _LOGGER.error(f"LINE API {operation} rejected with status {e.status}: {e.body}")
            raise LineApiError(f"LINE API {operation} failed with status {e.status}")
        except urllib3.exceptions.HTTPError as e:
            if _is_timeout(e):
                _LOGGER.error(f"LINE API {operation} timed out.")
                raise LineApiError("LINE API request timed out.", 504)
            _LOGGER.error(f"LINE API {operation} failed: {e}")
            raise LineApiError(f"Failed to communicate with LINE: {str(e)}")

    def reply_message(self, reply_token: ReplyToken, text: str) -> None:
        """Answers a webhook event. Reply tokens are single-use and expire quickly."""
        request = ReplyMessageRequest(reply_token=reply_token, messages=[self._text_message(text)])
        self._send("reply", lambda: self.messaging_api.reply_message(request, _request_timeout=self.timeout_seconds))
        _LOGGER.info("Reply delivered through LINE.")

    def push_message(self, to: str, text: str) -> None:
        """Sends an unsolicited message to a user, group or room id."""
        request = PushMessageRequest(to=to, messages=[self._text_message(text)])
        self._send("push", lambda: self.messaging_api.push_message(request, _request_timeout=self.timeout_seconds))
        _LOGGER.info(f"Push message delivered to {to}.")
