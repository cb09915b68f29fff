from unittest.mock import patch

import pytest
import urllib3
from linebot.v3.messaging import ApiException

from schedule_police.utils.base_types import ReplyToken
from schedule_police.utils.line_utils import MAX_TEXT_LENGTH, LineApiError, LineMessagingClient


def _client() -> LineMessagingClient:
    return LineMessagingClient(channel_access_token="token-123", api_base_url="https://line.test", timeout_seconds=3)


@patch("schedule_police.utils.line_utils.MessagingApi")
def test_reply_message(mock_messaging_api):
    _client().reply_message(ReplyToken("reply-token"), "hello")

    reply_message = mock_messaging_api.return_value.reply_message
    reply_message.assert_called_once()
    request = reply_message.call_args.args[0]
    assert request.reply_token == "reply-token"
    assert [message.text for message in request.messages] == ["hello"]
    assert reply_message.call_args.kwargs["_request_timeout"] == 3


@patch("schedule_police.utils.line_utils.MessagingApi")
def test_push_message_truncates_long_text(mock_messaging_api):
    _client().push_message("U123", "a" * (MAX_TEXT_LENGTH + 10))

    request = mock_messaging_api.return_value.push_message.call_args.args[0]
    assert request.to == "U123"
    assert len(request.messages[0].text) == MAX_TEXT_LENGTH


@patch("schedule_police.utils.line_utils.MessagingApi")
def test_reply_message_timeout(mock_messaging_api):
    mock_messaging_api.return_value.reply_message.side_effect = urllib3.exceptions.ReadTimeoutError(
        None, "https://line.test/v2/bot/message/reply", "Read timed out."
    )

    with pytest.raises(LineApiError) as exc_info:
        _client().reply_message(ReplyToken("reply-token"), "hello")
    assert exc_info.value.status_code == 504


@patch("schedule_police.utils.line_utils.MessagingApi")
def test_push_message_connection_error(mock_messaging_api):
    mock_messaging_api.return_value.push_message.side_effect = urllib3.exceptions.ProtocolError("Connection aborted.")

    with pytest.raises(LineApiError) as exc_info:
        _client().push_message("U123", "hello")
    assert exc_info.value.status_code == 502


@patch("schedule_police.utils.line_utils.MessagingApi")
def test_reply_message_rejected_by_line(mock_messaging_api):
    mock_messaging_api.return_value.reply_message.side_effect = ApiException(status=400, reason="Bad Request")

    with pytest.raises(LineApiError) as exc_info:
        _client().reply_message(ReplyToken("reply-token"), "hello")
    assert exc_info.value.status_code == 502
    assert mock_messaging_api.return_value.reply_message.call_count == 1
