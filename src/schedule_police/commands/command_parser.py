import typing

from schedule_police.models.command_models import (
    ChatCommand,
    CheckScheduleCommand,
    ConnectLineIdCommand,
    HelpCommand,
    LatePermissionCommand,
    NotifyScheduleCommand,
    UnrecognizedCommand,
)

HELP_COMMAND = "/help"
CONNECT_LINE_ID_PREFIX = "CONNECT_LINE_ID-"
NOTIFY_SCHEDULE_COMMAND = "/notifymessier"
CHECK_SCHEDULE_COMMAND = "/checkmessier"
LATE_PERMISSION_COMMAND = "/latepermission"


def get_first_argument(text: str) -> typing.Optional[str]:
    """
    Returns the first whitespace-separated token after the command word, or None when
    the command was sent without one.
    """
    tokens = text.split()
    if len(tokens) < 2:
        return None
    return tokens[1]


def parse_command(text: typing.Optional[str]) -> ChatCommand:
    """
    Turns the text of a chat message into a command. Matching is case-sensitive and the
    first rule that matches wins, so the order below is significant.
    """
    if not text:
        return UnrecognizedCommand(text=text or "")

    if text == HELP_COMMAND:
        return HelpCommand()
    if text.startswith(CONNECT_LINE_ID_PREFIX):
        return ConnectLineIdCommand(token=text[len(CONNECT_LINE_ID_PREFIX) :].strip())
    if text == NOTIFY_SCHEDULE_COMMAND:
        return NotifyScheduleCommand()
    if text.startswith(CHECK_SCHEDULE_COMMAND):
        return CheckScheduleCommand(region=get_first_argument(text))
    if text.startswith(LATE_PERMISSION_COMMAND):
        return LatePermissionCommand(reason=get_first_argument(text))

    return UnrecognizedCommand(text=text)
