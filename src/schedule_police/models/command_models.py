import typing

import pydantic


class _ChatCommand(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(frozen=True)


class HelpCommand(_ChatCommand):
    kind: typing.Literal["help"] = "help"


class ConnectLineIdCommand(_ChatCommand):
    kind: typing.Literal["connect_line_id"] = "connect_line_id"
    token: str


class NotifyScheduleCommand(_ChatCommand):
    kind: typing.Literal["notify_schedule"] = "notify_schedule"


class CheckScheduleCommand(_ChatCommand):
    kind: typing.Literal["check_schedule"] = "check_schedule"
    region: typing.Optional[str] = None


class LatePermissionCommand(_ChatCommand):
    kind: typing.Literal["late_permission"] = "late_permission"
    reason: typing.Optional[str] = None


class UnrecognizedCommand(_ChatCommand):
    kind: typing.Literal["unrecognized"] = "unrecognized"
    text: str


ChatCommand = typing.Union[
    HelpCommand,
    ConnectLineIdCommand,
    NotifyScheduleCommand,
    CheckScheduleCommand,
    LatePermissionCommand,
    UnrecognizedCommand,
]
