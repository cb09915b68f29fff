import typing

import pydantic

from schedule_police.utils.base_types import LineUserId, ReplyToken


class _LineModel(pydantic.BaseModel):
    # LINE adds fields over time; anything we do not model is ignored.
    model_config = pydantic.ConfigDict(extra="ignore")


class LineEventSource(_LineModel):
    type: str
    userId: typing.Optional[LineUserId] = None
    groupId: typing.Optional[str] = None
    roomId: typing.Optional[str] = None


class LineMessage(_LineModel):
    type: str
    id: typing.Optional[str] = None
    text: typing.Optional[str] = None


class LineWebhookEvent(_LineModel):
    type: str
    replyToken: typing.Optional[ReplyToken] = None
    source: typing.Optional[LineEventSource] = None
    message: typing.Optional[LineMessage] = None
    timestamp: typing.Optional[int] = None

    @property
    def text(self) -> typing.Optional[str]:
        if self.message is None or self.message.type != "text":
            return None
        return self.message.text

    @property
    def user_id(self) -> typing.Optional[LineUserId]:
        return self.source.userId if self.source else None


class LineWebhookBody(_LineModel):
    destination: typing.Optional[str] = None
    events: list[LineWebhookEvent] = pydantic.Field(default_factory=list)
