import typing

import pydantic

from schedule_police.utils.base_types import Initial, LineUserId

AssistantRole = typing.Literal["ADMIN", "AST"]


class AssistantItemModel(pydantic.BaseModel):
    """
    An assistant as stored in the assistants table.

    Table Schema:
      - PK: initial
      - GSI LineIdIndex: lineId (sparse, only linked assistants appear)
    """

    initial: Initial
    role: AssistantRole = "AST"
    lineId: typing.Optional[LineUserId] = None


class UpdateRoleRequestModel(pydantic.BaseModel):
    initial: Initial
    role: AssistantRole

    model_config = pydantic.ConfigDict(extra="forbid")


class ConnectTokenResponseModel(pydantic.BaseModel):
    connectText: str
    expiresAt: int
