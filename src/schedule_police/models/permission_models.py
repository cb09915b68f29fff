import typing

import pydantic

from schedule_police.models.attendance_models import Shift
from schedule_police.utils.base_types import Initial, IsoTimestamp, PermissionId, ShiftId

PermissionStatus = typing.Literal["pending", "approved", "rejected"]
PermissionAction = typing.Literal["approve", "reject"]

PERMISSION_STATUSES: tuple[PermissionStatus, ...] = ("pending", "approved", "rejected")

UNKNOWN_SHIFT_FIELD = "UNKNOWN"


class PermissionItemModel(pydantic.BaseModel):
    """
    A late-arrival permission as stored in the permissions table.

    Table Schema:
      - PK: id (UUID4 generated when the request is created)
      - GSI StatusCreatedAtIndex: status / createdAt
      - GSI InitialCreatedAtIndex: initial / createdAt
    """

    id: PermissionId
    initial: Initial
    reason: str
    className: str
    room: str
    course: str
    shiftId: typing.Optional[ShiftId] = None
    status: PermissionStatus = "pending"
    statusReason: typing.Optional[str] = None
    createdAt: IsoTimestamp


class PermissionShiftModel(pydantic.BaseModel):
    shiftId: str
    start: str
    end: str

    @classmethod
    def from_shift(cls, shift: typing.Optional[Shift]) -> "PermissionShiftModel":
        if shift is None:
            return cls(shiftId=UNKNOWN_SHIFT_FIELD, start=UNKNOWN_SHIFT_FIELD, end=UNKNOWN_SHIFT_FIELD)
        return cls(shiftId=shift.shiftId, start=shift.start, end=shift.end)


class PermissionWithShiftModel(PermissionItemModel):
    shift: PermissionShiftModel


class PermissionActionRequestModel(pydantic.BaseModel):
    """Body of PATCH /permissions."""

    action: PermissionAction
    id: PermissionId = pydantic.Field(min_length=1)
    reason: typing.Optional[str] = None

    model_config = pydantic.ConfigDict(extra="forbid")
