import typing

import pydantic

from schedule_police.utils.base_types import Initial, ShiftId

# Attendance statuses reported by Messier. Only the substitution-related ones matter for
# matching; anything else is carried through as a plain string.
STATUS_NORMAL = "Normal"
STATUS_SUBSTITUTED = "Substituted"
STATUS_PERMISSION = "Permission"
STATUS_SPECIAL_PERMISSION = "SpecialPermission"

REPLACED_STATUSES = frozenset({STATUS_SUBSTITUTED, STATUS_PERMISSION, STATUS_SPECIAL_PERMISSION})


class _MessierModel(pydantic.BaseModel):
    """Messier speaks PascalCase; fields are exposed in camelCase like the rest of the API."""

    model_config = pydantic.ConfigDict(populate_by_name=True, extra="ignore")


class Shift(_MessierModel):
    shiftId: ShiftId = pydantic.Field(alias="ShiftId")
    start: str = pydantic.Field(alias="Start")
    end: str = pydantic.Field(alias="End")


class LecturerDetail(_MessierModel):
    attendDate: typing.Optional[str] = pydantic.Field(default=None, alias="AttendDate")
    attendPlace: typing.Optional[str] = pydantic.Field(default=None, alias="AttendPlace")
    status: str = pydantic.Field(default=STATUS_NORMAL, alias="Status")
    userName: typing.Optional[Initial] = pydantic.Field(default=None, alias="UserName")

    @property
    def has_attended(self) -> bool:
        return bool(self.attendDate)


class LecturerPair(_MessierModel):
    first: LecturerDetail = pydantic.Field(alias="First")
    next: LecturerDetail = pydantic.Field(default_factory=LecturerDetail, alias="Next")

    @property
    def effective(self) -> LecturerDetail:
        """The lecturer actually responsible for the slot once substitution is resolved."""
        if self.first.status in REPLACED_STATUSES:
            return self.next
        return self.first


class AttendanceRecord(_MessierModel):
    campusName: str = pydantic.Field(default="", alias="CampusName")
    className: str = pydantic.Field(alias="ClassName")
    courseName: str = pydantic.Field(alias="CourseName")
    gslc: bool = pydantic.Field(default=False, alias="GSLC")
    lecturers: list[LecturerPair] = pydantic.Field(default_factory=list, alias="Lecturers")
    room: str = pydantic.Field(alias="Room")


class AttendanceSnapshot(_MessierModel):
    shift: typing.Optional[Shift] = pydantic.Field(default=None, alias="Shift")
    attendance: list[AttendanceRecord] = pydantic.Field(default_factory=list, alias="Attendance")

    @property
    def shift_id(self) -> typing.Optional[ShiftId]:
        return self.shift.shiftId if self.shift else None


class Assignment(pydantic.BaseModel):
    className: str
    room: str
    courseName: str


class NonPresentLecturer(pydantic.BaseModel):
    userName: Initial
    courseName: str
    className: str
    room: str
    campusName: str
