import logging
import typing

from schedule_police.models.attendance_models import (
    AttendanceRecord,
    AttendanceSnapshot,
    Assignment,
    NonPresentLecturer,
)
from schedule_police.utils.base_types import Initial

_LOGGER = logging.getLogger(__name__)
_LOGGER.setLevel(logging.INFO)


def find_current_assignment(
    attendance: typing.Iterable[AttendanceRecord],
    initial: Initial,
) -> typing.Optional[Assignment]:
    """
    Finds the class the given assistant is responsible for in the current shift.

    Records and lecturer pairs are scanned in snapshot order and the first pair whose
    effective lecturer is `initial` wins; later records are never looked at.

    :returns: The matched class/room/course, or None when the assistant has no class.
    """
    for record in attendance:
        for pair in record.lecturers:
            if pair.effective.userName == initial:
                _LOGGER.info(f"Matched {initial} to class {record.className} in room {record.room}")
                return Assignment(
                    className=record.className,
                    room=record.room,
                    courseName=record.courseName,
                )

    _LOGGER.info(f"No teaching assignment found for {initial} in the current snapshot")
    return None


def find_non_present_lecturers(snapshot: AttendanceSnapshot) -> list[NonPresentLecturer]:
    """
    Lists every effective lecturer who has not checked in yet. GSLC sessions are online
    and carry no attendance, so they are skipped.
    """
    non_present: list[NonPresentLecturer] = []
    for record in snapshot.attendance:
        if record.gslc:
            continue
        for pair in record.lecturers:
            lecturer = pair.effective
            if not lecturer.userName or lecturer.has_attended:
                continue
            non_present.append(
                NonPresentLecturer(
                    userName=lecturer.userName,
                    courseName=record.courseName,
                    className=record.className,
                    room=record.room,
                    campusName=record.campusName,
                )
            )
    return non_present
