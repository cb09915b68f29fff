import typing

from schedule_police.models.attendance_models import NonPresentLecturer, Shift

RegionMap = dict[str, list[NonPresentLecturer]]

UNKNOWN_REGION = "Unknown Campus"

HELP_MESSAGE = """Available Commands:

/checkmessier [region] - Display current teaching schedule.
/notifymessier - Display & notify current teaching schedule.
/latepermission [reason] - Request permission for being late.

To connect your line account, open the Schedule Police dashboard, request a connect code and send it here."""


def group_by_region(lecturers: typing.Iterable[NonPresentLecturer]) -> RegionMap:
    region_map: RegionMap = {}
    for lecturer in lecturers:
        region_map.setdefault(lecturer.campusName or UNKNOWN_REGION, []).append(lecturer)
    return region_map


def filter_region(region_map: RegionMap, region: typing.Optional[str]) -> RegionMap:
    """Keeps campuses whose name starts with `region`, ignoring case. No region keeps everything."""
    if not region:
        return region_map
    wanted = region.strip().lower()
    return {campus: items for campus, items in region_map.items() if campus.lower().startswith(wanted)}


def format_shift_header(shift: typing.Optional[Shift]) -> str:
    if shift is None:
        return "No shift is running right now."
    return f"Shift {shift.shiftId} ({shift.start} - {shift.end})"


def format_teaching_schedule(
    shift: typing.Optional[Shift],
    region_map: RegionMap,
    region: typing.Optional[str] = None,
) -> str:
    lines = [format_shift_header(shift)]

    if not region_map:
        if region:
            lines.append(f"Every lecturer in {region} has checked in.")
        else:
            lines.append("Every lecturer has checked in.")
        return "\n".join(lines)

    for campus in sorted(region_map):
        lines.append("")
        lines.append(f"[{campus}]")
        for lecturer in sorted(region_map[campus], key=lambda item: (item.room, item.className)):
            lines.append(f"- {lecturer.userName}: {lecturer.courseName} {lecturer.className} @ {lecturer.room}")

    return "\n".join(lines)


def format_personal_reminder(lecturer: NonPresentLecturer, shift: typing.Optional[Shift]) -> str:
    shift_text = f" for shift {shift.shiftId} ({shift.start} - {shift.end})" if shift else ""
    return (
        f"Hi {lecturer.userName}, you have not checked in{shift_text}.\n"
        f"{lecturer.courseName} {lecturer.className} @ {lecturer.room}"
    )
