import logging
import typing

import pydantic
import requests

from schedule_police.models.attendance_models import AttendanceSnapshot, Shift

_LOGGER = logging.getLogger(__name__)
_LOGGER.setLevel(logging.INFO)

SHIFTS_PATH = "/Lecturer/GetShifts"
CURRENT_ATTENDANCE_PATH = "/Lecturer/GetCurrentShiftAttendance"


class MessierApiError(Exception):
    def __init__(self, msg: str, status_code: int = 502) -> None:
        super().__init__(msg)
        self.status_code = status_code


class MessierClient:
    """
    Client for the Messier attendance API. Every request carries the shared
    X-Recsel-Secret header and is bounded by the configured timeout.
    """

    def __init__(self, api_secret: str, api_base_url: str, timeout_seconds: float) -> None:
        self.api_secret = api_secret
        self.api_base_url = api_base_url
        self.timeout_seconds = timeout_seconds

    def _get_json(self, path: str) -> typing.Any:
        url = f"{self.api_base_url}{path}"
        try:
            response = requests.get(url, headers={"X-Recsel-Secret": self.api_secret}, timeout=self.timeout_seconds)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout:
            _LOGGER.error(f"Messier request to {path} timed out.")
            raise MessierApiError("Attendance service request timed out.", 504)
        except requests.exceptions.RequestException as e:
            _LOGGER.error(f"Messier request to {path} failed: {e}")
            raise MessierApiError(f"Failed to communicate with attendance service: {str(e)}")
        except ValueError as e:
            _LOGGER.error(f"Messier returned a non-JSON body for {path}: {e}")
            raise MessierApiError("Attendance service returned an invalid response.")

    def get_attendance_data(self) -> AttendanceSnapshot:
        """
        Fetches the current shift and the attendance of every class running in it.
        The shift is None when Messier reports that no shift is in progress.
        """
        payload = self._get_json(CURRENT_ATTENDANCE_PATH)
        try:
            snapshot = AttendanceSnapshot.model_validate(payload)
        except pydantic.ValidationError as e:
            _LOGGER.error(f"Unexpected attendance payload from Messier: {e}", exc_info=True)
            raise MessierApiError("Attendance service returned an unexpected response structure.")

        _LOGGER.info(f"Fetched {len(snapshot.attendance)} attendance records for shift {snapshot.shift_id}")
        return snapshot

    def get_shifts(self) -> list[Shift]:
        payload = self._get_json(SHIFTS_PATH)
        if not isinstance(payload, list):
            _LOGGER.error(f"Expected a list of shifts from Messier, got {type(payload).__name__}")
            raise MessierApiError("Attendance service returned an unexpected shift list.")
        try:
            return [Shift.model_validate(item) for item in payload]
        except pydantic.ValidationError as e:
            _LOGGER.error(f"Unexpected shift payload from Messier: {e}", exc_info=True)
            raise MessierApiError("Attendance service returned an unexpected shift structure.")
