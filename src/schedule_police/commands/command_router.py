import logging
import typing

from schedule_police.cloudwatch.metrics import MetricsManager
from schedule_police.commands.command_parser import parse_command
from schedule_police.dynamodb.assistants_table import AssistantLinkError, AssistantsTable
from schedule_police.dynamodb.permissions_table import PermissionsTable, PersistenceError
from schedule_police.models.attendance_models import AttendanceSnapshot
from schedule_police.models.command_models import (
    ChatCommand,
    CheckScheduleCommand,
    ConnectLineIdCommand,
    HelpCommand,
    LatePermissionCommand,
    NotifyScheduleCommand,
    UnrecognizedCommand,
)
from schedule_police.models.line_models import LineWebhookEvent
from schedule_police.models.permission_models import PermissionItemModel
from schedule_police.models.result_models import OperationResult
from schedule_police.utils.attendance_matcher import find_current_assignment, find_non_present_lecturers
from schedule_police.utils.input_validator import InputValidator, SuspiciousInputError
from schedule_police.utils.jwt_utils import JwtWrapper
from schedule_police.utils.line_utils import LineApiError, LineMessagingClient
from schedule_police.utils.messier_utils import MessierApiError, MessierClient
from schedule_police.utils.schedule_formatter import (
    HELP_MESSAGE,
    filter_region,
    format_personal_reminder,
    format_teaching_schedule,
    group_by_region,
)

_LOGGER = logging.getLogger(__name__)
_LOGGER.setLevel(logging.INFO)

NOT_LINKED_MESSAGE = "You need to link your Line account to an assistant account before requesting permission."
MISSING_REASON_MESSAGE = "Please provide a reason for the permission request."
NO_SCHEDULE_MESSAGE = "No teaching schedule found for you in the current shift."
SCHEDULE_UNAVAILABLE_MESSAGE = "Failed to fetch the teaching schedule. Please try again later."
PERMISSION_FAILED_MESSAGE = "Failed to create permission. Please try again."
GENERIC_FAILURE_MESSAGE = "Something went wrong while processing your command. Please try again."


class CommandRouter:
    """
    Turns one LINE message event into a command and runs it. Outcomes reach the assistant
    through LINE replies; the returned OperationResult is only logged.
    """

    def __init__(
        self,
        assistants_table: AssistantsTable,
        permissions_table: PermissionsTable,
        messier_client: MessierClient,
        line_client: LineMessagingClient,
        jwt_wrapper: JwtWrapper,
        metrics_manager: MetricsManager,
    ):
        self.assistants_table = assistants_table
        self.permissions_table = permissions_table
        self.messier_client = messier_client
        self.line_client = line_client
        self.jwt_wrapper = jwt_wrapper
        self.metrics_manager = metrics_manager

    def _reply(self, event: LineWebhookEvent, text: str) -> bool:
        """Sends a reply and reports whether LINE accepted it. Failures are logged, never raised."""
        if not event.replyToken:
            _LOGGER.warning("Event has no reply token; dropping reply.")
            return False
        try:
            self.line_client.reply_message(event.replyToken, text)
            return True
        except LineApiError as e:
            _LOGGER.error(f"Failed to deliver LINE reply: {e}")
            self.metrics_manager.put_metric("ReplyFailure", 1)
            return False

    def _fail(self, event: LineWebhookEvent, message: str) -> OperationResult:
        self._reply(event, message)
        return OperationResult.fail(message)

    def _fetch_snapshot(self) -> typing.Optional[AttendanceSnapshot]:
        try:
            return self.messier_client.get_attendance_data()
        except MessierApiError as e:
            _LOGGER.error(f"Attendance service error: {e}")
            self.metrics_manager.put_metric("MessierApiFailure", 1)
            return None

    def _handle_help(self, event: LineWebhookEvent) -> OperationResult:
        self._reply(event, HELP_MESSAGE)
        return OperationResult.ok("Help message sent.")

    def _handle_connect(self, event: LineWebhookEvent, command: ConnectLineIdCommand) -> OperationResult:
        line_id = event.user_id
        if not line_id:
            return self._fail(event, "Could not identify your LINE account. Please message the bot directly.")

        initial = self.jwt_wrapper.verify_connect_token(command.token) if command.token else None
        if initial is None:
            return self._fail(event, "This connect code is invalid or has expired. Please request a new one.")

        try:
            self.assistants_table.link_line_id(initial, line_id)
        except AssistantLinkError as e:
            return self._fail(event, str(e))

        self.metrics_manager.put_metric("LineAccountLinked", 1)
        message = f"Your LINE account is now linked to {initial}."
        self._reply(event, message)
        return OperationResult.ok(message)

    def _handle_check(self, event: LineWebhookEvent, command: CheckScheduleCommand) -> OperationResult:
        if command.region:
            try:
                InputValidator.validate_field(command.region, "region")
            except SuspiciousInputError as e:
                return self._fail(event, f"Invalid region: {e}")

        snapshot = self._fetch_snapshot()
        if snapshot is None:
            return self._fail(event, SCHEDULE_UNAVAILABLE_MESSAGE)

        region_map = filter_region(group_by_region(find_non_present_lecturers(snapshot)), command.region)
        self._reply(event, format_teaching_schedule(snapshot.shift, region_map, command.region))
        return OperationResult.ok("Teaching schedule sent.")

    def _handle_notify(self, event: LineWebhookEvent) -> OperationResult:
        snapshot = self._fetch_snapshot()
        if snapshot is None:
            return self._fail(event, SCHEDULE_UNAVAILABLE_MESSAGE)

        non_present = find_non_present_lecturers(snapshot)
        self._reply(event, format_teaching_schedule(snapshot.shift, group_by_region(non_present)))

        line_ids = self.assistants_table.get_line_ids_for_initials(lecturer.userName for lecturer in non_present)
        notified = 0
        for lecturer in non_present:
            line_id = line_ids.get(lecturer.userName)
            if not line_id:
                continue
            try:
                self.line_client.push_message(line_id, format_personal_reminder(lecturer, snapshot.shift))
                notified += 1
            except LineApiError as e:
                _LOGGER.error(f"Failed to notify {lecturer.userName}: {e}")
                self.metrics_manager.put_metric("ReplyFailure", 1)

        _LOGGER.info(f"Notified {notified} of {len(non_present)} non-present lecturers.")
        return OperationResult.ok(f"Notified {notified} of {len(non_present)} non-present lecturers.")

    def _handle_late_permission(
        self, event: LineWebhookEvent, command: LatePermissionCommand
    ) -> OperationResult[PermissionItemModel]:
        line_id = event.user_id
        initial = self.assistants_table.get_initial_by_line_id(line_id) if line_id else None
        if initial is None:
            return self._fail(event, NOT_LINKED_MESSAGE)

        if not command.reason:
            return self._fail(event, MISSING_REASON_MESSAGE)
        try:
            InputValidator.validate_field(command.reason, "reason")
        except SuspiciousInputError as e:
            return self._fail(event, f"Invalid reason: {e}")

        snapshot = self._fetch_snapshot()
        if snapshot is None:
            return self._fail(event, SCHEDULE_UNAVAILABLE_MESSAGE)

        assignment = find_current_assignment(snapshot.attendance, initial)
        if assignment is None:
            return self._fail(event, NO_SCHEDULE_MESSAGE)

        try:
            permission = self.permissions_table.create_permission(
                initial=initial,
                reason=command.reason,
                assignment=assignment,
                shift_id=snapshot.shift_id,
            )
        except PersistenceError as e:
            _LOGGER.error(f"Permission for {initial} was not stored: {e}")
            self.metrics_manager.put_metric("PermissionCreateFailure", 1)
            return self._fail(event, PERMISSION_FAILED_MESSAGE)

        self.metrics_manager.put_metric("PermissionCreated", 1)
        # The row is committed at this point; a failed reply does not undo it.
        self._reply(
            event,
            f"Permission request submitted for {assignment.courseName} {assignment.className} "
            f"@ {assignment.room}. Waiting for approval.",
        )
        return OperationResult.ok("Permission created successfully.", permission)

    def dispatch(self, event: LineWebhookEvent, command: ChatCommand) -> OperationResult:
        if isinstance(command, HelpCommand):
            return self._handle_help(event)
        if isinstance(command, ConnectLineIdCommand):
            return self._handle_connect(event, command)
        if isinstance(command, NotifyScheduleCommand):
            return self._handle_notify(event)
        if isinstance(command, CheckScheduleCommand):
            return self._handle_check(event, command)
        if isinstance(command, LatePermissionCommand):
            return self._handle_late_permission(event, command)

        text = command.text if isinstance(command, UnrecognizedCommand) else ""
        _LOGGER.info(f"Ignoring unrecognized message: {InputValidator.sanitize_for_logging(text)}")
        return OperationResult.fail("Unrecognized command.")

    def route(self, event: LineWebhookEvent) -> OperationResult:
        command = parse_command(event.text)
        _LOGGER.info(f"Routing '{command.kind}' command")

        try:
            result = self.dispatch(event, command)
        except Exception as e:
            _LOGGER.error(f"Unexpected error while handling '{command.kind}': {e}", exc_info=True)
            self.metrics_manager.put_metric("CommandFailure", 1)
            return self._fail(event, GENERIC_FAILURE_MESSAGE)

        _LOGGER.info(f"'{command.kind}' finished: success={result.success}, message={result.message}")
        return result
