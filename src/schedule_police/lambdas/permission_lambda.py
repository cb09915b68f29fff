import json
import logging
import typing

from pydantic import ValidationError

from schedule_police.dynamodb.permissions_table import (
    PermissionNotFoundError,
    PermissionStateError,
    PermissionsTable,
    PermissionValidationError,
)
from schedule_police.dynamodb.shifts_table import ShiftsTable
from schedule_police.models.auth_models import Viewer
from schedule_police.models.permission_models import PERMISSION_STATUSES, PermissionActionRequestModel
from schedule_police.utils.apig_utils import (
    ErrorCode,
    create_error_response,
    create_success_response,
    get_event_body,
    get_method,
    get_path,
    get_query_string_parameters,
    get_viewer_from_event,
)
from schedule_police.utils.aws_env_vars import get_permissions_table_name, get_shifts_table_name
from schedule_police.utils.input_validator import InputValidator, SuspiciousInputError

_LOGGER = logging.getLogger(__name__)
_LOGGER.setLevel(logging.INFO)


class PermissionApiHandler:
    def __init__(self, permissions_table: PermissionsTable):
        self.permissions_table = permissions_table

    def _handle_get_request(self, event: dict, viewer: Viewer) -> dict:
        """
        Lists permissions visible to the viewer. ?type=pending|approved|rejected narrows the
        list; any other value (or none) returns everything.
        """
        status = get_query_string_parameters(event).get("type")

        if status in PERMISSION_STATUSES:
            permissions = self.permissions_table.list_permissions_by_status(status, viewer)  # type: ignore
            message = f"{status} permissions fetched successfully."
        else:
            permissions = self.permissions_table.list_all_permissions(viewer)
            message = "All permissions fetched successfully."

        return create_success_response(message, [p.model_dump() for p in permissions], event=event)

    def _handle_patch_request(self, event: dict, viewer: Viewer) -> dict:
        if not viewer.is_admin:
            _LOGGER.warning(f"Forbidden: {viewer.username} ({viewer.role}) tried to resolve a permission.")
            return create_error_response(ErrorCode.AUTHORIZATION_FAILED, event=event)

        try:
            raw_body = get_event_body(event)
            if not raw_body:
                return create_error_response(ErrorCode.VALIDATION_ERROR, "Request body is missing.", event=event)
            request_data = PermissionActionRequestModel.model_validate_json(raw_body)
            if request_data.reason:
                InputValidator.validate_field(request_data.reason, "status_reason")
        except ValidationError as e:
            _LOGGER.error(f"Permission action body validation error: {e.errors()}")
            return create_error_response(
                ErrorCode.VALIDATION_ERROR, "Invalid action.", details=json.loads(e.json(include_url=False)), event=event
            )
        except SuspiciousInputError as e:
            return create_error_response(ErrorCode.VALIDATION_ERROR, str(e), event=event)

        _LOGGER.info(f"{viewer.username} requested '{request_data.action}' on permission {request_data.id}")

        try:
            if request_data.action == "approve":
                self.permissions_table.approve_permission(request_data.id, request_data.reason)
                message = "Permission approved successfully."
            else:
                self.permissions_table.reject_permission(request_data.id, request_data.reason)
                message = "Permission rejected successfully."
        except PermissionValidationError as e:
            return create_error_response(ErrorCode.VALIDATION_ERROR, str(e), event=event)
        except PermissionNotFoundError:
            return create_error_response(
                ErrorCode.RESOURCE_NOT_FOUND, "No permission found with the given ID.", event=event
            )
        except PermissionStateError as e:
            return create_error_response(ErrorCode.STATE_CONFLICT, str(e), event=event)

        return create_success_response(message, event=event)

    def handle(self, event: dict) -> dict:
        viewer = get_viewer_from_event(event)
        if not viewer:
            return create_error_response(ErrorCode.AUTHENTICATION_FAILED, event=event)

        http_method = get_method(event).upper()
        path = get_path(event)
        _LOGGER.info(f"PermissionApiHandler: {http_method} {path} for {viewer.username}")

        try:
            if http_method == "GET":
                return self._handle_get_request(event, viewer)
            elif http_method == "PATCH":
                return self._handle_patch_request(event, viewer)
            else:
                _LOGGER.warning(f"Unsupported HTTP method for /permissions: {http_method}")
                return create_error_response(ErrorCode.METHOD_NOT_ALLOWED, event=event)

        except Exception as e:
            _LOGGER.error(f"Unexpected error in PermissionApiHandler: {str(e)}", exc_info=True)
            return create_error_response(ErrorCode.INTERNAL_ERROR, event=event)


def permission_lambda_handler(event: dict, context: typing.Any) -> dict:
    _LOGGER.debug("Global permission_lambda_handler received event.")

    try:
        api_handler = PermissionApiHandler(
            permissions_table=PermissionsTable(get_permissions_table_name(), ShiftsTable(get_shifts_table_name())),
        )
        return api_handler.handle(event)

    except ValueError as ve:
        _LOGGER.critical(f"Configuration error in permission_lambda_handler: {str(ve)}", exc_info=True)
        return create_error_response(ErrorCode.INTERNAL_ERROR, "Server configuration error")
    except Exception as e:
        _LOGGER.critical(f"Error during PermissionApiHandler: {str(e)}", exc_info=True)
        return create_error_response(ErrorCode.INTERNAL_ERROR)
