import json
import logging
import typing

from pydantic import ValidationError

from schedule_police.commands.command_parser import CONNECT_LINE_ID_PREFIX
from schedule_police.dynamodb.assistants_table import AssistantNotFoundError, AssistantsTable
from schedule_police.dynamodb.secrets_table import SecretsTable
from schedule_police.models.assistant_models import ConnectTokenResponseModel, UpdateRoleRequestModel
from schedule_police.models.auth_models import Viewer
from schedule_police.utils.apig_utils import (
    ErrorCode,
    create_error_response,
    create_success_response,
    get_event_body,
    get_method,
    get_path,
    get_viewer_from_event,
)
from schedule_police.utils.aws_env_vars import get_assistants_table_name, get_secrets_table_name
from schedule_police.utils.jwt_utils import JwtWrapper

_LOGGER = logging.getLogger(__name__)
_LOGGER.setLevel(logging.INFO)


class AssistantApiHandler:
    def __init__(self, assistants_table: AssistantsTable, jwt_wrapper: JwtWrapper):
        self.assistants_table = assistants_table
        self.jwt_wrapper = jwt_wrapper

    def _handle_get_assistants(self, event: dict, viewer: Viewer) -> dict:
        if not viewer.is_admin:
            return create_error_response(ErrorCode.AUTHORIZATION_FAILED, event=event)

        assistants = self.assistants_table.get_all_assistants()
        # LINE ids stay private; the dashboard only needs to know whether one is linked.
        data = [
            {"initial": assistant.initial, "role": assistant.role, "lineLinked": assistant.lineId is not None}
            for assistant in assistants
        ]
        return create_success_response("Assistants fetched successfully.", data, event=event)

    def _handle_patch_role(self, event: dict, viewer: Viewer) -> dict:
        if not viewer.is_admin:
            return create_error_response(ErrorCode.AUTHORIZATION_FAILED, event=event)

        try:
            request_data = UpdateRoleRequestModel.model_validate_json(get_event_body(event) or b"{}")
        except ValidationError as e:
            return create_error_response(
                ErrorCode.VALIDATION_ERROR, details=json.loads(e.json(include_url=False)), event=event
            )

        try:
            self.assistants_table.update_role(request_data.initial, request_data.role)
        except AssistantNotFoundError as e:
            return create_error_response(ErrorCode.RESOURCE_NOT_FOUND, str(e), event=event)

        _LOGGER.info(f"{viewer.username} set role of {request_data.initial} to {request_data.role}")
        return create_success_response("Role updated successfully.", event=event)

    def _handle_post_connect_token(self, event: dict, viewer: Viewer) -> dict:
        """Issues the text an assistant sends to the bot to link their LINE account."""
        if self.assistants_table.get_assistant(viewer.username) is None:
            return create_error_response(
                ErrorCode.RESOURCE_NOT_FOUND, f"No assistant found with initial {viewer.username}.", event=event
            )

        token, expires_at = self.jwt_wrapper.create_connect_token(viewer.username)
        payload = ConnectTokenResponseModel(connectText=f"{CONNECT_LINE_ID_PREFIX}{token}", expiresAt=expires_at)
        return create_success_response("Connect code created.", payload.model_dump(), event=event)

    def handle(self, event: dict) -> dict:
        viewer = get_viewer_from_event(event)
        if not viewer:
            return create_error_response(ErrorCode.AUTHENTICATION_FAILED, event=event)

        http_method = get_method(event).upper()
        path = get_path(event)
        _LOGGER.info(f"AssistantApiHandler: {http_method} {path} for {viewer.username}")

        try:
            if http_method == "GET" and path == "/assistants":
                return self._handle_get_assistants(event, viewer)
            elif http_method == "PATCH" and path == "/assistants":
                return self._handle_patch_role(event, viewer)
            elif http_method == "POST" and path == "/assistants/connect-token":
                return self._handle_post_connect_token(event, viewer)
            else:
                _LOGGER.warning(f"Unsupported path or method for assistants: {http_method} {path}")
                return create_error_response(ErrorCode.RESOURCE_NOT_FOUND, event=event)

        except Exception as e:
            _LOGGER.error(f"Unexpected error in AssistantApiHandler: {str(e)}", exc_info=True)
            return create_error_response(ErrorCode.INTERNAL_ERROR, event=event)


def assistant_lambda_handler(event: dict, context: typing.Any) -> dict:
    _LOGGER.debug("Global assistant_lambda_handler received event.")

    try:
        secrets_table = SecretsTable(get_secrets_table_name())
        api_handler = AssistantApiHandler(
            assistants_table=AssistantsTable(get_assistants_table_name()),
            jwt_wrapper=JwtWrapper(secrets_table.get_jwt_secret_key()),
        )
        return api_handler.handle(event)

    except (ValueError, KeyError) as e:
        _LOGGER.critical(f"Configuration error in assistant_lambda_handler: {str(e)}", exc_info=True)
        return create_error_response(ErrorCode.INTERNAL_ERROR, "Server configuration error")
    except Exception as e:
        _LOGGER.critical(f"Error during AssistantApiHandler: {str(e)}", exc_info=True)
        return create_error_response(ErrorCode.INTERNAL_ERROR)
