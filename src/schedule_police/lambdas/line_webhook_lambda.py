import logging
import typing

from pydantic import ValidationError

from schedule_police.cloudwatch.metrics import MetricsManager
from schedule_police.commands.command_router import CommandRouter
from schedule_police.dynamodb.assistants_table import AssistantsTable
from schedule_police.dynamodb.permissions_table import PermissionsTable
from schedule_police.dynamodb.secrets_table import SecretsTable
from schedule_police.dynamodb.shifts_table import ShiftsTable
from schedule_police.models.line_models import LineWebhookBody
from schedule_police.utils.apig_utils import (
    ErrorCode,
    create_error_response,
    create_success_response,
    get_event_body,
    get_header,
    get_method,
)
from schedule_police.utils.app_config import load_app_config
from schedule_police.utils.aws_env_vars import (
    get_assistants_table_name,
    get_permissions_table_name,
    get_secrets_table_name,
    get_shifts_table_name,
)
from schedule_police.utils.jwt_utils import JwtWrapper
from schedule_police.utils.line_utils import LineMessagingClient
from schedule_police.utils.messier_utils import MessierClient
from schedule_police.utils.signature_utils import LINE_SIGNATURE_HEADER, LineSignatureVerifier

_LOGGER = logging.getLogger(__name__)
_LOGGER.setLevel(logging.INFO)

ACK_MESSAGE = "Message received."


class LineWebhookApiHandler:
    """
    Entry point for LINE webhook calls.

    Once the signature checks out the response is always a 200 acknowledgment: LINE only
    needs to know the event arrived, and command outcomes are reported to the assistant
    through chat replies instead.
    """

    def __init__(
        self,
        signature_verifier: LineSignatureVerifier,
        command_router: CommandRouter,
        metrics_manager: MetricsManager,
    ):
        self.signature_verifier = signature_verifier
        self.command_router = command_router
        self.metrics_manager = metrics_manager

    def _acknowledge(self) -> dict:
        return create_success_response(ACK_MESSAGE)

    def handle(self, event: dict) -> dict:
        if get_method(event).upper() != "POST":
            return create_error_response(ErrorCode.METHOD_NOT_ALLOWED)

        raw_body = get_event_body(event)
        if not self.signature_verifier.verify(raw_body, get_header(event, LINE_SIGNATURE_HEADER)):
            _LOGGER.warning("Rejected webhook call with an invalid signature.")
            self.metrics_manager.put_metric("InvalidSignature", 1)
            return create_error_response(ErrorCode.AUTHENTICATION_FAILED, "Invalid signature")

        try:
            webhook_body = LineWebhookBody.model_validate_json(raw_body)
        except ValidationError as e:
            _LOGGER.error(f"Signed webhook body could not be parsed: {e}")
            return self._acknowledge()

        if not webhook_body.events:
            _LOGGER.info("Webhook call without events (verification ping).")
            return self._acknowledge()

        if len(webhook_body.events) > 1:
            # Only the head of a batch is processed.
            _LOGGER.warning(f"Webhook batch has {len(webhook_body.events)} events; ignoring all but the first.")
            self.metrics_manager.put_metric("DroppedBatchEvents", len(webhook_body.events) - 1)

        line_event = webhook_body.events[0]
        if line_event.type != "message":
            _LOGGER.info(f"Ignoring unhandled event type: {line_event.type}")
            return self._acknowledge()

        if line_event.text is None:
            _LOGGER.info("Ignoring message event without text.")
            return self._acknowledge()

        try:
            result = self.command_router.route(line_event)
            self.metrics_manager.put_metric("CommandSucceeded" if result.success else "CommandRejected", 1)
        except Exception as e:
            _LOGGER.error(f"Unexpected error while routing webhook event: {str(e)}", exc_info=True)
            self.metrics_manager.put_metric("CommandFailure", 1)

        return self._acknowledge()


def line_webhook_lambda_handler(event: dict, context: typing.Any) -> dict:
    _LOGGER.info("LINE webhook lambda handler invoked.")
    metrics_manager = MetricsManager("SchedulePolice/Webhook")

    try:
        app_config = load_app_config(SecretsTable(get_secrets_table_name()))
        shifts_table = ShiftsTable(get_shifts_table_name())

        command_router = CommandRouter(
            assistants_table=AssistantsTable(get_assistants_table_name()),
            permissions_table=PermissionsTable(get_permissions_table_name(), shifts_table),
            messier_client=MessierClient(
                api_secret=app_config.messier_api_secret,
                api_base_url=app_config.messier_api_base_url,
                timeout_seconds=app_config.http_timeout_seconds,
            ),
            line_client=LineMessagingClient(
                channel_access_token=app_config.line_channel_access_token,
                api_base_url=app_config.line_api_base_url,
                timeout_seconds=app_config.http_timeout_seconds,
            ),
            jwt_wrapper=JwtWrapper(app_config.jwt_secret),
            metrics_manager=metrics_manager,
        )
        api_handler = LineWebhookApiHandler(
            signature_verifier=LineSignatureVerifier(app_config.line_channel_secret),
            command_router=command_router,
            metrics_manager=metrics_manager,
        )
        return api_handler.handle(event)

    except Exception as e:
        _LOGGER.critical(f"Critical error in LINE webhook handler setup: {str(e)}", exc_info=True)
        return create_error_response(ErrorCode.INTERNAL_ERROR)
    finally:
        metrics_manager.flush()
