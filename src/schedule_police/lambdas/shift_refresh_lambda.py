import logging
import typing

from botocore.exceptions import ClientError

from schedule_police.cloudwatch.metrics import MetricsManager
from schedule_police.dynamodb.secrets_table import SecretsTable
from schedule_police.dynamodb.shifts_table import ShiftRefreshError, ShiftsTable
from schedule_police.models.result_models import OperationResult
from schedule_police.utils.aws_env_vars import (
    get_http_timeout_seconds,
    get_messier_api_base_url,
    get_secrets_table_name,
    get_shifts_table_name,
)
from schedule_police.utils.messier_utils import MessierApiError, MessierClient

_LOGGER = logging.getLogger(__name__)
_LOGGER.setLevel(logging.INFO)


class ShiftRefreshHandler:
    """Scheduled job that mirrors Messier's shift list into the shifts table."""

    def __init__(self, messier_client: MessierClient, shifts_table: ShiftsTable, metrics_manager: MetricsManager):
        self.messier_client = messier_client
        self.shifts_table = shifts_table
        self.metrics_manager = metrics_manager

    def handle(self) -> OperationResult[int]:
        try:
            shifts = self.messier_client.get_shifts()
        except MessierApiError as e:
            _LOGGER.error(f"Could not fetch shifts from Messier: {e}")
            self.metrics_manager.put_metric("ShiftRefreshFailure", 1)
            return OperationResult.fail("Failed to fetch shifts.")

        if not shifts:
            _LOGGER.warning("Messier returned no shifts; keeping the current table.")
            return OperationResult.fail("No shifts data found.")

        try:
            written = self.shifts_table.replace_all_shifts(shifts)
        except (ShiftRefreshError, ClientError) as e:
            _LOGGER.error(f"Shift refresh aborted, table left unchanged: {e}")
            self.metrics_manager.put_metric("ShiftRefreshFailure", 1)
            return OperationResult.fail("Failed to refresh shifts.")

        self.metrics_manager.put_metric("ShiftsRefreshed", written)
        return OperationResult.ok(f"Successfully refreshed {written} shifts.", written)


def shift_refresh_lambda_handler(event: dict, context: typing.Any) -> dict:
    _LOGGER.info("Shift refresh lambda handler invoked.")
    metrics_manager = MetricsManager("SchedulePolice/ShiftRefresh")

    try:
        secrets_table = SecretsTable(get_secrets_table_name())
        handler = ShiftRefreshHandler(
            messier_client=MessierClient(
                api_secret=secrets_table.get_messier_api_secret(),
                api_base_url=get_messier_api_base_url(),
                timeout_seconds=get_http_timeout_seconds(),
            ),
            shifts_table=ShiftsTable(get_shifts_table_name()),
            metrics_manager=metrics_manager,
        )
        return handler.handle().model_dump()
    except Exception as e:
        _LOGGER.critical(f"Critical error in shift_refresh_lambda_handler: {e}", exc_info=True)
        return OperationResult.fail("Failed to refresh shifts.").model_dump()
    finally:
        metrics_manager.flush()
