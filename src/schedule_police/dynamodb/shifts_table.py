import logging
import typing

import boto3
import pydantic
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError

from schedule_police.models.attendance_models import Shift
from schedule_police.utils.base_types import ShiftId

_LOGGER = logging.getLogger(__name__)
_LOGGER.setLevel(logging.INFO)

# DynamoDB caps a single transaction at 100 actions.
MAX_TRANSACTION_ITEMS = 100
# BatchGetItem accepts at most 100 keys per call.
MAX_BATCH_GET_KEYS = 100


class ShiftRefreshError(Exception):
    pass


class ShiftsTable:
    """
    Data Abstraction Layer for the shifts table, a projection of Messier's shift list.

    Table Schema:
      - PK: shiftId
      - Attributes: start, end

    The table is only ever replaced wholesale; see replace_all_shifts.
    """

    def __init__(self, table_name: str) -> None:
        self.client = boto3.resource("dynamodb")
        self.table = self.client.Table(table_name)
        self.table_name = table_name
        self._serializer = TypeSerializer()

    @staticmethod
    def _to_item(shift: Shift) -> dict[str, str]:
        return {"shiftId": shift.shiftId, "start": shift.start, "end": shift.end}

    @staticmethod
    def _parse_item(item: dict[str, typing.Any]) -> typing.Optional[Shift]:
        try:
            return Shift.model_validate(item)
        except pydantic.ValidationError as e:
            _LOGGER.error(f"Invalid shift item {item.get('shiftId')}: {e}")
            return None

    def get_shift(self, shift_id: ShiftId) -> typing.Optional[Shift]:
        try:
            response = self.table.get_item(Key={"shiftId": shift_id})
        except ClientError as e:
            _LOGGER.error(f"Failed to get shift {shift_id}: {e.response['Error']['Message']}")
            raise
        item = response.get("Item")
        return self._parse_item(item) if item else None

    def get_all_shifts(self) -> list[Shift]:
        shifts: list[Shift] = []
        scan_kwargs: dict[str, typing.Any] = {}
        while True:
            response = self.table.scan(**scan_kwargs)
            for item in response.get("Items", []):
                shift = self._parse_item(item)
                if shift:
                    shifts.append(shift)
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            scan_kwargs["ExclusiveStartKey"] = last_key
        return shifts

    def batch_get_shifts(self, shift_ids: typing.Iterable[ShiftId]) -> dict[ShiftId, Shift]:
        """
        Looks up many shifts at once. Ids that do not exist are simply absent from the result.
        """
        unique_ids = sorted({shift_id for shift_id in shift_ids if shift_id})
        found: dict[ShiftId, Shift] = {}

        for start in range(0, len(unique_ids), MAX_BATCH_GET_KEYS):
            chunk = unique_ids[start : start + MAX_BATCH_GET_KEYS]
            request_items: dict[str, typing.Any] = {
                self.table_name: {"Keys": [{"shiftId": shift_id} for shift_id in chunk]}
            }
            while request_items:
                try:
                    response = self.client.batch_get_item(RequestItems=request_items)
                except ClientError as e:
                    _LOGGER.error(f"Failed to batch get shifts: {e.response['Error']['Message']}")
                    raise
                for item in response.get("Responses", {}).get(self.table_name, []):
                    shift = self._parse_item(item)
                    if shift:
                        found[shift.shiftId] = shift
                request_items = response.get("UnprocessedKeys") or {}

        return found

    def replace_all_shifts(self, shifts: list[Shift]) -> int:
        """
        Replaces the content of the table with `shifts` in a single transaction: stale rows are
        deleted and every new row is written, or nothing changes at all.

        :returns: The number of shifts written.
        :raises ShiftRefreshError: If there is nothing to write or too much for one transaction
        :raises ClientError: If DynamoDB rejects the transaction (the table is left untouched)
        """
        if not shifts:
            raise ShiftRefreshError("Refusing to replace shifts with an empty list.")

        new_ids = {shift.shiftId for shift in shifts}
        if len(new_ids) != len(shifts):
            raise ShiftRefreshError("Shift list contains duplicate shift ids.")

        stale_ids = [shift.shiftId for shift in self.get_all_shifts() if shift.shiftId not in new_ids]

        actions: list[dict[str, typing.Any]] = []
        for shift_id in stale_ids:
            actions.append(
                {"Delete": {"TableName": self.table_name, "Key": {"shiftId": self._serializer.serialize(shift_id)}}}
            )
        for shift in shifts:
            item = {key: self._serializer.serialize(value) for key, value in self._to_item(shift).items()}
            actions.append({"Put": {"TableName": self.table_name, "Item": item}})

        if len(actions) > MAX_TRANSACTION_ITEMS:
            raise ShiftRefreshError(
                f"Shift refresh needs {len(actions)} writes, more than the {MAX_TRANSACTION_ITEMS} "
                "allowed in one transaction."
            )

        try:
            self.client.meta.client.transact_write_items(TransactItems=actions)
        except ClientError as e:
            _LOGGER.error(f"Shift refresh transaction failed: {e.response['Error']['Message']}", exc_info=True)
            raise

        _LOGGER.info(f"Replaced shifts table: {len(shifts)} written, {len(stale_ids)} removed.")
        return len(shifts)
