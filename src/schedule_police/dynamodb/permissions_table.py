import logging
import typing
import uuid
from datetime import datetime, timezone

import boto3
import pydantic
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from schedule_police.dynamodb.shifts_table import ShiftsTable
from schedule_police.models.attendance_models import Assignment
from schedule_police.models.auth_models import Viewer
from schedule_police.models.permission_models import (
    PermissionItemModel,
    PermissionShiftModel,
    PermissionStatus,
    PermissionWithShiftModel,
)
from schedule_police.utils.base_types import Initial, IsoTimestamp, PermissionId, ShiftId

_LOGGER = logging.getLogger(__name__)
_LOGGER.setLevel(logging.INFO)


class PersistenceError(Exception):
    pass


class PermissionNotFoundError(Exception):
    def __init__(self, permission_id: str) -> None:
        super().__init__(f"No permission found with id {permission_id}.")
        self.permission_id = permission_id


class PermissionValidationError(ValueError):
    pass


class PermissionStateError(Exception):
    def __init__(self, permission_id: str, current_status: str) -> None:
        super().__init__(f"Permission {permission_id} is already {current_status}.")
        self.permission_id = permission_id
        self.current_status = current_status


class PermissionsTable:
    """
    Data Abstraction Layer for late-arrival permissions.

    Table Schema:
      - PK: id (UUID4, generated here when the permission is created)
      - GSI StatusCreatedAtIndex: status (HASH) / createdAt (RANGE)
      - GSI InitialCreatedAtIndex: initial (HASH) / createdAt (RANGE)

    Rows are never deleted. A permission starts as "pending" and can be resolved exactly once,
    to "approved" or "rejected".
    """

    STATUS_INDEX_NAME = "StatusCreatedAtIndex"
    INITIAL_INDEX_NAME = "InitialCreatedAtIndex"

    def __init__(self, table_name: str, shifts_table: ShiftsTable) -> None:
        self.client = boto3.resource("dynamodb")
        self.table = self.client.Table(table_name)
        self.shifts_table = shifts_table
        _LOGGER.info(f"PermissionsTable initialized for table: {table_name}")

    def create_permission(
        self,
        initial: Initial,
        reason: str,
        assignment: Assignment,
        shift_id: typing.Optional[ShiftId],
    ) -> PermissionItemModel:
        """
        Stores a new pending permission. Submitting twice creates two rows.

        :raises PersistenceError: If the row could not be written
        """
        permission = PermissionItemModel(
            id=PermissionId(str(uuid.uuid4())),
            initial=initial,
            reason=reason,
            className=assignment.className,
            room=assignment.room,
            course=assignment.courseName,
            shiftId=shift_id,
            status="pending",
            statusReason=None,
            createdAt=IsoTimestamp(datetime.now(timezone.utc).isoformat()),
        )

        try:
            self.table.put_item(
                Item=permission.model_dump(exclude_none=True),
                ConditionExpression="attribute_not_exists(id)",
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                _LOGGER.error(f"Permission id collision for {permission.id}; nothing was written.")
                raise PersistenceError("Failed to create permission.") from e
            _LOGGER.error(f"Error creating permission for {initial}: {e.response['Error']['Message']}", exc_info=True)
            raise

        _LOGGER.info(f"Created permission {permission.id} for {initial} in class {assignment.className}")
        return permission

    def get_permission(self, permission_id: PermissionId) -> typing.Optional[PermissionItemModel]:
        try:
            response = self.table.get_item(Key={"id": permission_id})
        except ClientError as e:
            _LOGGER.error(f"Failed to get permission {permission_id}: {e.response['Error']['Message']}")
            raise
        item = response.get("Item")
        if not item:
            return None
        parsed = self._parse_items([item])
        return parsed[0] if parsed else None

    def _parse_items(self, ddb_items: list[dict[str, typing.Any]]) -> list[PermissionItemModel]:
        parsed_items = []
        for item in ddb_items:
            try:
                parsed_items.append(PermissionItemModel.model_validate(item))
            except pydantic.ValidationError as e:
                _LOGGER.error(f"Validation error for permission item {item.get('id')}: {e}", exc_info=True)
        return parsed_items

    def _collect(self, operation: typing.Callable[..., dict], **kwargs: typing.Any) -> list[PermissionItemModel]:
        items: list[dict[str, typing.Any]] = []
        while True:
            response = operation(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            kwargs["ExclusiveStartKey"] = last_key
        return self._parse_items(items)

    def _join_shifts(self, permissions: list[PermissionItemModel]) -> list[PermissionWithShiftModel]:
        shifts = self.shifts_table.batch_get_shifts(p.shiftId for p in permissions if p.shiftId)
        joined = [
            PermissionWithShiftModel(
                **permission.model_dump(),
                shift=PermissionShiftModel.from_shift(shifts.get(permission.shiftId) if permission.shiftId else None),
            )
            for permission in permissions
        ]
        joined.sort(key=lambda p: p.createdAt, reverse=True)
        return joined

    def list_all_permissions(self, viewer: Viewer) -> list[PermissionWithShiftModel]:
        """Admins see every permission; everybody else sees only their own."""
        if viewer.is_admin:
            permissions = self._collect(self.table.scan)
        else:
            permissions = self._collect(
                self.table.query,
                IndexName=self.INITIAL_INDEX_NAME,
                KeyConditionExpression=Key("initial").eq(viewer.username),
            )
        _LOGGER.info(f"Fetched {len(permissions)} permissions for {viewer.username} ({viewer.role})")
        return self._join_shifts(permissions)

    def list_permissions_by_status(self, status: PermissionStatus, viewer: Viewer) -> list[PermissionWithShiftModel]:
        if viewer.is_admin:
            permissions = self._collect(
                self.table.query,
                IndexName=self.STATUS_INDEX_NAME,
                KeyConditionExpression=Key("status").eq(status),
            )
        else:
            permissions = self._collect(
                self.table.query,
                IndexName=self.INITIAL_INDEX_NAME,
                KeyConditionExpression=Key("initial").eq(viewer.username),
                FilterExpression=Attr("status").eq(status),
            )
        _LOGGER.info(f"Fetched {len(permissions)} {status} permissions for {viewer.username} ({viewer.role})")
        return self._join_shifts(permissions)

    def _resolve(
        self,
        permission_id: PermissionId,
        new_status: PermissionStatus,
        status_reason: typing.Optional[str],
    ) -> None:
        try:
            self.table.update_item(
                Key={"id": permission_id},
                UpdateExpression="SET #status = :newStatus, #statusReason = :statusReason",
                ConditionExpression="attribute_exists(id) AND #status = :pending",
                ExpressionAttributeNames={"#status": "status", "#statusReason": "statusReason"},
                ExpressionAttributeValues={
                    ":newStatus": new_status,
                    ":statusReason": status_reason,
                    ":pending": "pending",
                },
            )
        except ClientError as e:
            if e.response["Error"]["Code"] != "ConditionalCheckFailedException":
                _LOGGER.error(
                    f"Error setting permission {permission_id} to {new_status}: {e.response['Error']['Message']}",
                    exc_info=True,
                )
                raise
            existing = self.get_permission(permission_id)
            if existing is None:
                _LOGGER.warning(f"Cannot set unknown permission {permission_id} to {new_status}")
                raise PermissionNotFoundError(permission_id) from e
            _LOGGER.warning(f"Permission {permission_id} already {existing.status}; refusing to set {new_status}")
            raise PermissionStateError(permission_id, existing.status) from e

        _LOGGER.info(f"Permission {permission_id} is now {new_status}")

    def approve_permission(self, permission_id: PermissionId, reason: typing.Optional[str] = None) -> None:
        """
        :raises PermissionNotFoundError: If no permission has this id
        :raises PermissionStateError: If the permission was already resolved
        """
        status_reason = reason.strip() if reason and reason.strip() else None
        self._resolve(permission_id, "approved", status_reason)

    def reject_permission(self, permission_id: PermissionId, reason: typing.Optional[str]) -> None:
        """
        :raises PermissionValidationError: If the reason is blank; nothing is written
        :raises PermissionNotFoundError: If no permission has this id
        :raises PermissionStateError: If the permission was already resolved
        """
        if not reason or not reason.strip():
            raise PermissionValidationError("Rejection reason cannot be empty.")
        self._resolve(permission_id, "rejected", reason.strip())
