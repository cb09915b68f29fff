import logging
import typing

import boto3
import pydantic
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from schedule_police.models.assistant_models import AssistantItemModel, AssistantRole
from schedule_police.utils.base_types import Initial, LineUserId

_LOGGER = logging.getLogger(__name__)
_LOGGER.setLevel(logging.INFO)

MAX_BATCH_GET_KEYS = 100


class AssistantLinkError(Exception):
    pass


class AssistantNotFoundError(Exception):
    pass


class AssistantsTable:
    """
    Data Abstraction Layer for the assistants table.

    Table Schema:
      - PK: initial (e.g. "AB23-2")
      - Attributes: role ("ADMIN" | "AST"), lineId (optional)
      - GSI LineIdIndex: lineId (HASH), sparse

    A LINE account can be linked to one assistant only, and an assistant's link is set once.
    The first rule is checked with an eventually consistent GSI read before the conditional
    update, so two CONNECT_LINE_ID links for different initials from the same LINE account racing
    each other can both succeed. get_initial_by_line_id then returns whichever item the index
    yields first.
    """

    LINE_ID_INDEX_NAME = "LineIdIndex"

    def __init__(self, table_name: str) -> None:
        self.client = boto3.resource("dynamodb")
        self.table = self.client.Table(table_name)
        self.table_name = table_name

    @staticmethod
    def _parse_item(item: dict[str, typing.Any]) -> typing.Optional[AssistantItemModel]:
        try:
            return AssistantItemModel.model_validate(item)
        except pydantic.ValidationError as e:
            _LOGGER.error(f"Invalid assistant item {item.get('initial')}: {e}")
            return None

    def get_assistant(self, initial: Initial) -> typing.Optional[AssistantItemModel]:
        try:
            response = self.table.get_item(Key={"initial": initial})
        except ClientError as e:
            _LOGGER.error(f"Failed to get assistant {initial}: {e.response['Error']['Message']}")
            raise
        item = response.get("Item")
        return self._parse_item(item) if item else None

    def get_initial_by_line_id(self, line_id: LineUserId) -> typing.Optional[Initial]:
        try:
            response = self.table.query(
                IndexName=self.LINE_ID_INDEX_NAME,
                KeyConditionExpression=Key("lineId").eq(line_id),
                Limit=1,
            )
        except ClientError as e:
            _LOGGER.error(f"Failed to look up LINE id: {e.response['Error']['Message']}")
            raise

        items = response.get("Items", [])
        if not items:
            _LOGGER.info("No assistant is linked to this LINE account.")
            return None
        return Initial(items[0]["initial"])

    def link_line_id(self, initial: Initial, line_id: LineUserId) -> AssistantItemModel:
        """
        Links a LINE account to an assistant. Linking the same pair again is a no-op.

        :raises AssistantLinkError: If the assistant does not exist, is linked to another
            LINE account, or the LINE account belongs to another assistant
        """
        owner = self.get_initial_by_line_id(line_id)
        if owner is not None and owner != initial:
            _LOGGER.warning(f"LINE account already linked to {owner}; refusing to link it to {initial}")
            raise AssistantLinkError("This LINE account is already linked to another assistant.")

        try:
            response = self.table.update_item(
                Key={"initial": initial},
                UpdateExpression="SET lineId = :lineId",
                ConditionExpression="attribute_exists(#initial) AND (attribute_not_exists(lineId) OR lineId = :lineId)",
                ExpressionAttributeNames={"#initial": "initial"},
                ExpressionAttributeValues={":lineId": line_id},
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if e.response["Error"]["Code"] != "ConditionalCheckFailedException":
                _LOGGER.error(f"Error linking LINE id to {initial}: {e.response['Error']['Message']}", exc_info=True)
                raise
            if self.get_assistant(initial) is None:
                raise AssistantLinkError(f"No assistant found with initial {initial}.") from e
            raise AssistantLinkError(f"{initial} is already linked to a different LINE account.") from e

        _LOGGER.info(f"Linked LINE account to assistant {initial}")
        return AssistantItemModel.model_validate(response["Attributes"])

    def get_all_assistants(self) -> list[AssistantItemModel]:
        assistants: list[AssistantItemModel] = []
        scan_kwargs: dict[str, typing.Any] = {}
        while True:
            response = self.table.scan(**scan_kwargs)
            for item in response.get("Items", []):
                assistant = self._parse_item(item)
                if assistant:
                    assistants.append(assistant)
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            scan_kwargs["ExclusiveStartKey"] = last_key
        assistants.sort(key=lambda a: a.initial)
        return assistants

    def update_role(self, initial: Initial, role: AssistantRole) -> None:
        """
        :raises AssistantNotFoundError: If no assistant has this initial
        """
        try:
            self.table.update_item(
                Key={"initial": initial},
                UpdateExpression="SET #role = :role",
                ConditionExpression="attribute_exists(#initial)",
                ExpressionAttributeNames={"#role": "role", "#initial": "initial"},
                ExpressionAttributeValues={":role": role},
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise AssistantNotFoundError(f"No assistant found with initial {initial}.") from e
            _LOGGER.error(f"Error updating role of {initial}: {e.response['Error']['Message']}", exc_info=True)
            raise
        _LOGGER.info(f"Role of {initial} set to {role}")

    def get_line_ids_for_initials(self, initials: typing.Iterable[Initial]) -> dict[Initial, LineUserId]:
        """Maps each linked assistant among `initials` to its LINE id; unlinked ones are left out."""
        unique_initials = sorted(set(initials))
        line_ids: dict[Initial, LineUserId] = {}

        for start in range(0, len(unique_initials), MAX_BATCH_GET_KEYS):
            chunk = unique_initials[start : start + MAX_BATCH_GET_KEYS]
            request_items: dict[str, typing.Any] = {
                self.table_name: {"Keys": [{"initial": initial} for initial in chunk]}
            }
            while request_items:
                try:
                    response = self.client.batch_get_item(RequestItems=request_items)
                except ClientError as e:
                    _LOGGER.error(f"Failed to batch get assistants: {e.response['Error']['Message']}")
                    raise
                for item in response.get("Responses", {}).get(self.table_name, []):
                    if item.get("lineId"):
                        line_ids[Initial(item["initial"])] = LineUserId(item["lineId"])
                request_items = response.get("UnprocessedKeys") or {}

        return line_ids
