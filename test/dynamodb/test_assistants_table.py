import boto3
import pytest
from moto import mock_aws

from schedule_police.dynamodb.assistants_table import AssistantLinkError, AssistantNotFoundError, AssistantsTable
from schedule_police.utils.base_types import Initial, LineUserId

REGION = "us-west-1"
TABLE_NAME = "test-assistants"


@pytest.fixture
def dynamodb_assistants_table(aws_credentials):
    """Creates the mocked assistants table with the sparse LINE id GSI."""
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name=REGION)
        table = dynamodb.create_table(
            TableName=TABLE_NAME,
            KeySchema=[{"AttributeName": "initial", "KeyType": "HASH"}],
            AttributeDefinitions=[
                {"AttributeName": "initial", "AttributeType": "S"},
                {"AttributeName": "lineId", "AttributeType": "S"},
            ],
            GlobalSecondaryIndexes=[
                {
                    "IndexName": AssistantsTable.LINE_ID_INDEX_NAME,
                    "KeySchema": [{"AttributeName": "lineId", "KeyType": "HASH"}],
                    "Projection": {"ProjectionType": "ALL"},
                }
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        table.put_item(Item={"initial": "AB23-2", "role": "AST"})
        table.put_item(Item={"initial": "CD23-1", "role": "AST"})
        table.put_item(Item={"initial": "AD23-1", "role": "ADMIN", "lineId": "U-admin"})
        yield table


@pytest.fixture
def assistants_table(dynamodb_assistants_table) -> AssistantsTable:
    return AssistantsTable(TABLE_NAME)


def test_get_assistant(assistants_table: AssistantsTable):
    assistant = assistants_table.get_assistant(Initial("AD23-1"))
    assert assistant.role == "ADMIN"
    assert assistant.lineId == "U-admin"
    assert assistants_table.get_assistant(Initial("ZZ99-9")) is None


def test_get_initial_by_line_id(assistants_table: AssistantsTable):
    assert assistants_table.get_initial_by_line_id(LineUserId("U-admin")) == "AD23-1"
    assert assistants_table.get_initial_by_line_id(LineUserId("U-unknown")) is None


def test_link_line_id(assistants_table: AssistantsTable):
    assistant = assistants_table.link_line_id(Initial("AB23-2"), LineUserId("U-ab"))

    assert assistant.lineId == "U-ab"
    assert assistants_table.get_initial_by_line_id(LineUserId("U-ab")) == "AB23-2"


def test_link_line_id_again_is_noop(assistants_table: AssistantsTable):
    assistants_table.link_line_id(Initial("AB23-2"), LineUserId("U-ab"))
    assistant = assistants_table.link_line_id(Initial("AB23-2"), LineUserId("U-ab"))

    assert assistant.lineId == "U-ab"


def test_link_line_id_is_set_once(assistants_table: AssistantsTable):
    assistants_table.link_line_id(Initial("AB23-2"), LineUserId("U-ab"))

    with pytest.raises(AssistantLinkError, match="different LINE account"):
        assistants_table.link_line_id(Initial("AB23-2"), LineUserId("U-other"))
    assert assistants_table.get_assistant(Initial("AB23-2")).lineId == "U-ab"


def test_link_line_id_owned_by_another_assistant(assistants_table: AssistantsTable):
    with pytest.raises(AssistantLinkError, match="another assistant"):
        assistants_table.link_line_id(Initial("CD23-1"), LineUserId("U-admin"))
    assert assistants_table.get_assistant(Initial("CD23-1")).lineId is None


def test_link_line_id_unknown_assistant(assistants_table: AssistantsTable):
    with pytest.raises(AssistantLinkError, match="No assistant found"):
        assistants_table.link_line_id(Initial("ZZ99-9"), LineUserId("U-zz"))
    assert assistants_table.get_assistant(Initial("ZZ99-9")) is None


def test_get_all_assistants_sorted(assistants_table: AssistantsTable):
    assert [a.initial for a in assistants_table.get_all_assistants()] == ["AB23-2", "AD23-1", "CD23-1"]


def test_update_role(assistants_table: AssistantsTable):
    assistants_table.update_role(Initial("AB23-2"), "ADMIN")
    assert assistants_table.get_assistant(Initial("AB23-2")).role == "ADMIN"

    with pytest.raises(AssistantNotFoundError):
        assistants_table.update_role(Initial("ZZ99-9"), "ADMIN")


def test_get_line_ids_for_initials(assistants_table: AssistantsTable):
    assistants_table.link_line_id(Initial("AB23-2"), LineUserId("U-ab"))

    line_ids = assistants_table.get_line_ids_for_initials(
        [Initial("AB23-2"), Initial("CD23-1"), Initial("AD23-1"), Initial("ZZ99-9"), Initial("AB23-2")]
    )

    assert line_ids == {"AB23-2": "U-ab", "AD23-1": "U-admin"}
    assert assistants_table.get_line_ids_for_initials([]) == {}
