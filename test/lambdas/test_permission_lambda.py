import json
from unittest.mock import Mock

from schedule_police.dynamodb.permissions_table import (
    PermissionNotFoundError,
    PermissionStateError,
    PermissionValidationError,
)
from schedule_police.lambdas.permission_lambda import PermissionApiHandler
from schedule_police.models.permission_models import PermissionShiftModel, PermissionWithShiftModel

from test_utils.authorizer import add_authorizer_info


def create_permission_api_handler(permissions_table=None) -> PermissionApiHandler:
    permissions_table = permissions_table or Mock()
    handler = PermissionApiHandler(permissions_table)
    assert handler.permissions_table == permissions_table
    return handler


def _event(method: str, body: dict = None, query: dict = None, role: str = "ADMIN") -> dict:
    event = {
        "requestContext": {"http": {"method": method, "path": "/permissions"}},
        "queryStringParameters": query,
        "body": json.dumps(body) if body is not None else None,
    }
    add_authorizer_info(event, "AD23-1", role)
    return event


def _permission(permission_id: str = "p-1", status: str = "pending") -> PermissionWithShiftModel:
    return PermissionWithShiftModel(
        id=permission_id,
        initial="AB23-2",
        reason="sick",
        className="LA01",
        room="R701",
        course="Algorithms",
        shiftId="3",
        status=status,
        createdAt="2025-01-01T11:05:00+00:00",
        shift=PermissionShiftModel(shiftId="3", start="11:00", end="13:00"),
    )


def test_permission_api_handler_handle_error_1():
    """
    Unidentified user -> 401
    """
    handler = create_permission_api_handler()
    response = handler.handle({})
    assert response["statusCode"] == 401


def test_permission_api_handler_handle_error_2():
    """
    Unhandled method -> 405
    """
    handler = create_permission_api_handler()
    response = handler.handle(_event("DELETE"))
    assert response["statusCode"] == 405


def test_get_permissions_by_status():
    permissions_table = Mock()
    permissions_table.list_permissions_by_status.return_value = [_permission()]
    handler = create_permission_api_handler(permissions_table)

    response = handler.handle(_event("GET", query={"type": "pending"}))

    assert response["statusCode"] == 200
    body = json.loads(response["body"])
    assert body["success"] is True
    assert body["data"][0]["id"] == "p-1"
    assert body["data"][0]["shift"] == {"shiftId": "3", "start": "11:00", "end": "13:00"}
    viewer = permissions_table.list_permissions_by_status.call_args.args[1]
    assert permissions_table.list_permissions_by_status.call_args.args[0] == "pending"
    assert viewer.username == "AD23-1"


def test_get_permissions_unknown_type_lists_all():
    permissions_table = Mock()
    permissions_table.list_all_permissions.return_value = []
    handler = create_permission_api_handler(permissions_table)

    response = handler.handle(_event("GET", query={"type": "everything"}))

    assert response["statusCode"] == 200
    assert json.loads(response["body"])["data"] == []
    permissions_table.list_all_permissions.assert_called_once()
    permissions_table.list_permissions_by_status.assert_not_called()


def test_patch_requires_admin():
    permissions_table = Mock()
    handler = create_permission_api_handler(permissions_table)

    response = handler.handle(_event("PATCH", {"action": "approve", "id": "p-1"}, role="AST"))

    assert response["statusCode"] == 403
    permissions_table.approve_permission.assert_not_called()


def test_patch_approve():
    permissions_table = Mock()
    handler = create_permission_api_handler(permissions_table)

    response = handler.handle(_event("PATCH", {"action": "approve", "id": "p-1"}))

    assert response["statusCode"] == 200
    assert json.loads(response["body"])["message"] == "Permission approved successfully."
    permissions_table.approve_permission.assert_called_once_with("p-1", None)


def test_patch_reject():
    permissions_table = Mock()
    handler = create_permission_api_handler(permissions_table)

    response = handler.handle(_event("PATCH", {"action": "reject", "id": "p-1", "reason": "no proof"}))

    assert response["statusCode"] == 200
    permissions_table.reject_permission.assert_called_once_with("p-1", "no proof")


def test_patch_invalid_action():
    permissions_table = Mock()
    handler = create_permission_api_handler(permissions_table)

    response = handler.handle(_event("PATCH", {"action": "delete", "id": "p-1"}))

    assert response["statusCode"] == 400
    body = json.loads(response["body"])
    assert body["message"] == "Invalid action."
    assert body["errorCode"] == "VALIDATION_ERROR"
    permissions_table.approve_permission.assert_not_called()
    permissions_table.reject_permission.assert_not_called()


def test_patch_empty_id():
    permissions_table = Mock()
    handler = create_permission_api_handler(permissions_table)

    response = handler.handle(_event("PATCH", {"action": "approve", "id": ""}))

    assert response["statusCode"] == 400
    body = json.loads(response["body"])
    assert body["errorCode"] == "VALIDATION_ERROR"
    assert body["details"][0]["loc"] == ["id"]
    permissions_table.approve_permission.assert_not_called()


def test_patch_missing_body():
    handler = create_permission_api_handler()
    response = handler.handle(_event("PATCH"))
    assert response["statusCode"] == 400


def test_patch_reject_without_reason():
    permissions_table = Mock()
    permissions_table.reject_permission.side_effect = PermissionValidationError("Rejection reason cannot be empty.")
    handler = create_permission_api_handler(permissions_table)

    response = handler.handle(_event("PATCH", {"action": "reject", "id": "p-1"}))

    assert response["statusCode"] == 400
    assert json.loads(response["body"])["message"] == "Rejection reason cannot be empty."


def test_patch_unknown_permission():
    permissions_table = Mock()
    permissions_table.approve_permission.side_effect = PermissionNotFoundError("p-404")
    handler = create_permission_api_handler(permissions_table)

    response = handler.handle(_event("PATCH", {"action": "approve", "id": "p-404"}))

    assert response["statusCode"] == 404


def test_patch_already_resolved():
    permissions_table = Mock()
    permissions_table.approve_permission.side_effect = PermissionStateError("p-1", "rejected")
    handler = create_permission_api_handler(permissions_table)

    response = handler.handle(_event("PATCH", {"action": "approve", "id": "p-1"}))

    assert response["statusCode"] == 409
    assert json.loads(response["body"])["errorCode"] == "STATE_CONFLICT"


def test_unexpected_error_is_500():
    permissions_table = Mock()
    permissions_table.list_all_permissions.side_effect = RuntimeError("boom")
    handler = create_permission_api_handler(permissions_table)

    response = handler.handle(_event("GET"))

    assert response["statusCode"] == 500
