def add_authorizer_info(event: dict, username: str, role: str = "AST") -> None:
    assert "authorizer" not in event["requestContext"]
    event["requestContext"]["authorizer"] = {"lambda": {"sub": username, "role": role}}
