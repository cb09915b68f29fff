import typing
from datetime import datetime, timedelta, timezone

import jwt

from schedule_police.utils.base_types import Initial

CONNECT_TOKEN_EXPIRE_MINUTES = 15
CONNECT_TOKEN_PURPOSE = "CONNECT_LINE_ID"


class JwtWrapper:
    """Issues and checks the short-lived tokens used to link a LINE account to an assistant."""

    def __init__(self, jwt_secret: str) -> None:
        self.jwt_secret = jwt_secret

    def create_connect_token(self, initial: Initial) -> tuple[str, int]:
        """Returns the encoded token and its expiry as a unix timestamp."""
        expire = datetime.now(timezone.utc) + timedelta(minutes=CONNECT_TOKEN_EXPIRE_MINUTES)
        to_encode = {"exp": expire, "sub": initial, "purpose": CONNECT_TOKEN_PURPOSE}
        encoded_token = jwt.encode(to_encode, self.jwt_secret, algorithm="HS256")
        return encoded_token, int(expire.timestamp())

    def verify_connect_token(self, token: str) -> typing.Optional[Initial]:
        try:
            payload = jwt.decode(token, self.jwt_secret, algorithms=["HS256"])
        except jwt.PyJWTError:
            return None

        if payload.get("purpose") != CONNECT_TOKEN_PURPOSE or not payload.get("sub"):
            return None
        return Initial(str(payload["sub"]))
