import pydantic

from schedule_police.utils.base_types import Initial

ADMIN_ROLE = "ADMIN"


class Viewer(pydantic.BaseModel):
    """The authenticated dashboard user, as handed over by the Lambda authorizer."""

    username: Initial
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE
