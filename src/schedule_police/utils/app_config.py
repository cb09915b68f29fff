import pydantic

from schedule_police.dynamodb.secrets_table import SecretsTable
from schedule_police.utils.aws_env_vars import (
    get_http_timeout_seconds,
    get_line_api_base_url,
    get_messier_api_base_url,
)


class AppConfig(pydantic.BaseModel):
    """
    Everything the webhook needs from the outside world, resolved once at start-up and
    handed to the verifier and clients explicitly.
    """

    model_config = pydantic.ConfigDict(frozen=True)

    line_channel_secret: str
    line_channel_access_token: str
    line_api_base_url: str
    messier_api_secret: str
    messier_api_base_url: str
    jwt_secret: str
    http_timeout_seconds: float = pydantic.Field(gt=0)


def load_app_config(secrets_table: SecretsTable) -> AppConfig:
    """
    :raises KeyError: If a required secret is missing
    :raises ValueError: If a required environment variable is missing
    """
    return AppConfig(
        line_channel_secret=secrets_table.get_line_channel_secret(),
        line_channel_access_token=secrets_table.get_line_channel_access_token(),
        line_api_base_url=get_line_api_base_url(),
        messier_api_secret=secrets_table.get_messier_api_secret(),
        messier_api_base_url=get_messier_api_base_url(),
        jwt_secret=secrets_table.get_jwt_secret_key(),
        http_timeout_seconds=get_http_timeout_seconds(),
    )
