import logging
import typing

import boto3
from botocore.exceptions import ClientError

_LOGGER = logging.getLogger(__name__)


class SecretsTable:
    """
    DynamoDB table holding the credentials shared with LINE and Messier (read-only, cached).

    Schema:
        - PK: secretKey (String) - e.g., "LINE_CHANNEL_SECRET", "MESSIER_API_SECRET"
        - Attributes:
            - secretValue (String) - The actual secret value
            - description (String) - Optional description
            - updatedAt (String) - ISO timestamp of last update

    Secrets are populated out of band and cached for the lifetime of the Lambda container.
    """

    _cache: typing.ClassVar[dict[str, str]] = {}

    def __init__(self, table_name: str):
        self.client = boto3.resource("dynamodb")
        self.table = self.client.Table(table_name)

    def get_secret(self, secret_key: str) -> str:
        """
        :raises KeyError: If the secret is missing, empty, or cannot be read
        """
        if secret_key in self._cache:
            _LOGGER.debug(f"Returning secret '{secret_key}' from cache.")
            return self._cache[secret_key]

        try:
            _LOGGER.info(f"Fetching secret '{secret_key}' from DynamoDB.")
            response = self.table.get_item(Key={"secretKey": secret_key})
        except ClientError as e:
            _LOGGER.error(f"Error retrieving secret {secret_key}: {e}")
            raise KeyError(f"Failed to retrieve secret '{secret_key}' from DynamoDB") from e

        item = response.get("Item")
        if not item:
            _LOGGER.error(f"Secret not found: {secret_key}")
            raise KeyError(f"Secret '{secret_key}' not found in secrets table")

        secret_value = item.get("secretValue")
        if not secret_value:
            _LOGGER.error(f"Secret '{secret_key}' has no secretValue field")
            raise KeyError(f"Secret '{secret_key}' has no value in secrets table")

        self._cache[secret_key] = secret_value
        return secret_value

    def get_line_channel_secret(self) -> str:
        return self.get_secret("LINE_CHANNEL_SECRET")

    def get_line_channel_access_token(self) -> str:
        return self.get_secret("LINE_CHANNEL_ACCESS_TOKEN")

    def get_messier_api_secret(self) -> str:
        return self.get_secret("MESSIER_API_SECRET")

    def get_jwt_secret_key(self) -> str:
        return self.get_secret("JWT_SECRET")
