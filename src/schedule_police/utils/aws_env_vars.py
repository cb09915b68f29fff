import os

DEFAULT_MESSIER_API_BASE_URL = "https://bluejack.binus.ac.id/lapi/api"
DEFAULT_LINE_API_BASE_URL = "https://api.line.me"
DEFAULT_HTTP_TIMEOUT_SECONDS = 10


def _get_resource_by_env_var(env_var: str) -> str:
    value = os.environ.get(env_var)
    if not value:
        raise ValueError(f"Missing environment variable: {env_var}")
    return value


def get_aws_region() -> str:
    return _get_resource_by_env_var("AWS_REGION")


def get_permissions_table_name() -> str:
    return _get_resource_by_env_var("PERMISSIONS_TABLE_NAME")


def get_shifts_table_name() -> str:
    return _get_resource_by_env_var("SHIFTS_TABLE_NAME")


def get_assistants_table_name() -> str:
    return _get_resource_by_env_var("ASSISTANTS_TABLE_NAME")


def get_secrets_table_name() -> str:
    return _get_resource_by_env_var("SECRETS_TABLE_NAME")


def get_messier_api_base_url() -> str:
    return os.environ.get("MESSIER_API_BASE_URL", DEFAULT_MESSIER_API_BASE_URL).rstrip("/")


def get_line_api_base_url() -> str:
    return os.environ.get("LINE_API_BASE_URL", DEFAULT_LINE_API_BASE_URL).rstrip("/")


def get_http_timeout_seconds() -> float:
    """
    Timeout applied to every outbound call to LINE and Messier.
    Falls back to the default when unset or not a positive number.
    """
    raw_value = os.environ.get("HTTP_TIMEOUT_SECONDS")
    if not raw_value:
        return DEFAULT_HTTP_TIMEOUT_SECONDS
    try:
        value = float(raw_value)
    except ValueError:
        return DEFAULT_HTTP_TIMEOUT_SECONDS
    return value if value > 0 else DEFAULT_HTTP_TIMEOUT_SECONDS
