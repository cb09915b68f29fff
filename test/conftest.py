"""
Pytest configuration and fixtures for all tests.

This file contains fixtures that are automatically available to all test files.
"""

import os
import typing

import pytest


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """
    Sets up environment variables required for all tests.

    The fixture uses session scope since these values never change between tests.
    """
    # AWS Configuration
    os.environ["AWS_REGION"] = "us-west-1"

    # DynamoDB Table Names
    os.environ["PERMISSIONS_TABLE_NAME"] = "test-permissions-table"
    os.environ["SHIFTS_TABLE_NAME"] = "test-shifts-table"
    os.environ["ASSISTANTS_TABLE_NAME"] = "test-assistants-table"
    os.environ["SECRETS_TABLE_NAME"] = "test-secrets-table"

    # Outbound HTTP
    os.environ["MESSIER_API_BASE_URL"] = "https://messier.test/api"
    os.environ["LINE_API_BASE_URL"] = "https://line.test"
    os.environ["HTTP_TIMEOUT_SECONDS"] = "5"

    os.environ["DASHBOARD_ORIGIN"] = "https://dashboard.test"

    yield


@pytest.fixture(scope="function")
def aws_credentials() -> typing.Iterator[None]:
    """
    Mocks AWS credentials for moto.

    Used by the DynamoDB table tests together with moto's mock_aws context manager.
    """
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-west-1"
    yield
    del os.environ["AWS_ACCESS_KEY_ID"]
    del os.environ["AWS_SECRET_ACCESS_KEY"]
    del os.environ["AWS_SECURITY_TOKEN"]
    del os.environ["AWS_SESSION_TOKEN"]
    del os.environ["AWS_DEFAULT_REGION"]
