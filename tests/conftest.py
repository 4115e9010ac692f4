"""
Pytest configuration file.

Sets up the Python path so test files can import from the python/ directory,
and provides helpers for building fake GetAuthorizationToken responses.
"""
import base64
import sys
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add python directory to path for all tests
_python_dir = Path(__file__).parent.parent / 'python'
_python_dir_abs = str(_python_dir.absolute())
if _python_dir_abs not in sys.path:
    sys.path.insert(0, _python_dir_abs)

PROXY_ENDPOINT = "https://123456789012.dkr.ecr.us-east-1.amazonaws.com"
EXPIRES_AT = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def encode_token(cleartext: str) -> str:
    """base64 token as the registry service returns it"""
    return base64.b64encode(cleartext.encode("utf-8")).decode("ascii")


def make_auth_data(cleartext: str = "AWS:hunter2", proxy_endpoint: str = PROXY_ENDPOINT,
                   expires_at: datetime = EXPIRES_AT) -> dict:
    return {
        "authorizationToken": encode_token(cleartext),
        "proxyEndpoint": proxy_endpoint,
        "expiresAt": expires_at,
    }


@pytest.fixture
def mock_ecr_client():
    """ECR client returning a single record for AWS:hunter2"""
    client = MagicMock()
    client.get_authorization_token.return_value = {"authorizationData": [make_auth_data()]}
    return client
