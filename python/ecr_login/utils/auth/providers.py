"""
Authentication provider implementations for AWS ECR.

This module contains the region discovery, session construction, token
fetch and token decoding steps. It performs no retries beyond what
boto3 already does.
"""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import boto3
import botocore.session
from botocore.exceptions import BotoCoreError, ClientError
from botocore.utils import IMDSRegionProvider

from ecr_login.utils.config_manager import ConfigManager
from ecr_login.utils.error_utils import create_api_error, create_decode_error, create_region_error

logger = logging.getLogger(__name__)


@dataclass
class AuthRecord:
    """Decoded credentials for one registry.

    The metadata names are the field names templates use (``{{.User}}``).
    """

    token: str = field(metadata={"template_name": "Token"})
    user: str = field(metadata={"template_name": "User"})
    password: str = field(repr=False, metadata={"template_name": "Pass"})
    proxy_endpoint: str = field(metadata={"template_name": "ProxyEndpoint"})
    expires_at: Optional[datetime] = field(default=None, metadata={"template_name": "ExpiresAt"})


def get_instance_region(environ: Optional[Mapping[str, str]] = None, botocore_session=None) -> str:
    """Get the region of the EC2 instance we are running on.

    botocore handles the IMDSv2 token exchange (falling back to IMDSv1),
    AWS_EC2_METADATA_DISABLED, AWS_EC2_METADATA_SERVICE_ENDPOINT and the
    metadata timeout and attempt settings.

    Args:
        environ: Environment mapping for the metadata fetcher (defaults to os.environ)
        botocore_session: botocore session to read metadata settings from

    Returns:
        Region name derived from the instance's availability zone

    Raises:
        ConfigError: If the metadata service is disabled, unreachable or returns no region
    """
    if botocore_session is None:
        botocore_session = botocore.session.get_session()
    endpoint = botocore_session.get_config_variable("ec2_metadata_service_endpoint")

    try:
        region = IMDSRegionProvider(botocore_session, environ=environ).provide()
    except BotoCoreError as e:
        raise create_region_error(endpoint, e) from e

    if not region:
        raise create_region_error(endpoint)

    logger.info(f"Discovered region {region} from instance metadata")
    return region


def resolve_region(config: ConfigManager) -> str:
    """Resolve the ECR region: AWS_REGION first, then instance metadata.

    Raises:
        ConfigError: If neither source yields a region
    """
    region = config.get_region()
    if region:
        logger.debug(f"Using region {region} from AWS_REGION")
        return region

    return get_instance_region(config.get_environ())


def create_session(region: str) -> boto3.session.Session:
    """Create a boto3 session using the standard credential chain."""
    return boto3.session.Session(region_name=region)


def get_ecr_client(session: boto3.session.Session):
    return session.client("ecr")


def fetch_authorization_data(ecr_client, registry_ids: Sequence[str]) -> List[Dict[str, Any]]:
    """Call GetAuthorizationToken once for the given registries.

    Args:
        ecr_client: boto3 ECR client
        registry_ids: Registry account IDs; empty means the caller's default registry

    Returns:
        The authorizationData entries, in the order the service returned them

    Raises:
        ApiError: On any failure from the service or the SDK
    """
    params: Dict[str, Any] = {}
    if registry_ids:
        params["registryIds"] = list(registry_ids)

    logger.info(
        "Requesting ECR authorization token for "
        + (", ".join(registry_ids) if registry_ids else "the default registry")
    )
    try:
        response = ecr_client.get_authorization_token(**params)
    except (ClientError, BotoCoreError) as e:
        raise create_api_error(registry_ids, e) from e

    authorization_data = response.get("authorizationData", [])
    logger.debug(f"Received {len(authorization_data)} authorization record(s)")
    return authorization_data


def decode_authorization_token(token: str, proxy_endpoint: str = "registry") -> Tuple[str, str]:
    """Decode a base64 'user:password' token.

    Only the first colon separates user from password; the password may
    itself contain colons.

    Raises:
        DecodeError: If the token is not valid base64 or UTF-8, or has no colon
    """
    # \r and \n are ignored inside the encoded token
    token = token.replace("\r", "").replace("\n", "")
    try:
        decoded = base64.b64decode(token, validate=True).decode("utf-8")
    except binascii.Error as e:
        raise create_decode_error(proxy_endpoint, f"not valid base64 ({e})") from e
    except UnicodeDecodeError as e:
        raise create_decode_error(proxy_endpoint, "decoded token is not UTF-8 text") from e

    if ":" not in decoded:
        raise create_decode_error(proxy_endpoint, "decoded token has no ':' separator")

    user, password = decoded.split(":", 1)
    return user, password


def decode_authorization_data(authorization_data: Sequence[Dict[str, Any]]) -> List[AuthRecord]:
    """Turn raw authorizationData entries into AuthRecords, preserving order."""
    records = []
    for auth in authorization_data:
        proxy_endpoint = auth.get("proxyEndpoint")
        if not proxy_endpoint:
            raise create_decode_error("registry", "authorization record has no proxyEndpoint")
        token = auth.get("authorizationToken")
        if not token:
            raise create_decode_error(proxy_endpoint, "authorization record has no authorizationToken")
        user, password = decode_authorization_token(token, proxy_endpoint)
        records.append(
            AuthRecord(
                token=token,
                user=user,
                password=password,
                proxy_endpoint=proxy_endpoint,
                expires_at=auth.get("expiresAt"),
            )
        )
    return records
