"""
Authentication providers for AWS ECR.

This module provides:
- Region discovery (AWS_REGION or EC2 instance metadata)
- boto3 session and ECR client construction
- GetAuthorizationToken fetch and token decoding
"""

from ecr_login.utils.auth.providers import (
    AuthRecord,
    create_session,
    decode_authorization_data,
    decode_authorization_token,
    fetch_authorization_data,
    get_ecr_client,
    get_instance_region,
    resolve_region,
)

__all__ = [
    "AuthRecord",
    "create_session",
    "decode_authorization_data",
    "decode_authorization_token",
    "fetch_authorization_data",
    "get_ecr_client",
    "get_instance_region",
    "resolve_region",
]
