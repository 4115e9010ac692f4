"""
Error message utilities for providing actionable guidance to users.

Every failure that ends an ecr-login run is raised as one of the
EcrLoginError subclasses below. The entry point prints the formatted
message (with suggested fixes) to stderr and exits non-zero.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence


class ErrorCategory(Enum):
    """Categories of errors for better error handling"""
    CONFIGURATION = "configuration"
    AUTHENTICATION = "authentication"
    PERMISSION = "permission"
    NETWORK = "network"
    DECODE = "decode"
    TEMPLATE = "template"
    OUTPUT = "output"
    UNKNOWN = "unknown"


class ActionableError(Exception):
    """Exception with actionable guidance for users"""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.UNKNOWN,
                 suggestions: Optional[List[str]] = None, details: Optional[Dict[str, Any]] = None):
        """Initialize actionable error

        Args:
            message: Primary error message
            category: Error category for classification
            suggestions: List of suggested fixes
            details: Additional context information
        """
        self.message = message
        self.category = category
        self.suggestions = suggestions or []
        self.details = details or {}
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the complete error message with suggestions"""
        lines = [f"❌ {self.message}"]

        if self.suggestions:
            lines.append("\n💡 Suggested fixes:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"   {i}. {suggestion}")

        if self.details:
            lines.append("\n📋 Additional details:")
            for key, value in self.details.items():
                lines.append(f"   {key}: {value}")

        return "\n".join(lines)


class EcrLoginError(ActionableError):
    """Base class for every error that aborts a run"""


class ConfigError(EcrLoginError):
    """Region or environment configuration could not be resolved"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("category", ErrorCategory.CONFIGURATION)
        super().__init__(message, **kwargs)


class ApiError(EcrLoginError):
    """The GetAuthorizationToken call failed"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("category", ErrorCategory.AUTHENTICATION)
        super().__init__(message, **kwargs)


class DecodeError(EcrLoginError):
    """An authorization token could not be decoded into user and password"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("category", ErrorCategory.DECODE)
        super().__init__(message, **kwargs)


class TemplateError(EcrLoginError):
    """The output template could not be read, parsed or executed"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("category", ErrorCategory.TEMPLATE)
        super().__init__(message, **kwargs)


class OutputError(EcrLoginError):
    """Writing the rendered output to stdout failed"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("category", ErrorCategory.OUTPUT)
        super().__init__(message, **kwargs)


def create_region_error(endpoint: Optional[str] = None, error: Optional[Exception] = None) -> ConfigError:
    """Create actionable error for a region that could not be determined"""
    suggestions = [
        "Set the AWS_REGION environment variable (e.g. AWS_REGION=us-east-1)",
        "When running on EC2, verify the instance metadata service is reachable",
        "Check that AWS_EC2_METADATA_DISABLED is not set to true",
    ]
    details: Dict[str, Any] = {"metadata_endpoint": endpoint or "default"}

    if error is not None:
        error_str = str(error).lower()
        if "endpoint" in error_str:
            suggestions.insert(0, "Check AWS_EC2_METADATA_SERVICE_ENDPOINT is a valid URL")
        details["error_type"] = type(error).__name__
        details["error_message"] = str(error)
    else:
        suggestions.append(
            "Raise AWS_METADATA_SERVICE_TIMEOUT or AWS_METADATA_SERVICE_NUM_ATTEMPTS if the service is slow"
        )

    return ConfigError(
        "Unable to determine AWS region: AWS_REGION is not set and no region could be read from instance metadata",
        suggestions=suggestions,
        details=details,
    )


def create_api_error(registry_ids: Sequence[str], error: Exception) -> ApiError:
    """Create actionable error for GetAuthorizationToken failures"""
    error_str = str(error).lower()
    error_code = ""
    response = getattr(error, "response", None)
    if isinstance(response, dict):
        error_code = response.get("Error", {}).get("Code", "")

    suggestions = [
        "Verify AWS credentials are configured (aws configure, AWS_PROFILE or an instance role)",
        "Check that the credentials allow ecr:GetAuthorizationToken",
    ]
    category = ErrorCategory.AUTHENTICATION

    if "credentials" in error_str:
        suggestions.insert(0, "Set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY or AWS_PROFILE")
    if error_code in ("AccessDeniedException", "UnrecognizedClientException") or "not authorized" in error_str:
        category = ErrorCategory.PERMISSION
        suggestions.insert(0, "Grant ecr:GetAuthorizationToken to the calling principal")
    if error_code == "InvalidParameterException" and registry_ids:
        suggestions.insert(0, "Check REGISTRIES contains valid 12-digit AWS account IDs")
    if error_code == "ThrottlingException" or "rate exceeded" in error_str:
        category = ErrorCategory.NETWORK
        suggestions.insert(0, "Wait before retrying; the request was throttled")
    if "could not connect" in error_str or "endpoint" in error_str:
        category = ErrorCategory.NETWORK
        suggestions.insert(0, "Check network connectivity to the ECR endpoint and the AWS_REGION value")

    details: Dict[str, Any] = {
        "registry_ids": ",".join(registry_ids) if registry_ids else "(default)",
        "error_type": type(error).__name__,
    }
    if error_code:
        details["error_code"] = error_code

    return ApiError(
        f"Failed to get ECR authorization token: {error}",
        category=category,
        suggestions=suggestions,
        details=details,
    )


def create_decode_error(proxy_endpoint: str, reason: str) -> DecodeError:
    """Create actionable error for an authorization token that does not decode"""
    return DecodeError(
        f"Invalid authorization token for {proxy_endpoint}: {reason}",
        suggestions=[
            "Retry the command; the registry service returned an unexpected token",
        ],
        details={"proxy_endpoint": proxy_endpoint},
    )


def create_template_error(template_name: str, error: Exception, path: Optional[str] = None) -> TemplateError:
    """Create actionable error for template read, parse and execution failures"""
    suggestions = []
    if path is not None:
        if isinstance(error, OSError):
            suggestions.append(f"Verify the TEMPLATE file exists and is readable: {path}")
        suggestions.append("Unset TEMPLATE to use the built-in docker login template")
    suggestions.append("Records expose the fields Token, User, Pass, ProxyEndpoint and ExpiresAt")

    details: Dict[str, Any] = {"template": template_name}
    if path is not None:
        details["path"] = path

    return TemplateError(
        f"Template {template_name} failed: {error}",
        suggestions=suggestions,
        details=details,
    )


def create_output_error(error: Exception) -> OutputError:
    """Create actionable error for a failed write to standard output"""
    return OutputError(
        f"Failed to write output: {error}",
        suggestions=["Check that the consumer of stdout is still reading (e.g. a closed pipe)"],
        details={"error_type": type(error).__name__},
    )
