"""Unit tests for utils/error_utils.py"""

from botocore.exceptions import ClientError, InvalidIMDSEndpointError, NoCredentialsError

from ecr_login.utils.error_utils import (
    ActionableError,
    ApiError,
    ConfigError,
    DecodeError,
    EcrLoginError,
    ErrorCategory,
    OutputError,
    TemplateError,
    create_api_error,
    create_decode_error,
    create_output_error,
    create_region_error,
    create_template_error,
)


class TestActionableError:
    """Tests for ActionableError formatting"""

    def test_message_only(self):
        error = ActionableError("Something broke")
        assert error.format_message() == "❌ Something broke"
        assert error.category == ErrorCategory.UNKNOWN

    def test_includes_suggestions_and_details(self):
        error = ActionableError(
            "Something broke",
            suggestions=["Try this", "Then that"],
            details={"key": "value"},
        )
        message = str(error)
        assert "💡 Suggested fixes:" in message
        assert "   1. Try this" in message
        assert "   2. Then that" in message
        assert "📋 Additional details:" in message
        assert "   key: value" in message

    def test_error_kinds_share_base_class(self):
        for cls in (ConfigError, ApiError, DecodeError, TemplateError, OutputError):
            assert issubclass(cls, EcrLoginError)
            assert issubclass(cls, ActionableError)

    def test_default_categories(self):
        assert ConfigError("x").category == ErrorCategory.CONFIGURATION
        assert ApiError("x").category == ErrorCategory.AUTHENTICATION
        assert DecodeError("x").category == ErrorCategory.DECODE
        assert TemplateError("x").category == ErrorCategory.TEMPLATE
        assert OutputError("x").category == ErrorCategory.OUTPUT

    def test_category_can_be_overridden(self):
        assert ApiError("x", category=ErrorCategory.NETWORK).category == ErrorCategory.NETWORK


class TestCreateRegionError:
    """Tests for create_region_error"""

    def test_no_region_from_metadata(self):
        error = create_region_error()
        assert isinstance(error, ConfigError)
        assert "AWS_REGION is not set" in error.message
        assert error.details == {"metadata_endpoint": "default"}
        assert any("AWS_EC2_METADATA_DISABLED" in s for s in error.suggestions)
        assert any("AWS_METADATA_SERVICE_TIMEOUT" in s for s in error.suggestions)

    def test_metadata_lookup_failed(self):
        error = create_region_error("http://bad host", InvalidIMDSEndpointError(endpoint="http://bad host"))
        assert error.details["metadata_endpoint"] == "http://bad host"
        assert error.details["error_type"] == "InvalidIMDSEndpointError"
        assert "AWS_EC2_METADATA_SERVICE_ENDPOINT" in error.suggestions[0]


class TestCreateApiError:
    """Tests for create_api_error"""

    def test_access_denied_is_permission_error(self):
        error = create_api_error(
            [], ClientError({"Error": {"Code": "AccessDeniedException", "Message": "denied"}}, "GetAuthorizationToken")
        )
        assert isinstance(error, ApiError)
        assert error.category == ErrorCategory.PERMISSION
        assert error.details["registry_ids"] == "(default)"
        assert "ecr:GetAuthorizationToken" in error.suggestions[0]

    def test_missing_credentials(self):
        error = create_api_error(["111111111111"], NoCredentialsError())
        assert error.category == ErrorCategory.AUTHENTICATION
        assert "AWS_ACCESS_KEY_ID" in error.suggestions[0]
        assert "error_code" not in error.details

    def test_message_carries_provider_message(self):
        error = create_api_error(
            ["1"], ClientError({"Error": {"Code": "InvalidParameterException", "Message": "bad id"}}, "GetAuthorizationToken")
        )
        assert "bad id" in error.message
        assert "REGISTRIES" in error.suggestions[0]


class TestOtherFactories:
    """Tests for decode, template and output error factories"""

    def test_decode_error(self):
        error = create_decode_error("https://r.example.com", "decoded token has no ':' separator")
        assert isinstance(error, DecodeError)
        assert error.message == "Invalid authorization token for https://r.example.com: decoded token has no ':' separator"

    def test_template_error_for_builtin(self):
        error = create_template_error("default", ValueError("boom"))
        assert isinstance(error, TemplateError)
        assert error.message == "Template default failed: boom"
        assert "path" not in error.details

    def test_template_error_for_file(self):
        error = create_template_error("t.tmpl", FileNotFoundError(2, "No such file"), path="/tmp/t.tmpl")
        assert error.details["path"] == "/tmp/t.tmpl"
        assert any("Unset TEMPLATE" in s for s in error.suggestions)

    def test_output_error(self):
        error = create_output_error(BrokenPipeError(32, "Broken pipe"))
        assert isinstance(error, OutputError)
        assert error.details["error_type"] == "BrokenPipeError"
