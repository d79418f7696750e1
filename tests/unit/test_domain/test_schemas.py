"""
test_schemas.py - domain schemas and errors
"""

import base64

import pytest

from ipsqr.domain.errors import (
    ErrorCodes,
    IpsQrError,
    UnsupportedLanguageError,
    ValidationError,
)
from ipsqr.domain.schemas import ApiResponse, Template

# =============================================================================
# Template
# =============================================================================


class TestTemplate:

    def test_to_dict_camel_case(self):
        template = Template(
            id="tpl_1_abc",
            name="Rent",
            endpoint="/gen",
            data={"K": "PR"},
            created_at="2024-01-01T00:00:00+00:00",
            updated_at="2024-01-01T00:00:00+00:00",
        )

        data = template.to_dict()

        assert data["createdAt"] == "2024-01-01T00:00:00+00:00"
        assert data["usageCount"] == 0
        assert data["lastUsed"] is None
        assert data["method"] == "POST"

    def test_from_dict_round_trip(self):
        original = Template(id="tpl_1_abc", name="Rent", endpoint="/gen", usage_count=4)

        assert Template.from_dict(original.to_dict()) == original

    def test_from_dict_requires_id(self):
        with pytest.raises(KeyError):
            Template.from_dict({"name": "Rent", "endpoint": "/gen"})

    def test_copy_is_detached(self):
        template = Template(id="tpl_1_abc", name="Rent", endpoint="/gen", data={"K": "PR"})

        copy = template.copy()
        copy.data["K"] = "PT"

        assert template.data["K"] == "PR"


# =============================================================================
# ApiResponse
# =============================================================================


class TestApiResponse:

    def test_api_ok_requires_status_code_zero(self):
        ok = ApiResponse(success=True, status=200, data={"s": {"code": 0}})
        bad = ApiResponse(success=True, status=200, data={"s": {"code": 1, "desc": "x"}})
        missing = ApiResponse(success=True, status=200, data={})

        assert ok.api_ok is True
        assert bad.api_ok is False
        assert missing.api_ok is False

    def test_http_failure_never_ok(self):
        response = ApiResponse(success=False, status=500, data={"s": {"code": 0}})

        assert response.api_ok is False

    def test_image_ok(self):
        response = ApiResponse(success=True, status=200, data=b"png", is_image=True)

        assert response.api_ok is True
        assert response.error_message is None

    def test_to_dict_encodes_image(self):
        response = ApiResponse(
            success=True, status=200, data=b"png", content_type="image/png", is_image=True
        )

        data = response.to_dict()

        assert base64.b64decode(data["data"]) == b"png"
        assert data["apiOk"] is True
        assert data["isImage"] is True


# =============================================================================
# Errors
# =============================================================================


class TestErrors:

    def test_str_includes_code_and_context(self):
        error = ValidationError(ErrorCodes.MISSING_REQUIRED_FIELD, "K is required", field="K")

        assert str(error) == "[MISSING_REQUIRED_FIELD] K is required (field='K')"

    def test_to_dict(self):
        error = IpsQrError(ErrorCodes.TIMEOUT, "slow", endpoint="/gen")

        assert error.to_dict() == {"code": "TIMEOUT", "message": "slow", "endpoint": "/gen"}

    def test_message_defaults_to_code(self):
        assert IpsQrError(ErrorCodes.UNKNOWN_ERROR).message == "UNKNOWN_ERROR"

    def test_unsupported_language_is_validation_error(self):
        error = UnsupportedLanguageError("de")

        assert isinstance(error, ValidationError)
        assert error.message == "Unsupported language: de"
        assert error.context == {"language": "de"}
