"""Tests for request schema validation."""
import pytest

from app.services.errors import RequestValidationFailed
from app.services.validation import validate_request
from tests.conftest import make_args


def _errors(args: dict) -> dict:
    with pytest.raises(RequestValidationFailed) as exc_info:
        validate_request(args)
    return exc_info.value.details


class TestDuration:
    @pytest.mark.parametrize("minutes", [5, 240])
    def test_bounds_accepted(self, minutes):
        assert validate_request(make_args(durationMinutes=minutes)).duration_minutes == minutes

    @pytest.mark.parametrize("minutes", [4, 241])
    def test_out_of_range_rejected(self, minutes):
        assert "durationMinutes" in _errors(make_args(durationMinutes=minutes))

    @pytest.mark.parametrize("value", ["30", 30.5, True])
    def test_non_integer_rejected(self, value):
        assert "durationMinutes" in _errors(make_args(durationMinutes=value))

    def test_legacy_alias_accepted(self):
        args = make_args()
        args["durationMins"] = args.pop("durationMinutes")
        assert validate_request(args).duration_minutes == 30

    def test_legacy_alias_errors_reported_under_canonical_name(self):
        args = make_args()
        args.pop("durationMinutes")
        args["durationMins"] = 500
        assert list(_errors(args)) == ["durationMinutes"]


class TestFields:
    def test_valid_request(self):
        req = validate_request(make_args(name="  Grace Hopper  "))
        assert req.name == "Grace Hopper"
        assert req.timezone == "America/New_York"
        assert req.effective_title == "Meeting with Grace Hopper"

    def test_explicit_title_wins(self):
        assert validate_request(make_args(title="Design review")).effective_title == "Design review"

    def test_session_id_must_be_uuid(self):
        errors = _errors(make_args(sessionId="not-a-uuid"))
        assert list(errors) == ["sessionId"]
        assert errors["sessionId"] == ["must be a valid UUID"]

    def test_session_id_is_lowercased(self):
        req = validate_request(make_args(sessionId="6F1C2B7E-9A3D-4E5F-8B1A-2C3D4E5F6A7B"))
        assert req.session_id == "6f1c2b7e-9a3d-4e5f-8b1a-2c3d4e5f6a7b"

    def test_unknown_timezone(self):
        assert "timezone" in _errors(make_args(timezone="Atlantis/Lost_City"))

    def test_name_too_long(self):
        assert "name" in _errors(make_args(name="x" * 101))

    @pytest.mark.parametrize("field", ["name", "date", "time"])
    def test_blank_after_trim_rejected(self, field):
        assert field in _errors(make_args(**{field: "   "}))

    def test_title_too_long(self):
        assert "title" in _errors(make_args(title="t" * 201))

    def test_all_violations_reported_together_in_field_order(self):
        errors = _errors({"sessionId": "nope", "timezone": "Nowhere/Else", "durationMinutes": 1})
        assert list(errors) == ["sessionId", "name", "date", "time", "timezone", "durationMinutes"]
        assert errors["name"] == ["is required"]

    def test_non_object_rejected(self):
        with pytest.raises(RequestValidationFailed):
            validate_request(["not", "an", "object"])

    def test_message_lists_fields(self):
        with pytest.raises(RequestValidationFailed) as exc_info:
            validate_request(make_args(sessionId="bad"))
        assert exc_info.value.message.startswith("Validation failed: sessionId")
        assert exc_info.value.http_status == 400
