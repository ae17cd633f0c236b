import pytest

from config.settings import mask_sensitive_data

pytestmark = pytest.mark.unit


class TestSensitiveDataMasking:
    def test_phone_masked(self):
        event_dict = {"event": "test", "phone": "+9647701234567"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "7701234567" not in result["phone"]
        assert "***MASKED***" in result["phone"]

    def test_phone_masked_for_any_country_code(self):
        event_dict = {"event": "test", "contact": "call +442071838750 today"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "2071838750" not in result["contact"]
        assert result["contact"].startswith("call ")

    def test_password_masked(self):
        event_dict = {"event": "test", "data": "password='s3cret123'"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "s3cret123" not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_token_masked(self):
        event_dict = {"event": "test", "header": "token=abc123xyz"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "abc123xyz" not in result["header"]

    def test_otp_masked(self):
        event_dict = {"event": "test", "sms": "otp: 482913"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "482913" not in result["sms"]

    def test_non_sensitive_data_unchanged(self):
        event_dict = {"event": "order.created", "order_number": "ORD-20260101-ABC123"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["order_number"] == "ORD-20260101-ABC123"

    def test_non_string_values_untouched(self):
        event_dict = {"event": "test", "count": 3}
        assert mask_sensitive_data(None, None, event_dict)["count"] == 3
