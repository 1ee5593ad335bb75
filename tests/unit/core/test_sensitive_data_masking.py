import pytest

from config.log_config import MASK, build_logging, mask_sensitive_data

pytestmark = pytest.mark.unit


def _mask(**fields):
    return mask_sensitive_data(None, None, {"event": "test", **fields})


class TestSensitiveDataMasking:
    @pytest.mark.parametrize("phone", ["010-1234-5678", "01012345678"])
    def test_phone_numbers_masked(self, phone):
        result = _mask(phone=phone)
        assert phone not in result["phone"]
        assert MASK in result["phone"]

    @pytest.mark.parametrize(
        "value, secret",
        [
            ("password='s3cret123'", "s3cret123"),
            ("token=abc123xyz", "abc123xyz"),
            ("paymentKey: tgen_20240101ABCDEF", "tgen_20240101ABCDEF"),
            ("payment_key=tgen_XYZ", "tgen_XYZ"),
        ],
    )
    def test_credentials_masked(self, value, secret):
        assert secret not in _mask(data=value)["data"]

    def test_non_string_values_untouched(self):
        assert _mask(amount=20000)["amount"] == 20000

    def test_non_sensitive_data_unchanged(self):
        result = mask_sensitive_data(
            None, None, {"event": "order.created", "order_id": "ORD-20240101-ABC123"}
        )
        assert result == {"event": "order.created", "order_id": "ORD-20240101-ABC123"}


class TestBuildLogging:
    def test_level_applies_to_root_and_django(self):
        logging_config = build_logging("DEBUG")
        assert logging_config["root"]["level"] == "DEBUG"
        assert logging_config["loggers"]["django"]["level"] == "DEBUG"
        assert logging_config["loggers"]["django.server"]["level"] == "WARNING"
