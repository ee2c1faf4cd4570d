"""Unit tests for the Robokassa payment provider."""

import hashlib
from decimal import Decimal
from urllib.parse import parse_qs, urlparse

import pytest

from packages.billing.models.domain.enums import PaymentProvider
from packages.billing.models.domain.payment import GatewayCallback
from packages.billing.providers.payment.factory import get_payment_provider
from packages.billing.providers.payment.robokassa_payment import (
    RobokassaPaymentProvider,
    format_out_sum,
    md5_signature,
)


def test_md5_signature_is_uppercase_hex_of_joined_parts():
    expected = hashlib.md5(b"100.00:INV1:secret").hexdigest().upper()

    assert md5_signature("100.00", "INV1", "secret") == expected


@pytest.mark.parametrize(
    "amount,expected",
    [(Decimal("1500"), "1500.00"), (Decimal("99.9"), "99.90"), ("4990.000000", "4990.00")],
)
def test_format_out_sum(amount, expected):
    assert format_out_sum(amount) == expected


def test_factory_returns_robokassa():
    provider = get_payment_provider()

    assert isinstance(provider, RobokassaPaymentProvider)
    assert provider.provider == PaymentProvider.ROBOKASSA


class TestBuildPaymentUrl:
    def test_signed_request(self, robokassa):
        url = robokassa.build_payment_url(
            invoice_id="INV123",
            amount=Decimal("1500"),
            currency="KZT",
            description="Subscription: Pro",
            customer_email="someone@example.com",
        )

        parsed = urlparse(url)
        params = parse_qs(parsed.query)
        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == (
            "https://gateway.test/Merchant/Index.aspx"
        )
        assert params["MerchantLogin"] == ["test-merchant"]
        assert params["OutSum"] == ["1500.00"]
        assert params["InvId"] == ["INV123"]
        assert params["Description"] == ["Subscription: Pro"]
        assert params["Email"] == ["someone@example.com"]
        assert params["SignatureValue"] == [
            md5_signature("test-merchant", "1500.00", "INV123", "pass-one")
        ]

    def test_email_is_optional(self, robokassa):
        url = robokassa.build_payment_url("INV1", Decimal("10"), "KZT", "Plan")

        assert "Email" not in parse_qs(urlparse(url).query)


class TestVerifyCallback:
    def test_valid_signature(self, robokassa, signed_callback):
        assert robokassa.verify_callback(signed_callback("INV123", Decimal("1500")))

    def test_signature_is_case_insensitive(self, robokassa):
        signature = md5_signature("1500.00", "INV123", "pass-two").lower()
        callback = GatewayCallback(InvId="INV123", OutSum="1500.00", SignatureValue=signature)

        assert robokassa.verify_callback(callback)

    def test_signed_with_payment_password(self, robokassa):
        signature = md5_signature("1500.00", "INV123", "pass-one")
        callback = GatewayCallback(InvId="INV123", OutSum="1500.00", SignatureValue=signature)

        assert not robokassa.verify_callback(callback)

    def test_tampered_amount(self, robokassa):
        signature = robokassa.result_signature("1500.00", "INV123")
        callback = GatewayCallback(InvId="INV123", OutSum="15.00", SignatureValue=signature)

        assert not robokassa.verify_callback(callback)

    @pytest.mark.parametrize("signature", ["", "   ", "not-hex", "é"])
    def test_malformed_signature(self, robokassa, signature):
        callback = GatewayCallback(InvId="INV123", OutSum="1500.00", SignatureValue=signature)

        assert not robokassa.verify_callback(callback)
