"""
Robokassa implementation of payment provider.

Payment request signature: MD5("MerchantLogin:OutSum:InvId:Password1")
Result callback signature: MD5("OutSum:InvId:Password2")
"""

import hashlib
import hmac
from decimal import Decimal
from typing import Optional
from urllib.parse import urlencode

from common.core.config import settings
from common.core.otel_axiom_exporter import get_logger
from packages.billing.models.domain.enums import PaymentProvider
from packages.billing.models.domain.payment import GatewayCallback, quantize_amount
from packages.billing.providers.payment.interface import PaymentProviderInterface

logger = get_logger(__name__)


def format_out_sum(amount: Decimal) -> str:
    """Robokassa expects OutSum with exactly two decimals."""
    return f"{quantize_amount(amount):.2f}"


def md5_signature(*parts: str) -> str:
    return hashlib.md5(":".join(parts).encode("utf-8")).hexdigest().upper()


class RobokassaPaymentProvider(PaymentProviderInterface):
    """Robokassa redirect-based payment implementation."""

    provider = PaymentProvider.ROBOKASSA

    def __init__(
        self,
        login: Optional[str] = None,
        password1: Optional[str] = None,
        password2: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        """Initialize with merchant credentials (defaults from settings)."""
        self.login = login if login is not None else settings.robokassa_login
        self.password1 = (
            password1 if password1 is not None else settings.robokassa_password1
        )
        self.password2 = (
            password2 if password2 is not None else settings.robokassa_password2
        )
        self.base_url = base_url or settings.robokassa_base_url

    def payment_signature(self, out_sum: str, invoice_id: str) -> str:
        return md5_signature(self.login, out_sum, invoice_id, self.password1)

    def result_signature(self, out_sum: str, invoice_id: str) -> str:
        return md5_signature(out_sum, invoice_id, self.password2)

    def build_payment_url(
        self,
        invoice_id: str,
        amount: Decimal,
        currency: str,
        description: str,
        customer_email: Optional[str] = None,
    ) -> str:
        out_sum = format_out_sum(amount)
        params = {
            "MerchantLogin": self.login,
            "OutSum": out_sum,
            "InvId": invoice_id,
            "Description": description,
            "SignatureValue": self.payment_signature(out_sum, invoice_id),
            "Culture": settings.robokassa_culture,
        }
        if customer_email:
            params["Email"] = customer_email
        currency_label = settings.robokassa_currency_label
        if currency_label:
            params["IncCurrLabel"] = currency_label
        if settings.robokassa_test_mode:
            params["IsTest"] = "1"

        logger.info(
            "Built Robokassa payment URL",
            extra={"invoice_id": invoice_id, "out_sum": out_sum, "currency": currency},
        )
        return f"{self.base_url}?{urlencode(params)}"

    def verify_callback(self, callback: GatewayCallback) -> bool:
        if not callback.signature:
            return False
        # Sign the amount as the gateway sent it, it is echoed back verbatim
        expected = self.result_signature(callback.amount, callback.invoice_id)
        received = callback.signature.strip().upper()
        return hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8"))
