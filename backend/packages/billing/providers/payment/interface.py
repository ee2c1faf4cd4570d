"""
Interface for payment providers.

Abstracts the payment gateway away from the reconciler: how the customer is
sent to pay, and how a result callback is authenticated.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from packages.billing.models.domain.enums import PaymentProvider
from packages.billing.models.domain.payment import GatewayCallback


class PaymentProviderInterface(ABC):
    """Abstract interface for payment providers."""

    provider: PaymentProvider

    @abstractmethod
    def build_payment_url(
        self,
        invoice_id: str,
        amount: Decimal,
        currency: str,
        description: str,
        customer_email: Optional[str] = None,
    ) -> str:
        """
        Build the URL the customer is redirected to in order to pay.

        Args:
            invoice_id: Our invoice identifier (echoed back in the callback)
            amount: Amount to charge
            currency: ISO currency code
            description: Human readable purchase description
            customer_email: Optional email prefilled on the gateway page

        Returns:
            payment_url: Gateway URL carrying a signed payment request
        """
        pass

    @abstractmethod
    def verify_callback(self, callback: GatewayCallback) -> bool:
        """
        Check that a result callback was issued by the gateway.

        Must not raise for malformed signatures; return False instead.
        """
        pass
