"""
Factory for getting payment provider instance.
"""

from packages.billing.providers.payment.interface import PaymentProviderInterface
from packages.billing.providers.payment.robokassa_payment import RobokassaPaymentProvider


def get_payment_provider() -> PaymentProviderInterface:
    """
    Get payment provider instance based on configuration.

    Robokassa is the only gateway wired up; the reconciler only talks to
    PaymentProviderInterface so another one can be added here.
    """
    return RobokassaPaymentProvider()
