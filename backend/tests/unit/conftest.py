import pytest
from unittest.mock import AsyncMock

from packages.billing.providers.payment.robokassa_payment import (
    RobokassaPaymentProvider,
    format_out_sum,
)
from packages.billing.models.domain.payment import GatewayCallback

TEST_LOGIN = "test-merchant"
TEST_PASSWORD1 = "pass-one"
TEST_PASSWORD2 = "pass-two"


@pytest.fixture
def mock_message_queue():
    """Create a mock message queue instance for testing."""
    queue = AsyncMock()
    queue.declare_queue = AsyncMock(return_value=True)
    queue.publish = AsyncMock(return_value=True)
    queue.connect = AsyncMock(return_value=None)
    queue.disconnect = AsyncMock(return_value=None)
    return queue


@pytest.fixture
def robokassa():
    """Robokassa provider with known merchant passwords."""
    return RobokassaPaymentProvider(
        login=TEST_LOGIN,
        password1=TEST_PASSWORD1,
        password2=TEST_PASSWORD2,
        base_url="https://gateway.test/Merchant/Index.aspx",
    )


@pytest.fixture
def signed_callback(robokassa):
    """Build a gateway callback signed the way Robokassa signs ResultURL."""

    def _sign(invoice_id: str, amount, signature: str = None) -> GatewayCallback:
        out_sum = format_out_sum(amount)
        return GatewayCallback(
            invoice_id=invoice_id,
            amount=out_sum,
            signature=signature
            if signature is not None
            else robokassa.result_signature(out_sum, invoice_id),
        )

    return _sign
