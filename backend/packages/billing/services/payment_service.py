"""
Service for payment intents and gateway callback reconciliation.

The callback channel is untrusted: it may be forged, replayed, or arrive
twice at the same time. Signatures are checked before any state is read,
and the Pending -> Paid flip is a conditional update, so each invoice
activates at most one subscription period.
"""

import secrets
import time
from datetime import timedelta
from typing import List

from common.core.config import settings
from common.core.exceptions import (
    AmountMismatchError,
    InvalidPaymentStateError,
    InvalidSignatureError,
    NotFoundError,
    ValidationError,
)
from common.core.otel_axiom_exporter import trace_span, get_logger, log_span_event
from common.db.base import utcnow
from common.db.context import readonly
from common.db.scoped import transaction
from packages.billing.models.domain.enums import (
    NotificationKind,
    PaymentStatus,
    UserRole,
)
from packages.billing.models.domain.payment import (
    CallbackResult,
    GatewayCallback,
    PaymentIntent,
    PaymentTransaction,
    PaymentTransactionCreateModel,
)
from packages.billing.providers.notification.dispatcher import (
    get_notification_dispatcher,
)
from packages.billing.providers.payment.factory import get_payment_provider
from packages.billing.repositories.payment_repository import PaymentRepository
from packages.billing.repositories.plan_repository import PlanRepository
from packages.billing.services.subscription_service import SubscriptionService
from packages.users.services.user_service import UserService

logger = get_logger(__name__)


def new_invoice_id() -> str:
    """Unique, roughly time ordered invoice id."""
    return f"INV{time.time_ns()}{secrets.randbelow(1000):03d}"


class PaymentService:
    """Service for paid plan purchases."""

    def __init__(self):
        self.payment_repo = PaymentRepository()
        self.plan_repo = PlanRepository()
        self.subscription_service = SubscriptionService()
        self.user_service = UserService()
        self.payment_provider = get_payment_provider()
        self.notifications = get_notification_dispatcher()

    @trace_span
    async def create_intent(self, user_id: int, plan_id: int) -> PaymentIntent:
        """
        Record a pending payment for a plan and return where to pay it.

        Raises:
            NotFoundError: Plan unknown, deleted or withdrawn from sale
            ValidationError: Plan is free
        """
        plan = await self.plan_repo.get(plan_id)
        if not plan or not plan.is_active:
            raise NotFoundError(f"Plan {plan_id} not found")
        if plan.is_free():
            raise ValidationError("Free plans do not require payment")

        user = await self.user_service.find_user(user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        if user.role != UserRole.ADMIN and not plan.visible_to(user.role):
            raise NotFoundError(f"Plan {plan_id} not found")

        payment = await self.payment_repo.create(
            PaymentTransactionCreateModel(
                user_id=user_id,
                plan_id=plan.id,
                amount=plan.price,
                currency=plan.currency,
                invoice_id=new_invoice_id(),
                provider=self.payment_provider.provider.value,
            )
        )

        payment_url = self.payment_provider.build_payment_url(
            invoice_id=payment.invoice_id,
            amount=payment.amount,
            currency=payment.currency,
            description=f"Subscription: {plan.name}",
            customer_email=user.email,
        )

        logger.info(
            f"Created payment intent {payment.invoice_id} for user {user_id}",
            extra={
                "payment_id": payment.id,
                "invoice_id": payment.invoice_id,
                "user_id": user_id,
                "plan_id": plan.id,
                "amount": str(payment.amount),
            },
        )

        return PaymentIntent(
            payment_id=payment.id,
            invoice_id=payment.invoice_id,
            amount=payment.amount,
            currency=payment.currency,
            status=payment.status,
            payment_url=payment_url,
            expires_at=utcnow() + timedelta(hours=settings.payment_intent_ttl_hours),
        )

    def _verify(self, callback: GatewayCallback) -> None:
        if not self.payment_provider.verify_callback(callback):
            logger.warning(
                f"Rejected callback with invalid signature for invoice {callback.invoice_id}",
                extra={"invoice_id": callback.invoice_id},
            )
            raise InvalidSignatureError("Invalid payment signature")

    async def _get_by_invoice(self, invoice_id: str) -> PaymentTransaction:
        payment = await self.payment_repo.get_by_invoice_id(invoice_id)
        if not payment:
            raise NotFoundError(f"Unknown invoice {invoice_id}")
        return payment

    @staticmethod
    def _result(payment: PaymentTransaction, replayed: bool) -> CallbackResult:
        return CallbackResult(
            invoice_id=payment.invoice_id,
            payment_id=payment.id,
            status=payment.status,
            subscription_id=payment.subscription_id,
            replayed=replayed,
        )

    @trace_span
    async def process_callback(self, callback: GatewayCallback) -> CallbackResult:
        """
        Apply a gateway success callback.

        Repeated callbacks for a paid invoice succeed without side effects.

        Raises:
            InvalidSignatureError: Signature does not verify, nothing changed
            NotFoundError: No transaction for the invoice id
            AmountMismatchError: Amount differs from the recorded one
            InvalidPaymentStateError: Transaction already failed
        """
        self._verify(callback)

        payment = await self._get_by_invoice(callback.invoice_id)
        if payment.status == PaymentStatus.PAID:
            logger.info(
                f"Replayed callback for paid invoice {payment.invoice_id}",
                extra={"invoice_id": payment.invoice_id, "payment_id": payment.id},
            )
            return self._result(payment, replayed=True)

        try:
            amount = callback.amount_decimal()
        except ValueError as e:
            raise ValidationError(str(e)) from e
        if amount != payment.amount:
            logger.warning(
                f"Amount mismatch for invoice {payment.invoice_id}: got {amount}, expected {payment.amount}",
                extra={
                    "invoice_id": payment.invoice_id,
                    "received": str(amount),
                    "expected": str(payment.amount),
                },
            )
            raise AmountMismatchError(
                f"Amount {amount} does not match invoice amount {payment.amount}"
            )
        if payment.status == PaymentStatus.FAILED:
            raise InvalidPaymentStateError(
                f"Invoice {payment.invoice_id} has already failed"
            )

        async with transaction():
            flipped = await self.payment_repo.mark_paid(payment.id, utcnow())
            if flipped:
                subscription, created = await self.subscription_service.activate(
                    payment.user_id, payment.plan_id
                )
                await self.payment_repo.link_subscription(payment.id, subscription.id)

        if not flipped:
            # A concurrent callback got there first
            current = await self._get_by_invoice(callback.invoice_id)
            if current.status != PaymentStatus.PAID:
                raise InvalidPaymentStateError(
                    f"Invoice {current.invoice_id} is {current.status.value}"
                )
            return self._result(current, replayed=True)

        log_span_event(
            "payment.paid",
            {
                "invoice_id": payment.invoice_id,
                "payment_id": payment.id,
                "user_id": payment.user_id,
                "subscription_id": subscription.id,
                "created": created,
            },
        )
        self.notifications.dispatch(
            payment.user_id,
            NotificationKind.SUBSCRIPTION_ACTIVATED
            if created
            else NotificationKind.SUBSCRIPTION_RENEWED,
            {
                "subscription_id": subscription.id,
                "plan_id": subscription.plan_id,
                "invoice_id": payment.invoice_id,
                "end_date": subscription.end_date.isoformat(),
            },
        )

        return CallbackResult(
            invoice_id=payment.invoice_id,
            payment_id=payment.id,
            status=PaymentStatus.PAID,
            subscription_id=subscription.id,
            replayed=False,
        )

    @trace_span
    async def process_fail_callback(self, callback: GatewayCallback) -> CallbackResult:
        """
        Apply a gateway failure notice.

        A failed invoice stays failed and a paid one is left untouched.
        """
        self._verify(callback)

        payment = await self._get_by_invoice(callback.invoice_id)
        if payment.status.is_final():
            return self._result(payment, replayed=True)

        flipped = await self.payment_repo.mark_failed(payment.id, utcnow())
        current = await self._get_by_invoice(callback.invoice_id)
        if flipped:
            logger.info(
                f"Payment {payment.invoice_id} failed",
                extra={"invoice_id": payment.invoice_id, "payment_id": payment.id},
            )
        return self._result(current, replayed=not flipped)

    @trace_span
    async def check_status(
        self, user_id: int, role: UserRole, payment_id: int
    ) -> PaymentTransaction:
        """Get a payment owned by the caller (any payment for admins)."""
        payment = await self.payment_repo.get(payment_id)
        # Do not reveal other users' payments
        if not payment or (payment.user_id != user_id and role != UserRole.ADMIN):
            raise NotFoundError(f"Payment {payment_id} not found")
        return payment

    @trace_span
    @readonly
    async def get_payment_history(
        self, user_id: int, skip: int = 0, limit: int = 50
    ) -> List[PaymentTransaction]:
        return await self.payment_repo.list_by_user(user_id, skip=skip, limit=limit)
