"""
Robokassa callback handlers.

Robokassa posts ResultURL/FailURL notifications as form data; JSON bodies
and query parameters are accepted too so the same handler serves proxies
and manual replays. The signature is the only authentication.
"""

from typing import Any, Dict

from fastapi import Request
from pydantic import ValidationError as PydanticValidationError

from common.core.exceptions import ValidationError
from common.core.otel_axiom_exporter import get_logger
from packages.billing.models.domain.payment import CallbackResult, GatewayCallback
from packages.billing.services.payment_service import PaymentService

logger = get_logger(__name__)


async def parse_callback(request: Request) -> GatewayCallback:
    """Build a GatewayCallback from query, form or JSON parameters."""
    data: Dict[str, Any] = dict(request.query_params)

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError as e:
            logger.warning(f"Rejected payment callback with unparsable JSON: {e}")
            raise ValidationError("Malformed payment callback") from e
        if isinstance(body, dict):
            data.update(body)
    elif content_type.startswith(
        ("application/x-www-form-urlencoded", "multipart/form-data")
    ):
        form = await request.form()
        data.update(form)

    try:
        return GatewayCallback.model_validate(data)
    except PydanticValidationError as e:
        logger.warning(
            f"Malformed payment callback: {e.error_count()} errors",
            extra={"fields": sorted(data)},
        )
        raise ValidationError("Malformed payment callback") from e


async def handle_robokassa_callback(
    request: Request, payment_service: PaymentService
) -> CallbackResult:
    callback = await parse_callback(request)
    logger.info(
        f"Received payment callback for invoice {callback.invoice_id}",
        extra={"invoice_id": callback.invoice_id, "out_sum": callback.amount},
    )
    return await payment_service.process_callback(callback)


async def handle_robokassa_fail(
    request: Request, payment_service: PaymentService
) -> CallbackResult:
    callback = await parse_callback(request)
    logger.info(
        f"Received payment failure for invoice {callback.invoice_id}",
        extra={"invoice_id": callback.invoice_id},
    )
    return await payment_service.process_fail_callback(callback)
