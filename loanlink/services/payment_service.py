import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Optional

import stripe
from starlette.concurrency import run_in_threadpool

from loanlink.core.exceptions import GatewayError, ValidationFailedError

logger = logging.getLogger(__name__)

PAYMENT_CURRENCY = "usd"
PAYMENT_METHOD_TYPES = ["card"]


def to_smallest_unit(price: Any) -> int:
    """Convert a dollar amount to cents, rounding half up."""
    try:
        amount = Decimal(str(price))
    except (InvalidOperation, ValueError) as e:
        raise ValidationFailedError(f"Invalid price: {price!r}") from e
    if not amount.is_finite() or amount <= 0:
        raise ValidationFailedError(f"Price must be a positive amount, got {price!r}")
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentService:
    """Creates Stripe payment intents. Nothing here is tied to a loan application."""

    def __init__(self, secret_key: Optional[str]):
        self.secret_key = secret_key
        if not secret_key:
            logger.warning("STRIPE_SECRET_KEY not configured; payment intent creation will fail")

    async def create_payment_intent(self, price: Any) -> Dict[str, str]:
        amount = to_smallest_unit(price)
        logger.info(f"Creating payment intent for {amount} cents ({PAYMENT_CURRENCY})")
        try:
            intent = await run_in_threadpool(
                stripe.PaymentIntent.create,
                amount=amount,
                currency=PAYMENT_CURRENCY,
                payment_method_types=PAYMENT_METHOD_TYPES,
                api_key=self.secret_key,
            )
        except stripe.StripeError as e:
            message = e.user_message or str(e)
            logger.error(f"Stripe payment intent creation failed: {message}")
            raise GatewayError(message) from e

        return {"clientSecret": intent.client_secret}
