"""Payment gateway adapter backed by Stripe PaymentIntents."""

import secrets
from typing import Optional, Protocol

import stripe

from reservation_engine.logging import get_logger
from reservation_engine.services.errors import PaymentGatewayError

logger = get_logger(__name__)


class PaymentGateway(Protocol):
    """Capture and refund contract consumed by the reservation engine."""

    provider: str

    async def capture(self, amount_cents: int, currency: str) -> tuple[str, str]: ...

    async def refund(self, reference: str, amount_cents: Optional[int] = None) -> str: ...


class StripePaymentGateway:
    """Stripe implementation of the payment gateway."""

    provider = "stripe"

    def __init__(self, secret_key: str, test_reference_prefix: str = "pi_test"):
        """
        Initialize Stripe gateway.

        Args:
            secret_key: Stripe secret API key
            test_reference_prefix: Payment references with this prefix are
                sandbox bookings; refunds against them never reach Stripe
        """
        stripe.api_key = secret_key
        self.test_reference_prefix = test_reference_prefix

    async def capture(self, amount_cents: int, currency: str) -> tuple[str, str]:
        """Create a PaymentIntent and return (reference, client_secret).

        The browser confirms the intent with the client secret; the
        reference is later handed to reservation creation.
        """
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount_cents,
                currency=currency,
                automatic_payment_methods={"enabled": True},
            )
        except stripe.StripeError as e:
            logger.error("stripe_capture_failed", amount_cents=amount_cents, error=str(e))
            raise PaymentGatewayError(f"Failed to create payment: {e}") from e

        logger.info("stripe_payment_intent_created", reference=intent.id, amount_cents=amount_cents)
        return intent.id, intent.client_secret  # type: ignore

    async def refund(self, reference: str, amount_cents: Optional[int] = None) -> str:
        """Refund a payment in full, or partially when ``amount_cents`` is given."""
        if not reference:
            raise PaymentGatewayError("No payment reference to refund")

        if amount_cents is not None and amount_cents <= 0:
            raise PaymentGatewayError(f"Refund amount must be positive, got {amount_cents}")

        if self.test_reference_prefix and reference.startswith(self.test_reference_prefix):
            refund_reference = f"re_test_{secrets.token_hex(8)}"
            logger.info(
                "stripe_refund_simulated",
                reference=reference,
                amount_cents=amount_cents,
                refund_reference=refund_reference,
            )
            return refund_reference

        params: dict = {"payment_intent": reference}
        if amount_cents is not None:
            params["amount"] = amount_cents

        try:
            refund = stripe.Refund.create(**params)
        except stripe.StripeError as e:
            logger.error(
                "stripe_refund_failed",
                reference=reference,
                amount_cents=amount_cents,
                error=str(e),
            )
            raise PaymentGatewayError(f"Failed to process refund: {e}") from e

        logger.info(
            "stripe_refund_succeeded",
            reference=reference,
            amount_cents=amount_cents,
            refund_reference=refund.id,
        )
        return refund.id
