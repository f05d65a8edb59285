"""Hosted checkout gateway.

Every call to the payment provider goes through a :class:`CheckoutGateway`.
The application keeps one instance in ``app.extensions['checkout_gateway']``;
:class:`StripeCheckoutGateway` is installed by default and tests swap in a
fake.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

import stripe
from flask import current_app

from clubreg.errors import SignatureInvalid, UpstreamFailure

COMPLETED_EVENT = 'checkout.session.completed'
EXPIRED_EVENT = 'checkout.session.expired'


@dataclass(frozen=True)
class CheckoutSession:
    """A freshly created session: where to send the payer."""

    id: str
    url: str


@dataclass(frozen=True)
class SessionOutcome:
    """What the provider reports about a session."""

    id: str
    payment_status: str
    payment_intent_id: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == 'paid'


@dataclass(frozen=True)
class WebhookEvent:
    type: str
    session: SessionOutcome | None = None


@dataclass(frozen=True)
class CheckoutRequest:
    amount_cents: int
    name: str
    description: str
    metadata: dict[str, str]
    success_url: str
    cancel_url: str
    currency: str = 'usd'
    customer_email: str | None = None


class CheckoutGateway:
    """Contract for the hosted checkout provider."""

    def create_session(self, checkout: CheckoutRequest) -> CheckoutSession:
        raise NotImplementedError

    def retrieve_session(self, session_id: str) -> SessionOutcome:
        raise NotImplementedError

    def verify_webhook(self, payload: bytes, signature: str | None) -> WebhookEvent:
        raise NotImplementedError


def _get(obj: Any, key: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def _as_dict(obj: Any) -> dict:
    if obj is None:
        return {}
    if isinstance(obj, dict):
        return dict(obj)
    if hasattr(obj, 'to_dict'):
        return obj.to_dict()
    return {}


def _outcome_from_session(session: Any) -> SessionOutcome:
    """Normalise a Stripe checkout session object (or plain dict)."""
    payment_intent = _get(session, 'payment_intent')
    if payment_intent is not None and not isinstance(payment_intent, str):
        payment_intent = _get(payment_intent, 'id')
    return SessionOutcome(
        id=_get(session, 'id'),
        payment_status=_get(session, 'payment_status') or 'unpaid',
        payment_intent_id=payment_intent,
        metadata={str(k): str(v) for k, v in _as_dict(_get(session, 'metadata')).items()},
    )


class StripeCheckoutGateway(CheckoutGateway):
    """Stripe Checkout implementation with a bounded HTTP timeout."""

    def __init__(
        self,
        secret_key: str,
        webhook_secret: str | None = None,
        timeout: int = 10,
        max_network_retries: int = 2,
        http_client: stripe.HTTPClient | None = None,
    ):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self._client = None
        self._timeout = timeout
        self._max_network_retries = max_network_retries
        self._http_client = http_client

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'StripeCheckoutGateway':
        return cls(
            secret_key=config.get('STRIPE_SECRET_KEY') or '',
            webhook_secret=config.get('STRIPE_WEBHOOK_SECRET') or None,
            timeout=config.get('STRIPE_TIMEOUT_SECONDS', 10),
            max_network_retries=config.get('STRIPE_MAX_NETWORK_RETRIES', 2),
        )

    @property
    def client(self) -> stripe.StripeClient:
        if not self.secret_key:
            raise UpstreamFailure('Checkout is not configured')
        if self._client is None:
            self._client = stripe.StripeClient(
                self.secret_key,
                http_client=self._http_client or stripe.RequestsClient(timeout=self._timeout),
                max_network_retries=self._max_network_retries,
            )
        return self._client

    def create_session(self, checkout: CheckoutRequest) -> CheckoutSession:
        params: dict[str, Any] = {
            'mode': 'payment',
            'payment_method_types': ['card'],
            'line_items': [
                {
                    'price_data': {
                        'currency': checkout.currency,
                        'product_data': {
                            'name': checkout.name,
                            'description': checkout.description,
                        },
                        'unit_amount': checkout.amount_cents,
                    },
                    'quantity': 1,
                }
            ],
            'success_url': checkout.success_url,
            'cancel_url': checkout.cancel_url,
            'metadata': checkout.metadata,
        }
        if checkout.customer_email:
            params['customer_email'] = checkout.customer_email

        try:
            session = self.client.v1.checkout.sessions.create(params=params)
        except stripe.StripeError as e:
            current_app.logger.error(f"Stripe session create failed: {e}")
            raise UpstreamFailure('Failed to initiate checkout') from e

        return CheckoutSession(id=session.id, url=session.url)

    def retrieve_session(self, session_id: str) -> SessionOutcome:
        try:
            session = self.client.v1.checkout.sessions.retrieve(session_id)
        except stripe.StripeError as e:
            current_app.logger.error(f"Stripe session retrieve failed for {session_id}: {e}")
            raise UpstreamFailure('Verification failed') from e
        return _outcome_from_session(session)

    def verify_webhook(self, payload: bytes, signature: str | None) -> WebhookEvent:
        if not self.webhook_secret or not signature:
            raise SignatureInvalid('Webhook secret or signature missing')

        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            raise SignatureInvalid(f'Webhook Error: {e}') from e

        event_type = _get(event, 'type') or ''
        session = None
        if event_type.startswith('checkout.session.'):
            session = _outcome_from_session(_get(_get(event, 'data'), 'object'))
        return WebhookEvent(type=event_type, session=session)


def init_checkout(app) -> None:
    """Install the default gateway unless one was provided already."""
    app.extensions.setdefault('checkout_gateway', StripeCheckoutGateway.from_config(app.config))


def get_gateway() -> CheckoutGateway:
    return current_app.extensions['checkout_gateway']


__all__ = [
    'COMPLETED_EVENT',
    'EXPIRED_EVENT',
    'CheckoutGateway',
    'CheckoutRequest',
    'CheckoutSession',
    'SessionOutcome',
    'StripeCheckoutGateway',
    'WebhookEvent',
    'get_gateway',
    'init_checkout',
]
