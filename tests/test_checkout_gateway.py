"""Stripe gateway behaviour that does not need the network."""

import json
from urllib.parse import parse_qs, urlparse

import pytest
import stripe

from clubreg.errors import SignatureInvalid, UpstreamFailure
from clubreg.services.checkout import (
    CheckoutRequest,
    StripeCheckoutGateway,
    _outcome_from_session,
    init_checkout,
)
from conftest import WEBHOOK_SECRET, checkout_event, sign_payload


class RecordingHTTPClient(stripe.HTTPClient):
    """Answers Stripe API calls from a queue of canned responses."""

    name = 'recording'

    def __init__(self, *responses):
        super().__init__()
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, headers, post_data=None, **kwargs):
        self.calls.append((method, url, post_data))
        status, body = self.responses.pop(0)
        return json.dumps(body), status, {}

    def close(self):
        pass


def _gateway(*responses):
    http_client = RecordingHTTPClient(*responses)
    gateway = StripeCheckoutGateway(
        secret_key='sk_test_123',
        webhook_secret=WEBHOOK_SECRET,
        max_network_retries=0,
        http_client=http_client,
    )
    return gateway, http_client


def _request():
    return CheckoutRequest(
        amount_cents=16000,
        name='2016 Boys Registration',
        description='Player: Maya Lopez',
        metadata={'registration_id': 'abc'},
        success_url='http://localhost:5173/success',
        cancel_url='http://localhost:5173/',
    )


class TestStripeGateway:
    def test_unconfigured_key_is_upstream_failure(self, app):
        gateway = StripeCheckoutGateway(secret_key='')
        with pytest.raises(UpstreamFailure, match='not configured'):
            gateway.create_session(_request())

    def test_from_config(self, app):
        gateway = StripeCheckoutGateway.from_config(app.config)
        assert gateway.webhook_secret == WEBHOOK_SECRET
        assert gateway.secret_key == ''

    def test_init_checkout_keeps_installed_gateway(self, app, gateway):
        init_checkout(app)
        assert app.extensions['checkout_gateway'] is gateway

    def test_verify_webhook_parses_session(self):
        gateway = StripeCheckoutGateway(secret_key='', webhook_secret=WEBHOOK_SECRET)
        payload = checkout_event('cs_1', {'donation_id': 'd1'})

        event = gateway.verify_webhook(payload, sign_payload(payload))

        assert event.type == 'checkout.session.completed'
        assert event.session.id == 'cs_1'
        assert event.session.is_paid
        assert event.session.payment_intent_id == 'pi_cs_1'
        assert event.session.metadata == {'donation_id': 'd1'}

    def test_verify_webhook_without_secret(self):
        gateway = StripeCheckoutGateway(secret_key='', webhook_secret=None)
        payload = checkout_event('cs_1', {})
        with pytest.raises(SignatureInvalid):
            gateway.verify_webhook(payload, sign_payload(payload))

    def test_verify_webhook_stale_timestamp(self):
        gateway = StripeCheckoutGateway(secret_key='', webhook_secret=WEBHOOK_SECRET)
        payload = checkout_event('cs_1', {})
        with pytest.raises(SignatureInvalid):
            gateway.verify_webhook(payload, sign_payload(payload, timestamp=1000))


class TestStripeApiCalls:
    def test_create_session_posts_line_item(self, app):
        gateway, http_client = _gateway(
            (200, {'id': 'cs_live_1', 'object': 'checkout.session', 'url': 'https://checkout.stripe.test/cs_live_1'}),
        )
        checkout = CheckoutRequest(
            amount_cents=16000,
            name='2016 Boys Registration',
            description='Player: Maya Lopez',
            metadata={'registration_id': 'abc'},
            success_url='http://localhost:5173/success',
            cancel_url='http://localhost:5173/',
            customer_email='ana@cavalryfc.org',
        )

        session = gateway.create_session(checkout)

        assert session.id == 'cs_live_1'
        assert session.url == 'https://checkout.stripe.test/cs_live_1'

        method, url, post_data = http_client.calls[0]
        assert method == 'post'
        assert urlparse(url).path == '/v1/checkout/sessions'
        params = {key: values[0] for key, values in parse_qs(post_data).items()}
        assert params['mode'] == 'payment'
        assert params['line_items[0][price_data][unit_amount]'] == '16000'
        assert params['line_items[0][price_data][currency]'] == 'usd'
        assert params['line_items[0][price_data][product_data][name]'] == '2016 Boys Registration'
        assert params['line_items[0][quantity]'] == '1'
        assert params['metadata[registration_id]'] == 'abc'
        assert params['customer_email'] == 'ana@cavalryfc.org'

    def test_customer_email_omitted_when_unknown(self, app):
        gateway, http_client = _gateway(
            (200, {'id': 'cs_live_2', 'object': 'checkout.session', 'url': 'https://checkout.stripe.test/cs_live_2'}),
        )

        gateway.create_session(_request())

        assert 'customer_email' not in parse_qs(http_client.calls[0][2])

    def test_retrieve_session(self, app):
        gateway, http_client = _gateway(
            (200, {
                'id': 'cs_live_1',
                'object': 'checkout.session',
                'payment_status': 'paid',
                'payment_intent': 'pi_live_1',
                'metadata': {'registration_id': 'abc'},
            }),
        )

        outcome = gateway.retrieve_session('cs_live_1')

        method, url, _ = http_client.calls[0]
        assert method == 'get'
        assert urlparse(url).path == '/v1/checkout/sessions/cs_live_1'
        assert outcome.id == 'cs_live_1'
        assert outcome.is_paid
        assert outcome.payment_intent_id == 'pi_live_1'
        assert outcome.metadata == {'registration_id': 'abc'}

    def test_client_error_on_create_is_upstream_failure(self, app):
        gateway, _ = _gateway(
            (400, {'error': {'type': 'invalid_request_error', 'message': 'Invalid currency'}}),
        )
        with pytest.raises(UpstreamFailure, match='Failed to initiate checkout'):
            gateway.create_session(_request())

    def test_server_error_on_retrieve_is_upstream_failure(self, app):
        gateway, _ = _gateway(
            (500, {'error': {'type': 'api_error', 'message': 'Something went wrong'}}),
        )
        with pytest.raises(UpstreamFailure, match='Verification failed'):
            gateway.retrieve_session('cs_live_1')


class TestSessionOutcome:
    def test_outcome_from_plain_dict(self):
        outcome = _outcome_from_session({
            'id': 'cs_1',
            'payment_status': 'unpaid',
            'payment_intent': None,
            'metadata': {'registration_id': 'r1'},
        })
        assert outcome.id == 'cs_1'
        assert not outcome.is_paid
        assert outcome.payment_intent_id is None
        assert outcome.metadata == {'registration_id': 'r1'}

    def test_expanded_payment_intent(self):
        outcome = _outcome_from_session({
            'id': 'cs_1',
            'payment_status': 'paid',
            'payment_intent': {'id': 'pi_9'},
            'metadata': None,
        })
        assert outcome.payment_intent_id == 'pi_9'
        assert outcome.metadata == {}
