import hashlib
import hmac
import json
import time
from dataclasses import replace

import pytest

from clubreg import create_app
from clubreg.auth import ADMIN_HEADER
from clubreg.config import Config
from clubreg.errors import UpstreamFailure
from clubreg.extensions import db
from clubreg.models import Team
from clubreg.services.checkout import CheckoutSession, SessionOutcome, StripeCheckoutGateway

ADMIN_PASSWORD = 'letmein'
WEBHOOK_SECRET = 'whsec_test_secret'


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SECRET_KEY = 'test-secret-key'
    ADMIN_PASSWORD = ADMIN_PASSWORD
    STRIPE_SECRET_KEY = ''
    STRIPE_WEBHOOK_SECRET = WEBHOOK_SECRET
    FRONTEND_URL = 'http://localhost:5173'
    CORS_ORIGINS = ['http://localhost:5173']
    CLUB_NAME = 'Cavalry FC'
    MIN_DONATION_CENTS = 100
    ABANDONED_AFTER_HOURS = 24
    RATELIMIT_ENABLED = False


class FakeGateway(StripeCheckoutGateway):
    """Records sessions in memory; webhook signatures are verified for real."""

    def __init__(self):
        super().__init__(secret_key='', webhook_secret=WEBHOOK_SECRET)
        self.requests = []
        self.sessions = {}
        self.fail_create = False

    def create_session(self, checkout):
        if self.fail_create:
            raise UpstreamFailure('Failed to initiate checkout')
        session_id = f'cs_test_{len(self.requests) + 1}'
        self.requests.append(checkout)
        self.sessions[session_id] = SessionOutcome(
            id=session_id,
            payment_status='unpaid',
            metadata=dict(checkout.metadata),
        )
        return CheckoutSession(id=session_id, url=f'https://checkout.test/pay/{session_id}')

    def retrieve_session(self, session_id):
        if session_id not in self.sessions:
            raise UpstreamFailure('Verification failed')
        return self.sessions[session_id]

    def pay(self, session_id):
        """Simulate the payer completing the hosted page."""
        outcome = replace(
            self.sessions[session_id],
            payment_status='paid',
            payment_intent_id=f'pi_{session_id}',
        )
        self.sessions[session_id] = outcome
        return outcome

    def add_session(self, session_id, payment_status='paid', **metadata):
        self.sessions[session_id] = SessionOutcome(
            id=session_id,
            payment_status=payment_status,
            payment_intent_id=f'pi_{session_id}',
            metadata=metadata,
        )
        return self.sessions[session_id]


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def app(gateway):
    """Create and configure a test application instance."""
    app = create_app(TestConfig)
    app.extensions['checkout_gateway'] = gateway

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create a test client for the app."""
    return app.test_client()


@pytest.fixture
def admin_headers():
    return {ADMIN_HEADER: ADMIN_PASSWORD}


@pytest.fixture
def team(app):
    team = Team(name='2016 Boys', price_cents=16000, capacity=12, description='• 7v7 Format')
    db.session.add(team)
    db.session.commit()
    return team


def registration_payload(team_id, **overrides):
    payload = {
        'team_id': team_id,
        'player_first_name': 'Maya',
        'player_last_name': 'Lopez',
        'date_of_birth': '2016-04-12',
        'experience_level': 'Some',
        'jersey_size': 'YM',
        'short_size': 'YM',
        'guardian1_first_name': 'Ana',
        'guardian1_last_name': 'Lopez',
        'guardian1_email': 'Ana.Lopez@cavalryfc.org',
        'guardian1_phone': '555-0101',
        'guardian1_volunteer': 'Maybe',
        'street1': '12 Wall St',
        'city': 'Ann Arbor',
        'state': 'MI',
        'zip': '48105',
        'waiver_accepted': True,
        'photo_release_accepted': True,
        'age_verification_accepted': True,
        'code_of_conduct_accepted': True,
    }
    payload.update(overrides)
    return payload


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Build a Stripe-Signature header for ``payload``."""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode('utf-8')
    signature = hmac.new(secret.encode('utf-8'), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def checkout_event(session_id, metadata, payment_status='paid', event_type='checkout.session.completed'):
    return json.dumps({
        'id': f'evt_{session_id}',
        'object': 'event',
        'type': event_type,
        'data': {
            'object': {
                'id': session_id,
                'object': 'checkout.session',
                'payment_status': payment_status,
                'payment_intent': f'pi_{session_id}',
                'metadata': metadata,
            }
        },
    }).encode('utf-8')
