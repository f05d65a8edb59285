"""Registration checkout, verify, waitlist and webhook confirmation."""

import pytest
from sqlalchemy.exc import OperationalError

from clubreg.extensions import db
from clubreg.models import PaymentStatus, Registration, Team
from conftest import checkout_event, registration_payload, sign_payload


def _only_registration():
    registrations = db.session.query(Registration).all()
    assert len(registrations) == 1
    return registrations[0]


class TestRegistrationCheckout:
    def test_checkout_creates_pending_registration(self, client, gateway, team):
        response = client.post('/api/registrations/checkout', json=registration_payload(team.id))

        assert response.status_code == 200
        assert response.get_json() == {'url': 'https://checkout.test/pay/cs_test_1'}

        registration = _only_registration()
        assert registration.payment_status == PaymentStatus.UNPAID
        assert registration.is_waitlist is False
        assert registration.checkout_session_id == 'cs_test_1'
        assert registration.guardian1_email == 'ana.lopez@cavalryfc.org'
        assert registration.guardian2_volunteer == 'No'

        checkout = gateway.requests[0]
        assert checkout.amount_cents == 16000
        assert checkout.name == '2016 Boys Registration'
        assert checkout.description == 'Player: Maya Lopez'
        assert checkout.metadata == {'registration_id': registration.id}
        assert checkout.customer_email == 'ana.lopez@cavalryfc.org'
        assert checkout.success_url == 'http://localhost:5173/success?session_id={CHECKOUT_SESSION_ID}'

    def test_amount_comes_from_team_not_client(self, client, team):
        payload = registration_payload(team.id, amount_cents=1)
        client.post('/api/registrations/checkout', json=payload)

        assert _only_registration().amount_cents == 16000

    def test_price_is_snapshot_at_submission(self, client, team):
        client.post('/api/registrations/checkout', json=registration_payload(team.id))
        team.price_cents = 20000
        db.session.commit()

        assert _only_registration().amount_cents == 16000

    def test_each_blocking_consent_is_required(self, client, gateway, team):
        for consent in ('waiver_accepted', 'photo_release_accepted', 'age_verification_accepted'):
            response = client.post(
                '/api/registrations/checkout',
                json=registration_payload(team.id, **{consent: False}),
            )
            assert response.status_code == 400
            assert consent in response.get_json()['fields']

        assert db.session.query(Registration).count() == 0
        assert gateway.requests == []

    @pytest.mark.parametrize('answer', [0, 'no', 'False', None])
    def test_consent_must_be_json_true(self, client, gateway, team, answer):
        response = client.post(
            '/api/registrations/checkout',
            json=registration_payload(team.id, waiver_accepted=answer),
        )

        assert response.status_code == 400
        assert 'waiver_accepted' in response.get_json()['fields']
        assert db.session.query(Registration).count() == 0
        assert gateway.requests == []

    def test_waitlist_rejects_non_boolean_consent(self, client, team):
        response = client.post(
            '/api/registrations/waitlist',
            json=registration_payload(team.id, photo_release_accepted='no'),
        )

        assert response.status_code == 400
        assert 'photo_release_accepted' in response.get_json()['fields']
        assert db.session.query(Registration).count() == 0

    def test_code_of_conduct_does_not_block_payment(self, client, team):
        response = client.post(
            '/api/registrations/checkout',
            json=registration_payload(team.id, code_of_conduct_accepted=False),
        )
        assert response.status_code == 200
        assert _only_registration().code_of_conduct_accepted is False

    def test_missing_fields_are_reported(self, client, team):
        payload = registration_payload(team.id)
        del payload['guardian1_email']
        payload['date_of_birth'] = '04/12/2016'

        response = client.post('/api/registrations/checkout', json=payload)

        assert response.status_code == 400
        fields = response.get_json()['fields']
        assert 'guardian1_email' in fields
        assert 'date_of_birth' in fields

    def test_non_object_body_rejected(self, client):
        response = client.post('/api/registrations/checkout', json=['not', 'an', 'object'])
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Expected a JSON object'

    def test_unknown_team(self, client):
        response = client.post('/api/registrations/checkout', json=registration_payload('missing'))
        assert response.status_code == 404
        assert db.session.query(Registration).count() == 0

    def test_closed_team_rejects_checkout(self, client, team):
        team.open = False
        db.session.commit()

        response = client.post('/api/registrations/checkout', json=registration_payload(team.id))
        assert response.status_code == 400
        assert db.session.query(Registration).count() == 0

    def test_upstream_failure_keeps_pending_record(self, client, gateway, team):
        gateway.fail_create = True

        response = client.post('/api/registrations/checkout', json=registration_payload(team.id))

        assert response.status_code == 502
        assert response.get_json() == {'error': 'Failed to initiate checkout'}
        registration = _only_registration()
        assert registration.payment_status == PaymentStatus.UNPAID
        assert registration.checkout_session_id is None


class TestVerify:
    def test_verify_marks_paid(self, client, gateway, team):
        client.post('/api/registrations/checkout', json=registration_payload(team.id))
        gateway.pay('cs_test_1')

        response = client.post('/api/registrations/verify', json={'session_id': 'cs_test_1'})

        assert response.status_code == 200
        body = response.get_json()
        assert body['status'] == 'paid'
        assert body['registration']['team_name'] == '2016 Boys'
        assert body['registration']['payment_status'] == 'paid'

        registration = _only_registration()
        assert registration.payment_status == PaymentStatus.PAID
        assert registration.payment_intent_id == 'pi_cs_test_1'
        assert registration.paid_at is not None

    def test_verify_unpaid_session_returns_raw_status(self, client, team):
        client.post('/api/registrations/checkout', json=registration_payload(team.id))

        response = client.post('/api/registrations/verify', json={'session_id': 'cs_test_1'})

        assert response.get_json() == {'status': 'unpaid'}
        assert _only_registration().payment_status == PaymentStatus.UNPAID

    def test_verify_is_idempotent(self, client, gateway, team):
        client.post('/api/registrations/checkout', json=registration_payload(team.id))
        gateway.pay('cs_test_1')

        client.post('/api/registrations/verify', json={'session_id': 'cs_test_1'})
        first_paid_at = _only_registration().paid_at
        response = client.post('/api/registrations/verify', json={'session_id': 'cs_test_1'})

        assert response.get_json()['status'] == 'paid'
        assert _only_registration().paid_at == first_paid_at

    def test_verify_session_for_unknown_record(self, client, gateway):
        gateway.add_session('cs_foreign', registration_id='nope')

        response = client.post('/api/registrations/verify', json={'session_id': 'cs_foreign'})

        assert response.get_json() == {'status': 'paid'}

    def test_verify_rejects_mismatched_session(self, client, gateway, team):
        client.post('/api/registrations/checkout', json=registration_payload(team.id))
        registration = _only_registration()
        gateway.add_session('cs_other', registration_id=registration.id)

        response = client.post('/api/registrations/verify', json={'session_id': 'cs_other'})

        assert response.get_json() == {'status': 'paid'}
        assert _only_registration().payment_status == PaymentStatus.UNPAID

    def test_verify_requires_session_id(self, client):
        response = client.post('/api/registrations/verify', json={})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'session_id is required'

    def test_verify_unknown_session_is_upstream_failure(self, client):
        response = client.post('/api/registrations/verify', json={'session_id': 'cs_missing'})
        assert response.status_code == 502


class TestWaitlist:
    def test_waitlist_without_consents(self, client, gateway, team):
        payload = registration_payload(
            team.id,
            waiver_accepted=False,
            photo_release_accepted=False,
            age_verification_accepted=False,
        )

        response = client.post('/api/registrations/waitlist', json=payload)

        assert response.status_code == 201
        body = response.get_json()
        assert body['status'] == 'waitlisted'
        assert body['registration']['is_waitlist'] is True
        assert body['registration']['payment_status'] == 'unpaid'
        assert body['registration']['amount_cents'] == 16000
        assert gateway.requests == []
        assert _only_registration().checkout_session_id is None

    def test_waitlist_still_needs_identity(self, client, team):
        payload = registration_payload(team.id)
        del payload['player_last_name']

        response = client.post('/api/registrations/waitlist', json=payload)
        assert response.status_code == 400

    def test_waitlisted_record_never_becomes_paid(self, client, gateway, team):
        client.post('/api/registrations/waitlist', json=registration_payload(team.id))
        registration = _only_registration()
        gateway.add_session('cs_waitlist', registration_id=registration.id)

        verify = client.post('/api/registrations/verify', json={'session_id': 'cs_waitlist'})
        assert 'registration' not in verify.get_json()

        payload = checkout_event('cs_waitlist', {'registration_id': registration.id})
        client.post(
            '/api/webhooks/stripe',
            data=payload,
            headers={'Stripe-Signature': sign_payload(payload), 'Content-Type': 'application/json'},
        )

        registration = _only_registration()
        assert registration.payment_status == PaymentStatus.UNPAID
        assert registration.paid_at is None


class TestCapacityScenario:
    def test_full_team_sends_next_family_to_waitlist(self, client, gateway):
        team = Team(name='2017 Girls', price_cents=16000, capacity=1)
        db.session.add(team)
        db.session.commit()

        client.post('/api/registrations/checkout', json=registration_payload(team.id))
        gateway.pay('cs_test_1')
        verify = client.post('/api/registrations/verify', json={'session_id': 'cs_test_1'})
        assert verify.get_json()['registration']['amount_cents'] == 16000

        listing = client.get(f'/api/teams/{team.id}').get_json()
        assert listing['registration_count'] == 1
        assert listing['spots_left'] == 0

        second = registration_payload(team.id, player_first_name='Leo', guardian1_email='leo@cavalryfc.org')
        response = client.post('/api/registrations/waitlist', json=second)
        assert response.get_json()['status'] == 'waitlisted'

        listing = client.get(f'/api/teams/{team.id}').get_json()
        assert listing['registration_count'] == 1


class TestStoreFailure:
    def test_commit_failure_is_rolled_back(self, client, gateway, team, monkeypatch):
        def failing_commit():
            raise OperationalError('INSERT INTO registration', {}, Exception('database is locked'))

        monkeypatch.setattr(db.session(), 'commit', failing_commit)

        response = client.post('/api/registrations/checkout', json=registration_payload(team.id))

        assert response.status_code == 503
        assert response.get_json() == {'error': 'Database unavailable'}
        assert gateway.requests == []

        monkeypatch.undo()
        assert db.session.query(Registration).count() == 0
