"""
Payment initiation, callback verification and manual requery
"""
from sqlalchemy.exc import OperationalError

from transcript_portal.services import lifecycle_service


def _verify(client, headers, reference):
    return client.get('/api/v1/payments/verify', params={'ref': reference}, headers=headers)


def _payments(client, headers):
    return {item['reference']: item for item in client.get('/api/v1/me/payments', headers=headers).json()}


class TestInitiate:
    def test_init_creates_payment_and_returns_checkout_url(self, client, gateway, start_request, init_payment, auth_headers):
        created = start_request(auth_headers)

        payment = init_payment(auth_headers, created['request_id'])

        reference = payment['reference']
        assert reference.startswith('TRX_')
        assert payment['amount_kobo'] == 2000000
        assert payment['authorization_url'] == f'https://checkout.paystack.com/{reference}'
        call = gateway.init_calls[0]
        assert call['callback_url'] == f'http://portal.test/payments/callback?ref={reference}'
        assert call['metadata']['request_id'] == created['request_id']
        assert _payments(client, auth_headers)[reference]['status'] == 'INITIATED'

    def test_matching_amount_is_accepted(self, start_request, init_payment, auth_headers):
        created = start_request(auth_headers, scope='WITHIN_NG')

        payment = init_payment(auth_headers, created['request_id'], amount_ngn=5000)

        assert payment['amount_kobo'] == 500000

    def test_wrong_amount_is_rejected(self, client, start_request, auth_headers):
        created = start_request(auth_headers, scope='OUTSIDE_NG')

        response = client.post(
            '/api/v1/payments/init',
            json={'request_id': created['request_id'], 'email': 'a@b.com', 'amount_ngn': 5000},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert _payments(client, auth_headers) == {}

    def test_cannot_pay_for_someone_elses_request(self, client, start_request, auth_headers, other_headers):
        created = start_request(auth_headers)

        response = client.post(
            '/api/v1/payments/init',
            json={'request_id': created['request_id'], 'email': 'a@b.com'},
            headers=other_headers,
        )

        assert response.status_code == 404

    def test_cannot_pay_twice(self, client, paid_request, auth_headers):
        paid = paid_request()

        response = client.post(
            '/api/v1/payments/init',
            json={'request_id': paid['request_id'], 'email': 'a@b.com'},
            headers=auth_headers,
        )

        assert response.status_code == 400

    def test_gateway_failure_marks_payment_failed(self, client, gateway, start_request, auth_headers):
        created = start_request(auth_headers)
        gateway.fail_init = True

        response = client.post(
            '/api/v1/payments/init',
            json={'request_id': created['request_id'], 'email': 'a@b.com'},
            headers=auth_headers,
        )

        assert response.status_code == 502
        assert response.json()['code'] == 'UPSTREAM_ERROR'
        payments = list(_payments(client, auth_headers).values())
        assert [item['status'] for item in payments] == ['FAILED']


class TestVerify:
    def test_successful_callback_marks_request_paid(self, client, gateway, start_request, init_payment, auth_headers):
        created = start_request(auth_headers)
        payment = init_payment(auth_headers, created['request_id'])
        gateway.statuses[payment['reference']] = 'success'

        response = _verify(client, auth_headers, payment['reference'])

        assert response.status_code == 200
        assert response.json() == {
            'confirmed': True,
            'request_id': created['request_id'],
            'payment_status': 'SUCCESS',
        }
        request = client.get(f"/api/v1/requests/{created['request_id']}", headers=auth_headers).json()
        assert request['status'] == 'PAID'
        assert request['payment_id'] is not None
        events = client.get(f"/api/v1/requests/{created['request_id']}/events", headers=auth_headers).json()
        assert [(event['status'], event['note']) for event in events] == [('PAID', 'Payment verified via callback')]
        assert _payments(client, auth_headers)[payment['reference']]['paid_at'] is not None

    def test_pending_payment_is_not_confirmed(self, client, gateway, start_request, init_payment, auth_headers):
        created = start_request(auth_headers)
        payment = init_payment(auth_headers, created['request_id'])

        response = _verify(client, auth_headers, payment['reference'])

        assert response.json() == {'confirmed': False, 'request_id': None, 'payment_status': 'INITIATED'}
        request = client.get(f"/api/v1/requests/{created['request_id']}", headers=auth_headers).json()
        assert request['status'] == 'PAYMENT_PENDING'

    def test_failed_payment_is_not_verified_again(self, client, gateway, start_request, init_payment, auth_headers):
        created = start_request(auth_headers)
        reference = init_payment(auth_headers, created['request_id'])['reference']
        gateway.statuses[reference] = 'failed'

        assert _verify(client, auth_headers, reference).json()['payment_status'] == 'FAILED'
        response = client.post(f'/api/v1/payments/{reference}/requery', headers=auth_headers)

        assert response.json()['payment_status'] == 'FAILED'
        assert gateway.verify_calls == [reference]

    def test_requery_after_callback_is_idempotent(self, client, gateway, paid_request, auth_headers):
        paid = paid_request()

        response = client.post(f"/api/v1/payments/{paid['reference']}/requery", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()['request_id'] == paid['request_id']
        assert gateway.verify_calls == [paid['reference']]
        events = client.get(f"/api/v1/requests/{paid['request_id']}/events", headers=auth_headers).json()
        assert [event['status'] for event in events] == ['PAID']

    def test_foreign_payment_is_hidden(self, client, gateway, start_request, init_payment, auth_headers, other_headers):
        created = start_request(auth_headers)
        reference = init_payment(auth_headers, created['request_id'])['reference']

        assert _verify(client, other_headers, reference).status_code == 404
        assert client.post(f'/api/v1/payments/{reference}/requery', headers=other_headers).status_code == 404
        assert gateway.verify_calls == []

    def test_unknown_reference(self, client, auth_headers):
        assert _verify(client, auth_headers, 'TRX_DOES_NOT_EXIST').status_code == 404

    def test_gateway_outage_leaves_payment_initiated(self, client, gateway, start_request, init_payment, auth_headers):
        created = start_request(auth_headers)
        reference = init_payment(auth_headers, created['request_id'])['reference']
        gateway.fail_verify = True

        response = _verify(client, auth_headers, reference)

        assert response.status_code == 502
        assert _payments(client, auth_headers)[reference]['status'] == 'INITIATED'

    def test_database_failure_rolls_back_confirmation(
        self, client, gateway, start_request, init_payment, auth_headers, monkeypatch
    ):
        created = start_request(auth_headers)
        reference = init_payment(auth_headers, created['request_id'])['reference']
        gateway.statuses[reference] = 'success'

        def broken_append(session, request, status, note=None):
            session.flush()
            raise OperationalError('INSERT INTO status_events', {}, Exception('database is locked'))

        monkeypatch.setattr(lifecycle_service, 'append_event', broken_append)
        response = _verify(client, auth_headers, reference)

        assert response.status_code == 500
        assert response.json()['code'] == 'INTERNAL_ERROR'
        assert _payments(client, auth_headers)[reference]['status'] == 'INITIATED'
        request = client.get(f"/api/v1/requests/{created['request_id']}", headers=auth_headers).json()
        assert request['status'] == 'PAYMENT_PENDING'
        assert request['payment_id'] is None

        monkeypatch.undo()
        assert _verify(client, auth_headers, reference).json()['confirmed'] is True

    def test_double_checkout_does_not_pay_a_later_request(self, client, gateway, start_request, init_payment, auth_headers):
        local = start_request(auth_headers, scope='WITHIN_NG')
        first = init_payment(auth_headers, local['request_id'])['reference']
        second = init_payment(auth_headers, local['request_id'])['reference']
        gateway.statuses.update({first: 'success', second: 'success'})
        assert _verify(client, auth_headers, first).json()['request_id'] == local['request_id']

        abroad = start_request(auth_headers, scope='OUTSIDE_NG')
        response = _verify(client, auth_headers, second)

        assert response.json() == {'confirmed': True, 'request_id': None, 'payment_status': 'SUCCESS'}
        request = client.get(f"/api/v1/requests/{abroad['request_id']}", headers=auth_headers).json()
        assert request['status'] == 'PAYMENT_PENDING'
        assert request['payment_id'] is None
