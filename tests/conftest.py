"""
Transcript Portal - Test Configuration and Fixtures
"""
import hashlib
import hmac
import json
import os
from typing import Callable, Dict, Generator, Optional

import pytest
from faker import Faker
from fastapi.testclient import TestClient

# Keep the module-level app in main.py away from real services
os.environ['TRANSCRIPT_DATABASE_URL'] = 'sqlite://'
os.environ['TRANSCRIPT_DIRECTORY_DATABASE_URL'] = 'sqlite://'
os.environ['TRANSCRIPT_SCHEDULER_ENABLED'] = 'false'

from transcript_portal.core.config import Settings
from transcript_portal.core.errors import UpstreamError
from transcript_portal.core.security import get_password_hash
from transcript_portal.main import create_app
from transcript_portal.models import Student
from transcript_portal.schemas import DirectoryProfile

fake = Faker()

TEST_SECRET = 'sk_test_transcript_portal'
STAFF_TOKEN = 'staff-test-token'
DEFAULT_PASSWORD = 'correct-horse-battery'
MATRIC = 'CSC/2016/001'
OTHER_MATRIC = 'EEE/2017/042'


class FakeGateway:
    """In-memory stand-in for the Paystack client"""

    def __init__(self):
        self.statuses: Dict[str, str] = {}
        self.init_calls = []
        self.verify_calls = []
        self.fail_init = False
        self.fail_verify = False

    def initialize_transaction(self, *, email, amount_kobo, reference, callback_url, metadata=None):
        self.init_calls.append(
            {'email': email, 'amount_kobo': amount_kobo, 'reference': reference, 'callback_url': callback_url, 'metadata': metadata}
        )
        if self.fail_init:
            raise UpstreamError('Payment gateway is unreachable')
        return {
            'status': True,
            'message': 'Authorization URL created',
            'data': {
                'authorization_url': f'https://checkout.paystack.com/{reference}',
                'access_code': 'access_' + reference,
                'reference': reference,
            },
        }

    def verify_transaction(self, reference):
        self.verify_calls.append(reference)
        if self.fail_verify:
            raise UpstreamError('Payment gateway is unreachable')
        return {
            'status': True,
            'message': 'Verification successful',
            'data': {'reference': reference, 'status': self.statuses.get(reference, 'abandoned')},
        }


class FakeDirectory:
    """Directory keyed by matric number"""

    def __init__(self, profiles):
        self.profiles = {profile.matric_no: profile for profile in profiles}

    def find_by_matric(self, matric_no: str) -> Optional[DirectoryProfile]:
        return self.profiles.get(matric_no.strip())


def sign(body: bytes, secret: str = TEST_SECRET) -> str:
    """Paystack-style webhook signature"""
    return hmac.new(secret.encode(), body, hashlib.sha512).hexdigest()


def charge_success_body(reference: str) -> bytes:
    return json.dumps(
        {'event': 'charge.success', 'data': {'reference': reference, 'status': 'success', 'amount': 2000000}}
    ).encode()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'portal.db'}",
        directory_database_url='sqlite://',
        create_tables=True,
        scheduler_enabled=False,
        paystack_secret_key=TEST_SECRET,
        jwt_secret_key='test-jwt-secret-key-for-testing',
        bcrypt_rounds=4,
        staff_api_token=STAFF_TOKEN,
        app_url='http://portal.test',
        within_ng_fee_ngn=5000,
        outside_ng_fee_ngn=20000,
    )


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory(
        [
            DirectoryProfile(
                matric_no=MATRIC,
                surname='Okafor',
                first_name='Ada',
                other_name='Chioma',
                department='Computer Science',
                school='School of Computing',
                level='500',
                entry_session='2016/2017',
            ),
            DirectoryProfile(
                matric_no=OTHER_MATRIC,
                surname='Bello',
                first_name='Tunde',
                other_name=None,
                department='Electrical Engineering',
                school='School of Engineering',
                level='400',
                entry_session='2017/2018',
            ),
        ]
    )


@pytest.fixture
def app(settings, gateway, directory):
    return create_app(settings, gateway=gateway, directory=directory)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    yield TestClient(app)


@pytest.fixture
def db_session(app):
    """A separate session for setting up and asserting on stored rows"""
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def student(db_session) -> Student:
    """A registered student inserted directly, for service-level tests"""
    record = Student(
        matric_no=MATRIC,
        password_hash=get_password_hash(DEFAULT_PASSWORD, rounds=4),
        email=fake.email(),
        full_name='Okafor Ada Chioma',
    )
    db_session.add(record)
    db_session.commit()
    return record


def _register_and_login(client: TestClient, matric: str) -> Dict[str, str]:
    response = client.post(
        '/api/v1/auth/register',
        json={'matric': matric, 'password': DEFAULT_PASSWORD, 'email': fake.email()},
    )
    assert response.status_code == 201, response.text
    response = client.post('/api/v1/auth/login', json={'matric': matric, 'password': DEFAULT_PASSWORD})
    assert response.status_code == 200, response.text
    return {'Authorization': f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auth_headers(client) -> Dict[str, str]:
    return _register_and_login(client, MATRIC)


@pytest.fixture
def other_headers(client) -> Dict[str, str]:
    return _register_and_login(client, OTHER_MATRIC)


@pytest.fixture
def start_request(client) -> Callable[..., dict]:
    def _start(headers: Dict[str, str], scope: str = 'OUTSIDE_NG', email: str = 'a@b.com') -> dict:
        response = client.post('/api/v1/requests', json={'scope': scope, 'request_email': email}, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _start


@pytest.fixture
def init_payment(client) -> Callable[..., dict]:
    def _init(headers: Dict[str, str], request_id: int, **extra) -> dict:
        body = {'request_id': request_id, 'email': 'a@b.com', **extra}
        response = client.post('/api/v1/payments/init', json=body, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _init


@pytest.fixture
def paid_request(client, gateway, auth_headers, start_request, init_payment) -> Callable[..., dict]:
    """Create a request and drive it to PAID through callback verification"""

    def _paid(scope: str = 'OUTSIDE_NG') -> dict:
        created = start_request(auth_headers, scope=scope)
        payment = init_payment(auth_headers, created['request_id'])
        gateway.statuses[payment['reference']] = 'success'
        response = client.get('/api/v1/payments/verify', params={'ref': payment['reference']}, headers=auth_headers)
        assert response.status_code == 200, response.text
        assert response.json()['confirmed'] is True
        return {'request_id': created['request_id'], 'reference': payment['reference']}

    return _paid
