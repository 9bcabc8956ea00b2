import time

from conftest import FakeTransport
from app import create_app

THROTTLE_MESSAGE = 'Too many requests, please try again after 15 minutes.'


def test_eleventh_request_in_window_is_throttled(client, transport, valid_payload):
    statuses = [client.post('/connect', json=valid_payload).status_code for _ in range(10)]
    assert statuses == [200] * 10

    response = client.post('/connect', json=valid_payload)

    assert response.status_code == 429
    assert response.mimetype == 'text/plain'
    assert response.get_data(as_text=True) == THROTTLE_MESSAGE
    assert len(transport.sent) == 10


def test_invalid_submissions_count_towards_the_limit(client, transport, valid_payload):
    for _ in range(10):
        assert client.post('/connect', json={}).status_code == 400

    response = client.post('/connect', json=valid_payload)

    assert response.status_code == 429
    assert transport.sent == []


def test_limit_is_tracked_per_client_address(client, transport, valid_payload):
    for _ in range(11):
        client.post('/connect', json=valid_payload, environ_base={'REMOTE_ADDR': '10.0.0.1'})

    response = client.post('/connect', json=valid_payload, environ_base={'REMOTE_ADDR': '10.0.0.2'})

    assert response.status_code == 200
    assert len(transport.sent) == 11


def test_readiness_route_is_not_limited(client):
    statuses = {client.get('/').status_code for _ in range(15)}
    assert statuses == {200}


def test_each_app_starts_with_fresh_counters(valid_payload):
    first = create_app('testing', transport=FakeTransport()).test_client()
    for _ in range(11):
        first.post('/connect', json=valid_payload)

    second = create_app('testing', transport=FakeTransport()).test_client()

    assert second.post('/connect', json=valid_payload).status_code == 200


def test_window_resets_after_it_elapses(valid_payload):
    transport = FakeTransport()
    client = create_app('testing', transport=transport, CONTACT_RATE_LIMIT='2 per 1 second').test_client()

    assert client.post('/connect', json=valid_payload).status_code == 200
    assert client.post('/connect', json=valid_payload).status_code == 200
    assert client.post('/connect', json=valid_payload).status_code == 429

    time.sleep(1.1)

    assert client.post('/connect', json=valid_payload).status_code == 200
    assert len(transport.sent) == 3


def test_throttle_response_carries_rate_limit_headers(client, valid_payload):
    for _ in range(10):
        client.post('/connect', json=valid_payload)

    response = client.post('/connect', json=valid_payload)

    assert response.status_code == 429
    assert int(response.headers['Retry-After']) > 0
    assert response.headers['X-RateLimit-Limit'] == '10'
    assert response.headers['X-RateLimit-Remaining'] == '0'


def test_limit_is_keyed_on_forwarded_address_behind_proxy(valid_payload):
    transport = FakeTransport()
    client = create_app('testing', transport=transport, PROXY_FIX_COUNT=1).test_client()

    for _ in range(10):
        response = client.post('/connect', json=valid_payload, headers={'X-Forwarded-For': '203.0.113.5'})
        assert response.status_code == 200

    throttled = client.post('/connect', json=valid_payload, headers={'X-Forwarded-For': '203.0.113.5'})
    other_client = client.post('/connect', json=valid_payload, headers={'X-Forwarded-For': '203.0.113.6'})

    assert throttled.status_code == 429
    assert other_client.status_code == 200
    assert len(transport.sent) == 11
