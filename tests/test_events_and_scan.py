import re

import pytest

from ambient_frames.routes import events as event_routes
from ambient_frames.routes import scan as scan_routes
from ambient_frames.services.object_storage import event_photo_key, region_from_endpoint, scan_key


@pytest.fixture()
def stored_objects(monkeypatch):
    objects = {}

    async def fake_put_object(key, body, content_type=None):
        objects[key] = (body, content_type)
        return f'https://files.example.com/{key}'

    monkeypatch.setattr(event_routes, 'put_object', fake_put_object)
    monkeypatch.setattr(scan_routes, 'put_object', fake_put_object)
    return objects


def _create_event(client, name='Smith Wedding', date='2024-06-01'):
    r = client.post('/api/admin/events', json={'name': name, 'date': date, 'location': 'Lisbon'})
    assert r.status_code == 200
    return r.json()['event']


def test_create_and_list_events(admin_client):
    event = _create_event(admin_client)
    assert re.fullmatch(r'smith-wedding-[A-Za-z0-9_-]{4}', event['slug'])
    assert event['location'] == 'Lisbon'
    assert event['coverImage'] is None

    later = _create_event(admin_client, name='Garden Party')

    events = admin_client.get('/api/admin/events').json()['events']
    assert [e['id'] for e in events] == [later['id'], event['id']]


def test_event_requires_name_and_date(admin_client):
    assert admin_client.post('/api/admin/events', json={'name': 'No date'}).status_code == 400
    assert admin_client.post('/api/admin/events', json={'name': ' ', 'date': '2024-06-01'}).status_code == 400


def test_event_routes_require_session(client):
    assert client.get('/api/admin/events').status_code == 401
    assert client.post('/api/admin/events', json={'name': 'X', 'date': '2024-01-01'}).status_code == 401
    r = client.post('/api/admin/photos/upload', files={'file': ('a.jpg', b'x', 'image/jpeg')}, data={'eventId': 'e'})
    assert r.status_code == 401


def test_upload_event_photo(admin_client, stored_objects):
    event = _create_event(admin_client)

    r = admin_client.post(
        '/api/admin/photos/upload',
        files={'file': ('first dance.jpg', b'jpeg-bytes', 'image/jpeg')},
        data={'eventId': event['id']},
    )
    assert r.status_code == 200
    photo = r.json()['photo']
    assert photo['eventId'] == event['id']
    assert photo['originalName'] == 'first dance.jpg'
    assert re.fullmatch(rf"events/{re.escape(event['id'])}/\d+_first_dance\.jpg", photo['storageKey'])
    assert photo['url'] == f"https://files.example.com/{photo['storageKey']}"
    assert photo['uploadedAt'].endswith(('Z', '+00:00'))
    assert stored_objects[photo['storageKey']] == (b'jpeg-bytes', 'image/jpeg')

    photos = admin_client.get(f"/api/admin/events/{event['id']}/photos").json()['photos']
    assert [p['id'] for p in photos] == [photo['id']]


def test_upload_event_photo_requires_file_and_event(admin_client, stored_objects):
    r = admin_client.post('/api/admin/photos/upload', files={'file': ('a.jpg', b'x', 'image/jpeg')})
    assert r.status_code == 400
    assert r.json() == {'error': 'Missing file or eventId'}

    r = admin_client.post('/api/admin/photos/upload', data={'eventId': 'abc'})
    assert r.status_code == 400
    assert stored_objects == {}


def test_upload_for_unknown_event(admin_client, stored_objects):
    r = admin_client.post(
        '/api/admin/photos/upload',
        files={'file': ('a.jpg', b'x', 'image/jpeg')},
        data={'eventId': 'no-such-event'},
    )
    assert r.status_code == 404
    assert r.json() == {'error': 'Event not found'}
    assert stored_objects == {}
    assert admin_client.get('/api/admin/events/no-such-event/photos').json() == {'photos': []}


def test_upload_without_storage_configured(admin_client):
    event = _create_event(admin_client)

    r = admin_client.post(
        '/api/admin/photos/upload',
        files={'file': ('a.jpg', b'x', 'image/jpeg')},
        data={'eventId': event['id']},
    )
    assert r.status_code == 500
    assert r.json() == {'error': 'Failed to connect to storage'}
    assert admin_client.get(f"/api/admin/events/{event['id']}/photos").json()['photos'] == []


def test_photos_of_unknown_event(admin_client):
    assert admin_client.get('/api/admin/events/nope/photos').json() == {'photos': []}


def test_scan_upload_is_public(client, stored_objects):
    r = client.post('/api/scan/upload', files={'file': ('me.png', b'png', 'image/png')}, data={'name': 'Jane'})
    assert r.status_code == 200
    photo = r.json()['photo']
    assert photo['eventId'] is None
    assert photo['originalName'] == 'Jane'
    assert photo['storageKey'].startswith('scans/')

    assert client.post('/api/scan/upload').status_code == 400


def test_search_returns_five_most_recent(admin_client, stored_objects):
    event = _create_event(admin_client)
    uploaded = []
    for i in range(7):
        r = admin_client.post(
            '/api/admin/photos/upload',
            files={'file': (f'p{i}.jpg', b'x', 'image/jpeg')},
            data={'eventId': event['id']},
        )
        uploaded.append(r.json()['photo']['id'])

    r = admin_client.post('/api/scan/search', files={'file': ('probe.jpg', b'face', 'image/jpeg')})
    assert r.status_code == 200
    body = r.json()
    assert body['found'] is True
    assert [p['id'] for p in body['photos']] == list(reversed(uploaded))[:5]


def test_search_with_no_photos(client):
    r = client.post('/api/scan/search')
    assert r.json() == {'success': True, 'found': False, 'photos': []}


def test_object_keys_and_region():
    assert event_photo_key('evt1', 'big day\tfinal.jpg', timestamp_ms=42) == 'events/evt1/42_big_day_final.jpg'
    assert scan_key('me.png', timestamp_ms=7) == 'scans/7_me.png'
    assert region_from_endpoint('https://s3.us-west-004.backblazeb2.com') == 'us-west-004'
    assert region_from_endpoint('https://minio.local') == 'us-east-1'
