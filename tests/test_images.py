import json

import pytest

from ambient_frames.routes import images as image_routes
from ambient_frames.services import cloudinary_service
from ambient_frames.services.cloudinary_service import UploadGatewayError, build_public_id, sanitize_image_name

JPEG = ('hero.jpg', b'\xff\xd8\xff\xe0fake-jpeg', 'image/jpeg')


def test_sync_round_trip(admin_client):
    r = admin_client.post('/api/admin/images/sync', json={
        'section': 'home', 'imageId': 'hero_1', 'url': 'https://cdn/u1.jpg', 'publicId': 'ambient-frames/home/u1',
    })
    assert r.status_code == 200
    assert r.json()['updated']['imageId'] == 'hero_1'

    r = admin_client.post('/api/admin/images/sync', json={
        'section': 'home', 'imageId': 'hero_2', 'url': 'https://cdn/u2.jpg', 'publicId': 'ambient-frames/home/u2',
    })
    assert r.status_code == 200

    home = admin_client.get('/api/images', params={'section': 'home'}).json()['images']
    assert home['hero_1'] == {'url': 'https://cdn/u1.jpg', 'publicId': 'ambient-frames/home/u1'}
    assert home['hero_2'] == {'url': 'https://cdn/u2.jpg', 'publicId': 'ambient-frames/home/u2'}

    config = admin_client.get('/api/admin/images/sync').json()['config']
    assert set(config) == {'home'}


def test_sync_overwrites_existing_slot(admin_client, stores):
    for url in ('https://cdn/old.jpg', 'https://cdn/new.jpg'):
        admin_client.post('/api/admin/images/sync', json={
            'section': 'about', 'imageId': 'portrait', 'url': url, 'publicId': url.rsplit('/', 1)[1],
        })

    saved = json.loads((stores.path / 'cloudinary_images.json').read_text())
    assert saved == {'about': {'portrait': {'url': 'https://cdn/new.jpg', 'publicId': 'new.jpg'}}}


def test_public_images_empty_before_first_write(client):
    assert client.get('/api/images').json() == {'success': True, 'images': {}}
    assert client.get('/api/images', params={'section': 'blog'}).json() == {'success': True, 'images': {}}


def test_sync_requires_all_fields(admin_client):
    r = admin_client.post('/api/admin/images/sync', json={'section': 'home', 'imageId': 'hero_1', 'url': 'x'})
    assert r.status_code == 400

    r = admin_client.post('/api/admin/images/sync', json={
        'section': 'home', 'imageId': '  ', 'url': 'x', 'publicId': 'y',
    })
    assert r.status_code == 400


def test_sync_rejects_unknown_section(admin_client):
    r = admin_client.post('/api/admin/images/sync', json={
        'section': 'pricing', 'imageId': 'a', 'url': 'x', 'publicId': 'y',
    })
    assert r.status_code == 400
    assert r.json() == {'error': 'Invalid section'}


def test_image_routes_require_session(client, stores):
    assert client.get('/api/admin/images/sync').status_code == 401
    r = client.post('/api/admin/images/sync', json={
        'section': 'home', 'imageId': 'a', 'url': 'x', 'publicId': 'y',
    })
    assert r.status_code == 401
    assert not (stores.path / 'cloudinary_images.json').exists()

    assert client.get('/api/admin/images', params={'section': 'home'}).status_code == 401
    assert client.post('/api/admin/images', files={'file': JPEG}, data={'section': 'home', 'imageName': 'x'}).status_code == 401
    assert client.delete('/api/admin/images', params={'publicId': 'x'}).status_code == 401


def test_upload_image(admin_client, monkeypatch):
    calls = []

    async def fake_upload(content, section, image_name):
        calls.append((content, section, image_name))
        return {'url': 'https://cdn/home/hero.jpg', 'public_id': 'ambient-frames/home/hero_image_1'}

    monkeypatch.setattr(image_routes, 'upload_image', fake_upload)

    r = admin_client.post('/api/admin/images', files={'file': JPEG}, data={'section': 'home', 'imageName': 'Hero Image'})
    assert r.status_code == 200
    assert r.json()['image'] == {
        'url': 'https://cdn/home/hero.jpg',
        'publicId': 'ambient-frames/home/hero_image_1',
        'section': 'home',
        'name': 'Hero Image',
    }
    assert calls == [(JPEG[1], 'home', 'Hero Image')]


def test_upload_validation(admin_client):
    r = admin_client.post('/api/admin/images', files={'file': JPEG}, data={'section': 'home'})
    assert r.status_code == 400

    r = admin_client.post('/api/admin/images', files={'file': JPEG}, data={'section': 'pricing', 'imageName': 'x'})
    assert r.json() == {'error': 'Invalid section'}

    r = admin_client.post(
        '/api/admin/images',
        files={'file': ('notes.txt', b'hello', 'text/plain')},
        data={'section': 'home', 'imageName': 'x'},
    )
    assert r.status_code == 400
    assert r.json()['error'] == 'Invalid file type'


def test_upload_failure_is_reported(admin_client, monkeypatch):
    async def failing_upload(content, section, image_name):
        raise UploadGatewayError('boom')

    monkeypatch.setattr(image_routes, 'upload_image', failing_upload)

    r = admin_client.post('/api/admin/images', files={'file': JPEG}, data={'section': 'home', 'imageName': 'x'})
    assert r.status_code == 500
    assert r.json() == {'error': 'Failed to upload image'}


def test_replace_continues_when_old_delete_fails(admin_client, monkeypatch, caplog):
    async def failing_delete(public_id, max_retries=3):
        raise UploadGatewayError('gone')

    async def fake_upload(content, section, image_name, max_retries=3):
        return {'url': 'https://cdn/new.jpg', 'public_id': 'ambient-frames/services/new_1'}

    monkeypatch.setattr(cloudinary_service, 'delete_image', failing_delete)
    monkeypatch.setattr(cloudinary_service, 'upload_image', fake_upload)

    r = admin_client.put(
        '/api/admin/images',
        files={'file': JPEG},
        data={'section': 'services', 'imageName': 'new', 'oldPublicId': 'ambient-frames/services/old_1'},
    )
    assert r.status_code == 200
    body = r.json()
    assert body['image']['publicId'] == 'ambient-frames/services/new_1'
    assert body['deletedOldImage'] is False
    assert 'ambient-frames/services/old_1' in caplog.text


def test_replace_reports_old_image_removed(admin_client, monkeypatch):
    deleted = []

    async def fake_delete(public_id, max_retries=3):
        deleted.append(public_id)
        return True

    async def fake_upload(content, section, image_name, max_retries=3):
        return {'url': 'https://cdn/new.jpg', 'public_id': 'ambient-frames/blog/new_1'}

    monkeypatch.setattr(cloudinary_service, 'delete_image', fake_delete)
    monkeypatch.setattr(cloudinary_service, 'upload_image', fake_upload)

    r = admin_client.put(
        '/api/admin/images',
        files={'file': JPEG},
        data={'section': 'blog', 'imageName': 'new', 'oldPublicId': 'ambient-frames/blog/old_1'},
    )
    assert r.json()['deletedOldImage'] is True
    assert deleted == ['ambient-frames/blog/old_1']


def test_delete_image(admin_client, monkeypatch):
    async def fake_delete(public_id, max_retries=3):
        return public_id == 'ambient-frames/home/a'

    monkeypatch.setattr(image_routes, 'delete_image', fake_delete)

    r = admin_client.delete('/api/admin/images', params={'publicId': 'ambient-frames/home/a'})
    assert r.status_code == 200
    assert r.json()['publicId'] == 'ambient-frames/home/a'

    assert admin_client.delete('/api/admin/images', params={'publicId': 'other'}).status_code == 500
    assert admin_client.delete('/api/admin/images').status_code == 400


def test_list_section_images(admin_client, monkeypatch):
    async def fake_list(section):
        return [{'publicId': f'ambient-frames/{section}/a', 'url': 'https://cdn/a.jpg'}]

    monkeypatch.setattr(image_routes, 'list_section_images', fake_list)

    r = admin_client.get('/api/admin/images', params={'section': 'about'})
    assert r.json() == {
        'success': True,
        'images': [{'publicId': 'ambient-frames/about/a', 'url': 'https://cdn/a.jpg'}],
        'section': 'about',
    }
    assert admin_client.get('/api/admin/images').status_code == 400


@pytest.mark.parametrize('name, expected', [
    ('Hero Image', 'hero_image'),
    ('Hero -- Image!!', 'hero_image_'),
    ('already_clean_1', 'already_clean_1'),
    ('ÉTÉ 2024', '_t_2024'),
])
def test_sanitize_image_name(name, expected):
    assert sanitize_image_name(name) == expected


def test_public_id_layout():
    assert build_public_id('home', 'Hero Image', timestamp_ms=1700000000000) == 'ambient-frames/home/hero_image_1700000000000'
    assert build_public_id('gallery', 'Wedding 1', timestamp_ms=5) == 'ambient-frames/ambient-gallery/wedding_1_5'
