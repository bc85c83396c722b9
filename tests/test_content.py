GALLERY = [
    {'id': 1, 'title': 'Dunes', 'category': 'landscape', 'image': 'https://cdn/dunes.jpg', 'publicId': 'g/dunes'},
    {'id': 'b2', 'title': 'Harbour', 'category': 'city', 'image': 'https://cdn/harbour.jpg', 'featured': True},
]

PROJECT = {
    'id': 'p1',
    'title': 'Coastal Villa',
    'category': 'architecture',
    'location': 'Algarve',
    'year': '2023',
    'image': 'https://cdn/villa.jpg',
    'size': 'large',
    'story': 'Shot over two days.',
    'process': 'Natural light only.',
    'details': {'client': 'Casa Mar', 'service': 'Interiors', 'deliverables': '40 stills'},
}


def test_documents_empty_before_first_save(client):
    for path in ('/api/gallery', '/api/projects'):
        r = client.get(path)
        assert r.status_code == 200
        assert r.json() == []
        assert r.headers['cache-control'] == 'no-store, max-age=0'


def test_save_requires_session(client, stores):
    assert client.post('/api/gallery', json={'images': GALLERY}).status_code == 401
    assert client.post('/api/projects', json={'projects': [PROJECT]}).status_code == 401
    assert not (stores.path / 'gallery.json').exists()


def test_gallery_round_trip(admin_client):
    r = admin_client.post('/api/gallery', json={'images': GALLERY})
    assert r.status_code == 200
    assert r.json() == {'success': True}

    saved = admin_client.get('/api/gallery').json()
    assert saved[0] == GALLERY[0]
    assert saved[1]['featured'] is True
    assert 'publicId' not in saved[1]


def test_gallery_save_replaces_document(admin_client):
    admin_client.post('/api/gallery', json={'images': GALLERY})
    admin_client.post('/api/gallery', json={'images': GALLERY[:1]})

    assert [item['id'] for item in admin_client.get('/api/gallery').json()] == [1]


def test_projects_round_trip(admin_client):
    admin_client.post('/api/projects', json={'projects': [PROJECT, {'id': 'p2', 'title': 'Loft'}]})

    saved = admin_client.get('/api/projects').json()
    assert saved[0] == PROJECT
    assert saved[1]['size'] == 'medium'
    assert saved[1]['details'] == {'client': '', 'service': '', 'deliverables': ''}


def test_save_requires_an_array(admin_client):
    assert admin_client.post('/api/gallery', json={'images': {'id': 1}}).status_code == 400
    assert admin_client.post('/api/projects', json={'projects': 'nope'}).status_code == 400
    assert admin_client.post('/api/projects', json={'projects': [{'id': 'x', 'size': 'huge'}]}).status_code == 400
