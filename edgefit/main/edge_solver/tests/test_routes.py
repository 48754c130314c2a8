"""
Tests for the Flask review surface (app factory + blueprint routes).
"""

import io
import json

import cv2
import pytest

from conftest import square_image
from edgefit import create_app


def png_bytes(image):
    ok, encoded = cv2.imencode('.png', image)
    assert ok
    return encoded.tobytes()


PIECE_PNG = png_bytes(square_image(60, 10, 49))


@pytest.fixture
def app(tmp_path):
    app = create_app(store_root=tmp_path / "store")
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def upload(client, piece_id, data=PIECE_PNG, filename='piece.png'):
    return client.post(
        f'/pieces/{piece_id}',
        data={'file': (io.BytesIO(data), filename)},
        content_type='multipart/form-data',
    )


def test_W1_upload_piece(client, tmp_path):
    """Uploading a photo extracts and stores four edges."""
    print("Test W1: upload piece...", end=" ")

    response = upload(client, 0)
    assert response.status_code == 200

    data = response.get_json()
    assert data['success'] is True
    assert sorted(data['edges']) == ['0', '1', '2', '3']
    assert all(edge['points'] == 18 for edge in data['edges'].values())
    assert data['failures'] == []
    assert (tmp_path / "store" / "edges" / "piece_0_side_3.txt").exists()

    print("✓")


def test_W2_upload_errors(client):
    print("Test W2: upload errors...", end=" ")

    assert upload(client, 0).status_code == 200
    assert upload(client, 0).status_code == 409
    assert upload(client, 1, filename='piece.gif').status_code == 400
    assert upload(client, 1, data=b'not an image').status_code == 400
    assert client.post('/pieces/1', data={}, content_type='multipart/form-data').status_code == 400

    print("✓")


def test_W3_preview(client):
    """Previews are PNGs of the aligned buffer; unknown sides are 404."""
    print("Test W3: preview...", end=" ")

    upload(client, 0)
    response = client.get('/pieces/0/preview/2.png')

    assert response.status_code == 200
    assert response.mimetype == 'image/png'
    assert response.data[:8] == b'\x89PNG\r\n\x1a\n'
    assert client.get('/pieces/5/preview/0.png').status_code == 404

    print("✓")


def test_W4_best_candidates(client):
    """Best-diff lists over the uploaded pieces, with argument checking."""
    print("Test W4: best candidates...", end=" ")

    upload(client, 0)
    upload(client, 1)

    response = client.get('/edges/0.0/best?k=2')
    assert response.status_code == 200
    data = response.get_json()
    assert data['edge'] == '0.0'
    assert len(data['candidates']) == 2
    # Identical straight sides match perfectly
    assert all(c['score'] == 0 and c['label'].startswith('1.') for c in data['candidates'])

    assert client.get('/edges/0.9/best').status_code == 400
    assert client.get('/edges/7.0/best').status_code == 404
    assert client.get('/edges/0.0/best?k=0').status_code == 400
    assert client.get('/edges/0.0/best?k=two').status_code == 400

    print("✓")


def test_W5_session_actions(tmp_path):
    """The session proposes, and actions move it along."""
    print("Test W5: session...", end=" ")

    # A 2x2 block needs four pieces; k covers all 12 partners of an edge
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"matching": {"default_k": 12}}))
    client = create_app(config_path=path).test_client()
    for piece_id in range(4):
        upload(client, piece_id)

    state = client.get('/session').get_json()
    assert state['finished'] is False
    assert state['current'] == '0.0'
    assert state['proposal'] is not None
    assert state['proposal']['degenerate'] is False

    preview = client.get('/session/preview.png')
    assert preview.status_code == 200
    assert preview.mimetype == 'image/png'

    response = client.post('/session/action', data=json.dumps({'action': 'skip'}),
                           content_type='application/json')
    assert response.status_code == 200
    assert response.get_json()['current'] == '0.1'

    assert client.post('/session/action', json={'action': 'bogus'}).status_code == 400
    assert client.post('/session/action', json={'action': 'jump'}).status_code == 400
    assert client.post('/session/action', json={'action': 'jump', 'piece': 1}).get_json()['current'] == '1.0'
    # Piece ids sent as strings are accepted
    response = client.post('/session/action', json={'action': 'jump', 'piece': '0'})
    assert response.status_code == 200
    assert response.get_json()['current'] == '0.0'
    assert client.post('/session/action', json={'action': 'jump', 'piece': 'zero'}).status_code == 400

    idle = client.post('/session/idle').get_json()
    assert 'computed' in idle

    print("✓")


def test_W6_store_is_reloaded(tmp_path):
    """A new app on the same store sees the previously extracted edges."""
    print("Test W6: reload store...", end=" ")

    first = create_app(store_root=tmp_path / "store")
    upload(first.test_client(), 0)

    second = create_app(store_root=tmp_path / "store")
    assert len(second.extensions['edgefit'].table) == 4

    print("✓")


def test_W7_config_file(tmp_path):
    print("Test W7: config file...", end=" ")

    path = tmp_path / "config.json"
    path.write_text(json.dumps({"extraction": {"canvas_size": 200}, "matching": {"default_k": 4}}))

    app = create_app(config_path=path)
    workspace = app.extensions['edgefit']
    assert workspace.extraction_config.canvas_size == 200
    assert workspace.matching_config.default_k == 4
    assert workspace.store is None

    print("✓")
