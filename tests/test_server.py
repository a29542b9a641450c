import base64

import numpy as np
import pytest
from fastapi.testclient import TestClient

from solver.detection import ObjectDetector
from solver.recognition import TextRecognizer
from solver.config import env_int
from solver.server import create_app

from helpers import encode_png, one_hot_scores


def b64(raster):
    return base64.b64encode(encode_png(raster)).decode('ascii')


@pytest.fixture
def client():
    return TestClient(create_app())


def test_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.json()['status'] == 'healthy'


def test_slide_comparison_endpoint(client):
    background = np.full((40, 60, 3), 100, dtype=np.uint8)
    target = background.copy()
    target[10:20, 20:30] = 255
    response = client.post('/slide_comparison', json={'target': b64(target), 'background': b64(background)})
    assert response.status_code == 200
    assert response.json() == {'target': [22, 10]}


def test_slide_match_endpoint(client):
    background = np.zeros((60, 100, 3), dtype=np.uint8)
    background[20:30, 60:70] = 255
    target = background[15:35, 55:75].copy()
    response = client.post('/slide_match', json={'target': b64(target), 'background': b64(background),
                                                 'simple_target': True})
    assert response.status_code == 200
    assert response.json() == {'target_x': 0, 'target_y': 0, 'target': [55, 15, 75, 35]}


def test_invalid_base64_is_rejected(client):
    response = client.post('/slide_comparison', json={'target': '***', 'background': '***'})
    assert response.status_code == 400


def test_undecodable_image_is_rejected(client):
    garbage = base64.b64encode(b'not an image').decode('ascii')
    response = client.post('/slide_match', json={'target': garbage, 'background': garbage})
    assert response.status_code == 400


def test_sessionless_endpoints_are_unavailable(client):
    payload = {'image': b64(np.zeros((8, 8, 3), dtype=np.uint8))}
    assert client.post('/classification', json=payload).status_code == 503
    assert client.post('/detection', json=payload).status_code == 503


def test_classification_endpoint_with_probability():
    recognizer = TextRecognizer(lambda tensor: one_hot_scores([1, 2], 3), ['', 'a', 'b'])
    client = TestClient(create_app(recognizer=recognizer))
    payload = {'image': b64(np.zeros((16, 32, 3), dtype=np.uint8)), 'probability': True}
    body = client.post('/classification', json=payload).json()
    assert body['text'] == 'ab'
    assert body['charsets'] == ['', 'a', 'b']
    assert len(body['probability']) == 2


def test_detection_endpoint_reports_empty_output():
    detector = ObjectDetector(lambda tensor: [], input_size=64)
    client = TestClient(create_app(detector=detector))
    response = client.post('/detection', json={'image': b64(np.zeros((8, 8, 3), dtype=np.uint8))})
    assert response.status_code == 500


def test_out_of_range_color_bounds_are_rejected():
    recognizer = TextRecognizer(lambda tensor: one_hot_scores([1], 3), ['', 'a', 'b'])
    client = TestClient(create_app(recognizer=recognizer))
    payload = {'image': b64(np.zeros((16, 32, 3), dtype=np.uint8)),
               'colors': ['x'], 'color_ranges': {'x': [0, 0, 0, 300, 255, 255]}}
    response = client.post('/classification', json=payload)
    assert response.status_code == 400
    assert '0-255' in response.json()['detail']

    payload['color_ranges'] = {'x': [-1, 0, 0, 180, 255, 255]}
    assert client.post('/classification', json=payload).status_code == 400


def test_valid_color_bounds_are_accepted():
    recognizer = TextRecognizer(lambda tensor: one_hot_scores([1], 3), ['', 'a', 'b'])
    client = TestClient(create_app(recognizer=recognizer))
    payload = {'image': b64(np.zeros((16, 32, 3), dtype=np.uint8)),
               'colors': ['x'], 'color_ranges': {'x': [0, 0, 0, 180, 255, 255]}}
    response = client.post('/classification', json=payload)
    assert response.status_code == 200
    assert response.json() == {'text': 'a'}


def test_env_int(monkeypatch):
    monkeypatch.delenv('PORT', raising=False)
    assert env_int('PORT', 8000) == 8000
    monkeypatch.setenv('PORT', '  ')
    assert env_int('PORT', 8000) == 8000
    monkeypatch.setenv('PORT', '9001')
    assert env_int('PORT', 8000) == 9001
    monkeypatch.setenv('PORT', 'abc')
    with pytest.raises(ValueError):
        env_int('PORT', 8000)
