import threading
import time

import numpy as np
import pytest

from solver.common.errors import EmptyOutputError
from solver.recognition import ModelConfig, RangePreset, TextRecognizer, target_size, to_input_tensor

from helpers import encode_png, one_hot_scores

CHARSETS = ['', '0', '1', 'a', 'b']


class FakeSession:
    def __init__(self, output):
        self.output = output
        self.inputs = []

    def __call__(self, tensor):
        self.inputs.append(tensor)
        return [self.output]


@pytest.mark.parametrize('size, resize, word, expected', [
    ((96, 32), None, False, (192, 64)),
    ((10, 200), None, False, (3, 64)),
    ((1, 200), None, False, (1, 64)),
    ((100, 50), [-1, 32], False, (64, 32)),
    ((100, 50), [-1, 32], True, (32, 32)),
    ((100, 50), [80, 20], False, (80, 20)),
])
def test_target_size(size, resize, word, expected):
    assert target_size(size[0], size[1], resize, word) == expected


def test_input_tensor_normalization():
    raster = np.zeros((10, 20, 3), dtype=np.uint8)
    tensor = to_input_tensor(raster, (20, 10))
    assert tensor.shape == (1, 1, 10, 20)
    assert tensor.dtype == np.float32
    assert np.allclose(tensor, -1.0)
    assert np.allclose(to_input_tensor(raster, (20, 10), normalize_only=True), 0.0)
    assert to_input_tensor(raster, (20, 10), channel=3).shape == (1, 3, 10, 20)


def test_classification_decodes_session_output():
    session = FakeSession(one_hot_scores([3, 3, 0, 3, 4], len(CHARSETS))[:, None, :])
    recognizer = TextRecognizer(session, CHARSETS)
    text = recognizer.classification(encode_png(np.full((32, 96, 3), 255, dtype=np.uint8)))
    assert text == 'aab'
    assert session.inputs[0].shape == (1, 1, 64, 192)
    assert np.allclose(session.inputs[0], 1.0)


def test_ranges_restrict_output():
    scores = one_hot_scores([3, 0, 1], len(CHARSETS))
    scores[0, 2] = 5.0
    recognizer = TextRecognizer(FakeSession(scores), CHARSETS)
    recognizer.set_ranges(RangePreset.DIGIT)
    assert recognizer.classification(np.zeros((32, 32), dtype=np.uint8)) == '10'
    recognizer.clear_ranges()
    assert recognizer.classification(np.zeros((32, 32), dtype=np.uint8)) == 'a0'


def test_probability_result_uses_effective_charset():
    scores = one_hot_scores([3, 0, 4], len(CHARSETS))
    recognizer = TextRecognizer(FakeSession(scores), CHARSETS)
    recognizer.set_ranges('ab')
    result = recognizer.classification(np.zeros((32, 32), dtype=np.uint8), probability=True)
    assert result.text == 'ab'
    assert result.charsets == ['', 'a', 'b']
    assert len(result.probability) == 3
    assert all(abs(sum(row) - 1.0) < 1e-5 for row in result.probability)


def test_custom_model_config_controls_input():
    config = ModelConfig(charset=['', 'x'], word=True, image=[-1, 40], channel=3)
    session = FakeSession(one_hot_scores([1], 2))
    recognizer = TextRecognizer(session, config=config)
    assert recognizer.classification(np.zeros((20, 80, 3), dtype=np.uint8)) == 'x'
    assert session.inputs[0].shape == (1, 3, 40, 40)


def test_png_fix_and_color_filter_run_before_inference():
    session = FakeSession(one_hot_scores([1], len(CHARSETS)))
    recognizer = TextRecognizer(session, CHARSETS)
    piece = np.zeros((8, 8, 4), dtype=np.uint8)
    recognizer.classification(piece, png_fix=True)
    assert np.allclose(session.inputs[-1], 1.0)
    recognizer.classification(np.zeros((8, 8, 3), dtype=np.uint8), colors=['red'])
    assert np.allclose(session.inputs[-1], 1.0)


def test_empty_output_is_fatal():
    recognizer = TextRecognizer(FakeSession(np.zeros((0, 5), dtype=np.float32)), CHARSETS)
    with pytest.raises(EmptyOutputError):
        recognizer.classification(np.zeros((8, 8), dtype=np.uint8))


def test_requires_charsets_or_config():
    with pytest.raises(ValueError):
        TextRecognizer(FakeSession(None))


def test_session_calls_are_serialized():
    active = []
    overlaps = []

    def session(tensor):
        active.append(1)
        overlaps.append(len(active))
        time.sleep(0.005)
        active.pop()
        return one_hot_scores([1], len(CHARSETS))

    recognizer = TextRecognizer(session, CHARSETS)
    threads = [threading.Thread(target=recognizer.classification,
                                args=(np.zeros((8, 8), dtype=np.uint8),)) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert overlaps == [1] * 8
