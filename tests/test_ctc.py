import numpy as np
import pytest

from solver.common.errors import TensorShapeError
from solver.recognition.ctc import decode_output, probability_matrix, softmax, greedy_indices

from helpers import one_hot_scores


def test_repeats_collapse_to_one_symbol(charsets):
    scores = one_hot_scores([1, 1, 1], len(charsets))
    assert decode_output(scores, charsets) == 'a'


def test_blank_between_repeats_emits_twice(charsets):
    scores = one_hot_scores([1, 1, 0, 1], len(charsets))
    assert decode_output(scores, charsets) == 'aa'


def test_three_dimensional_tensor_uses_first_batch(charsets):
    scores = one_hot_scores([2, 0, 3, 4], len(charsets))[:, None, :]
    assert decode_output(scores, charsets) == 'bc1'


def test_tie_picks_lowest_index(charsets):
    scores = np.zeros((1, len(charsets)), dtype=np.float32)
    scores[0, 2] = 5.0
    scores[0, 3] = 5.0
    assert greedy_indices(scores) == [2]


def test_tie_with_allowed_set_follows_allowed_order(charsets):
    scores = np.zeros((1, len(charsets)), dtype=np.float32)
    scores[0, 2] = 5.0
    scores[0, 3] = 5.0
    assert greedy_indices(scores, [0, 3, 2]) == [3]


def test_allowed_set_restricts_choice(charsets):
    scores = one_hot_scores([1, 0, 5], len(charsets))
    scores[0, 4] = 1.0
    # 'a' is excluded, the best allowed symbol at t=0 is '1'
    assert decode_output(scores, charsets, [0, 4, 5]) == '12'


def test_allowed_indices_beyond_class_count_are_skipped(charsets):
    scores = one_hot_scores([2], len(charsets))
    assert decode_output(scores, charsets, [0, 2, 40]) == 'b'


def test_index_beyond_charset_is_not_emitted():
    scores = one_hot_scores([1, 3], 4)
    assert decode_output(scores, ['', 'x']) == 'x'


def test_decoding_is_deterministic(rng, charsets):
    scores = rng.normal(size=(20, len(charsets))).astype(np.float32)
    first = decode_output(scores, charsets, [0, 1, 2, 3])
    assert all(decode_output(scores, charsets, [0, 1, 2, 3]) == first for _ in range(5))


@pytest.mark.parametrize('shape', [(5,), (1, 2, 3, 4)])
def test_bad_shape_raises(shape, charsets):
    with pytest.raises(TensorShapeError):
        decode_output(np.zeros(shape, dtype=np.float32), charsets)


def test_softmax_rows_sum_to_one_and_keep_argmax(rng):
    scores = rng.normal(scale=20.0, size=(12, 30)).astype(np.float32)
    probs = probability_matrix(scores)
    assert probs.shape == scores.shape
    np.testing.assert_allclose(probs.sum(axis=1), 1.0, atol=1e-5)
    assert (probs.argmax(axis=1) == scores.argmax(axis=1)).all()


def test_softmax_is_stable_for_large_values():
    probs = softmax(np.array([1000.0, 1000.0, -1000.0]))
    np.testing.assert_allclose(probs, [0.5, 0.5, 0.0], atol=1e-6)


def test_probability_restricted_to_allowed_columns(rng):
    scores = rng.normal(size=(4, 6)).astype(np.float32)
    probs = probability_matrix(scores, [0, 5, 2])
    assert probs.shape == (4, 3)
    np.testing.assert_allclose(probs.sum(axis=1), 1.0, atol=1e-5)
