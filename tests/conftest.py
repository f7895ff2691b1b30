"""Shared fixtures for the verifier tests."""

import numpy as np
import pytest

from loopverify.estimator import FundamentalEstimate
from loopverify.signature import Keypoint, Signature, WordIndex, build_word_index

# Word IDs of the ambiguous pairing example: word 1 is seen twice in B,
# word 6 twice in both, word 3 only in A and word 5 only in B.
WORDS_A = [1, 2, 3, 4, 6, 6]
WORDS_B = [1, 1, 2, 4, 5, 6, 6]


def make_word_index(word_ids: list[int], offset: float = 0.0) -> WordIndex:
    """Build a word index with a distinct point for every occurrence."""
    points = np.array(
        [[10.0 * i + offset, 5.0 * i + offset] for i in range(len(word_ids))]
    )
    return build_word_index(np.array(word_ids), points)


class StubEstimator:
    """Estimator returning a fixed answer and recording its inputs."""

    def __init__(
        self,
        matrix: np.ndarray | None = None,
        inliers: list[bool] | None = None,
    ) -> None:
        self.matrix = np.eye(3) if matrix is None else matrix
        self.inliers = inliers
        self.calls: list[tuple[np.ndarray, np.ndarray, float, float]] = []

    def estimate(self, points_a, points_b, distance_threshold, confidence):
        self.calls.append((points_a, points_b, distance_threshold, confidence))
        if self.inliers is None:
            inliers = np.ones(len(points_a), dtype=bool)
        else:
            inliers = np.array(self.inliers, dtype=bool)
        return FundamentalEstimate(matrix=self.matrix, inliers=inliers)


class NeverCalledEstimator:
    """Estimator failing the test if it is ever invoked."""

    def estimate(self, points_a, points_b, distance_threshold, confidence):
        raise AssertionError("estimator must not be called")


@pytest.fixture
def ambiguous_words() -> tuple[WordIndex, WordIndex]:
    """Word indices of the ambiguous pairing example."""
    return make_word_index(WORDS_A), make_word_index(WORDS_B, offset=1.0)


@pytest.fixture
def unique_signatures() -> tuple[Signature, Signature]:
    """Reference and hypothesis sharing ten unambiguous words."""
    reference = Signature(
        id=1,
        words={i: [Keypoint(10.0 * i, 20.0 + i)] for i in range(10)},
    )
    hypothesis = Signature(
        id=2,
        words={i: [Keypoint(12.0 * i + 3.0, 25.0 + 2.0 * i)] for i in range(10)},
    )
    return reference, hypothesis


@pytest.fixture
def two_view_scene() -> tuple[np.ndarray, np.ndarray]:
    """Projections of a random 3D point cloud in two calibrated views.

    Returns:
        Tuple of (points_a, points_b), each (60, 2) pixel coordinates
    """
    rng = np.random.default_rng(0)
    n_points = 60
    points_3d = np.column_stack(
        [
            rng.uniform(-2.0, 2.0, n_points),
            rng.uniform(-1.5, 1.5, n_points),
            rng.uniform(4.0, 8.0, n_points),
        ]
    )

    K = np.array([[500.0, 0.0, 320.0], [0.0, 500.0, 240.0], [0.0, 0.0, 1.0]])
    angle = np.deg2rad(5.0)
    R = np.array(
        [
            [np.cos(angle), 0.0, np.sin(angle)],
            [0.0, 1.0, 0.0],
            [-np.sin(angle), 0.0, np.cos(angle)],
        ]
    )
    t = np.array([0.5, 0.1, 0.0])

    def project(points: np.ndarray) -> np.ndarray:
        pixels = (K @ points.T).T
        return pixels[:, :2] / pixels[:, 2:3]

    points_a = project(points_3d)
    points_b = project((R @ points_3d.T).T + t)
    return points_a, points_b
