"""Tests for fundamental matrix estimation."""

import numpy as np
import pytest

from loopverify.estimator import (
    FundamentalEstimate,
    OpenCVFundamentalEstimator,
    is_valid_model,
)


class TestIsValidModel:
    """Test suite for model validity."""

    def test_identity_is_valid(self):
        assert is_valid_model(np.eye(3))

    def test_single_nonzero_entry_is_valid(self):
        matrix = np.zeros((3, 3))
        matrix[2, 1] = 1e-12

        assert is_valid_model(matrix)

    def test_zero_matrix_is_invalid(self):
        assert not is_valid_model(np.zeros((3, 3)))

    def test_wrong_shape_is_invalid(self):
        assert not is_valid_model(np.ones((9, 3)))

    def test_none_is_invalid(self):
        assert not is_valid_model(None)


class TestFundamentalEstimate:
    """Test suite for FundamentalEstimate."""

    def test_not_found(self):
        estimate = FundamentalEstimate.not_found(4)

        assert not estimate.found
        assert estimate.inliers.shape == (4,)
        assert estimate.num_inliers == 0

    def test_num_inliers(self):
        estimate = FundamentalEstimate(
            matrix=np.eye(3), inliers=np.array([True, False, True])
        )

        assert estimate.found
        assert estimate.num_inliers == 2


class TestOpenCVFundamentalEstimator:
    """Test suite for the OpenCV RANSAC estimator."""

    def test_rigid_scene(self, two_view_scene):
        """Exact projections of a rigid scene are all consistent with F."""
        points_a, points_b = two_view_scene
        estimator = OpenCVFundamentalEstimator()

        estimate = estimator.estimate(points_a, points_b, 3.0, 0.99)

        assert estimate.found
        assert estimate.inliers.shape == (len(points_a),)
        assert estimate.num_inliers >= 0.9 * len(points_a)

    def test_epipolar_constraint_holds(self, two_view_scene):
        points_a, points_b = two_view_scene
        estimate = OpenCVFundamentalEstimator().estimate(points_a, points_b, 3.0, 0.99)

        F = estimate.matrix / np.linalg.norm(estimate.matrix)
        x_a = np.column_stack([points_a, np.ones(len(points_a))])
        x_b = np.column_stack([points_b, np.ones(len(points_b))])
        # Distance of each point in B to the epipolar line of its match
        lines = (F @ x_a.T).T
        distances = np.abs(np.sum(lines * x_b, axis=1)) / np.linalg.norm(lines[:, :2], axis=1)

        assert np.median(distances[estimate.inliers]) < 1.0

    def test_deterministic(self, two_view_scene):
        points_a, points_b = two_view_scene
        estimator = OpenCVFundamentalEstimator()

        first = estimator.estimate(points_a, points_b, 3.0, 0.99)
        second = estimator.estimate(points_a, points_b, 3.0, 0.99)

        np.testing.assert_array_equal(first.inliers, second.inliers)
        np.testing.assert_allclose(first.matrix, second.matrix)

    @pytest.mark.parametrize("n_points", [0, 1, 6])
    def test_too_few_points_returns_zero_matrix(self, n_points):
        points = np.arange(2 * n_points, dtype=np.float32).reshape(-1, 2)

        estimate = OpenCVFundamentalEstimator().estimate(points, points + 1.0, 3.0, 0.99)

        assert not estimate.found
        np.testing.assert_array_equal(estimate.matrix, np.zeros((3, 3)))
        assert estimate.inliers.shape == (n_points,)

    def test_mismatched_lengths_raise(self):
        with pytest.raises(ValueError, match="same length"):
            OpenCVFundamentalEstimator().estimate(
                np.zeros((8, 2)), np.zeros((9, 2)), 3.0, 0.99
            )
