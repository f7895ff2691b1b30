"""Robust fundamental matrix estimation.

The epipolar verifier only depends on the FundamentalMatrixEstimator
contract: given two equally long point sets and the RANSAC parameters,
return a 3x3 model and one inlier flag per correspondence. An all-zero
matrix means no model was found; estimators never raise for degenerate
input.

OpenCVFundamentalEstimator implements the contract with
cv2.findFundamentalMat and FM_RANSAC.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import cv2
import numpy as np

logger = logging.getLogger(__name__)

# Smallest sample the 7-point algorithm can fit
MIN_FUNDAMENTAL_POINTS = 7


def is_valid_model(matrix: np.ndarray | None) -> bool:
    """Whether a model matrix is 3x3 and not identically zero."""
    if matrix is None:
        return False
    matrix = np.asarray(matrix)
    return matrix.shape == (3, 3) and bool(np.any(matrix != 0.0))


@dataclass
class FundamentalEstimate:
    """Result of robust fundamental matrix estimation.

    Attributes:
        matrix: 3x3 fundamental matrix, all zeros if no model was found
        inliers: (N,) bool, RANSAC consensus membership of each correspondence
    """

    matrix: np.ndarray  # (3, 3) float64
    inliers: np.ndarray  # (N,) bool

    @property
    def found(self) -> bool:
        """Whether a non-trivial model was estimated."""
        return is_valid_model(self.matrix)

    @property
    def num_inliers(self) -> int:
        """Number of correspondences flagged as inliers."""
        return int(np.count_nonzero(self.inliers))

    @classmethod
    def not_found(cls, n_points: int) -> FundamentalEstimate:
        """Estimate signalling that no model could be fitted."""
        return cls(
            matrix=np.zeros((3, 3), dtype=np.float64),
            inliers=np.zeros(n_points, dtype=bool),
        )


class FundamentalMatrixEstimator(Protocol):
    """Contract of a robust two-view fundamental matrix estimator."""

    def estimate(
        self,
        points_a: np.ndarray,
        points_b: np.ndarray,
        distance_threshold: float,
        confidence: float,
    ) -> FundamentalEstimate:
        """Estimate F such that x_b^T F x_a = 0 for the inliers.

        Args:
            points_a: Points in the first view, shape (N, 2)
            points_b: Points in the second view, shape (N, 2)
            distance_threshold: Max distance (pixels) to the epipolar line
            confidence: Desired probability of finding a good model

        Returns:
            FundamentalEstimate with N inlier flags; all-zero matrix when
            no model was found
        """
        ...


class OpenCVFundamentalEstimator:
    """FM_RANSAC fundamental matrix estimation with OpenCV.

    OpenCV's RANSAC seeds its own random generator, so results are
    deterministic for a given input.
    """

    def __init__(self, max_iterations: int = 1000) -> None:
        """Initialize the estimator.

        Args:
            max_iterations: Maximum RANSAC iterations
        """
        self._max_iterations = max_iterations

    def estimate(
        self,
        points_a: np.ndarray,
        points_b: np.ndarray,
        distance_threshold: float,
        confidence: float,
    ) -> FundamentalEstimate:
        points_a = np.asarray(points_a, dtype=np.float32).reshape(-1, 2)
        points_b = np.asarray(points_b, dtype=np.float32).reshape(-1, 2)
        if len(points_a) != len(points_b):
            raise ValueError(
                f"Point sets must have the same length: {len(points_a)} != {len(points_b)}"
            )

        n_points = len(points_a)
        if n_points < MIN_FUNDAMENTAL_POINTS:
            return FundamentalEstimate.not_found(n_points)

        try:
            F, mask = cv2.findFundamentalMat(
                points_a,
                points_b,
                method=cv2.FM_RANSAC,
                ransacReprojThreshold=distance_threshold,
                confidence=confidence,
                maxIters=self._max_iterations,
            )
        except cv2.error as e:
            logger.warning("findFundamentalMat failed on %d points: %s", n_points, e)
            return FundamentalEstimate.not_found(n_points)

        if F is None or mask is None or F.shape != (3, 3):
            return FundamentalEstimate.not_found(n_points)

        return FundamentalEstimate(
            matrix=F.astype(np.float64),
            inliers=mask.reshape(-1).astype(bool),
        )
