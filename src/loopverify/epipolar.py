"""Epipolar geometry check between two keypoint signatures.

The check pairs visual words between the two signatures, fits a
fundamental matrix with RANSAC and counts the correspondences that are
consistent with it. A keypoint taking part in several correspondences
(ambiguous words) is only counted once, for its first correspondence.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from .config import VerifierConfig
from .estimator import FundamentalMatrixEstimator, is_valid_model
from .pairing import Correspondence, count_shared_words, find_pairs
from .signature import Signature

logger = logging.getLogger(__name__)


@dataclass
class EpipolarCheck:
    """Outcome of the epipolar geometry check.

    Attributes:
        accepted: Whether the hypothesis passed the check
        num_pairs: Correspondences handed to the estimator
        real_pair_count: Theoretically matchable pairs
        num_inliers: Inliers left after removing duplicated keypoints
        model_found: Whether RANSAC produced a non-trivial model
        fundamental_matrix: Estimated 3x3 model, None if not estimated
        reason: Why the hypothesis was rejected, empty if accepted
    """

    accepted: bool
    num_pairs: int = 0
    real_pair_count: int = 0
    num_inliers: int = 0
    model_found: bool = False
    fundamental_matrix: np.ndarray | None = None
    reason: str = ""


def count_unique_inliers(
    correspondences: Sequence[Correspondence],
    inliers: Sequence[bool] | np.ndarray,
) -> int:
    """Count inlier correspondences, skipping reused keypoints.

    Correspondences are visited in order. One whose first or second
    keypoint position was already used by an earlier correspondence is
    skipped whatever its inlier flag; otherwise both positions are marked
    used and it counts if flagged as inlier.

    Args:
        correspondences: Correspondences in estimator input order
        inliers: Inlier flag of each correspondence

    Returns:
        Number of accepted inliers
    """
    used_a: set[tuple[float, float]] = set()
    used_b: set[tuple[float, float]] = set()
    count = 0
    for correspondence, is_inlier in zip(correspondences, inliers):
        pt_a = correspondence.point_a.pt
        pt_b = correspondence.point_b.pt
        if pt_a in used_a:
            logger.debug("already added point [%f,%f,1]", *pt_a)
            continue
        if pt_b in used_b:
            logger.debug("already added point [%f,%f,1]", *pt_b)
            continue
        used_a.add(pt_a)
        used_b.add(pt_b)
        if is_inlier:
            count += 1
    return count


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


def check_epipolar_geometry(
    signature_a: Signature,
    signature_b: Signature,
    config: VerifierConfig,
    estimator: FundamentalMatrixEstimator,
) -> EpipolarCheck:
    """Check that two signatures are related by a two-view geometry.

    Args:
        signature_a: First signature (the hypothesis)
        signature_b: Second signature (the reference)
        config: Verifier parameters
        estimator: Robust fundamental matrix estimator

    Returns:
        EpipolarCheck describing the decision
    """
    if signature_a.words is None or signature_b.words is None:
        return EpipolarCheck(accepted=False, reason="no keypoints")

    words_a = signature_a.words
    words_b = signature_b.words
    logger.debug("id(%d,%d)", signature_a.id, signature_b.id)

    pairs = find_pairs(words_a, words_b, config.pairing_policy)
    num_pairs = len(pairs)
    real_pairs = pairs.real_pair_count

    if logger.isEnabledFor(logging.DEBUG):
        shared = count_shared_words(words_a, words_b)
        mean_words = (len(words_a) + len(words_b)) / 2
        logger.debug(
            "id(%d,%d) realPairsCount=%d, pairsCount=%d, real/mean=%f, pairs/mean=%f, "
            "shared/total=%f, real/shared=%f, pairs/shared=%f",
            signature_a.id,
            signature_b.id,
            real_pairs,
            num_pairs,
            _ratio(real_pairs, mean_words),
            _ratio(num_pairs, mean_words),
            _ratio(shared, len(words_a) + len(words_b)),
            _ratio(real_pairs, shared),
            _ratio(num_pairs, shared),
        )

    if num_pairs < config.min_match_count:
        logger.debug(
            "Not enough matches (%d), min is %d", num_pairs, config.min_match_count
        )
        return EpipolarCheck(
            accepted=False,
            num_pairs=num_pairs,
            real_pair_count=real_pairs,
            reason="not enough matches",
        )

    points_a, points_b = pairs.to_arrays()

    start = time.perf_counter()
    estimate = estimator.estimate(
        points_a,
        points_b,
        config.ransac_distance_threshold,
        config.ransac_confidence,
    )
    logger.debug("Find fundamental matrix time = %fs", time.perf_counter() - start)

    model_found = is_valid_model(estimate.matrix)
    logger.debug("id(%d,%d) fundamental matrix found=%s", signature_a.id, signature_b.id, model_found)
    if not model_found:
        return EpipolarCheck(
            accepted=False,
            num_pairs=num_pairs,
            real_pair_count=real_pairs,
            reason="no fundamental matrix",
        )

    num_inliers = count_unique_inliers(pairs.correspondences, estimate.inliers)
    logger.debug(
        "pairs/realPairs=%d/%d, inliers=%d, inliers/pairs=%f, inliers/realPairs=%f\nF = %s",
        num_pairs,
        real_pairs,
        num_inliers,
        _ratio(num_inliers, num_pairs),
        _ratio(num_inliers, real_pairs),
        estimate.matrix,
    )

    accepted = num_inliers >= config.min_match_count
    if not accepted:
        logger.debug(
            "Epipolar constraint failed: not enough inliers (%d), min is %d",
            num_inliers,
            config.min_match_count,
        )

    return EpipolarCheck(
        accepted=accepted,
        num_pairs=num_pairs,
        real_pair_count=real_pairs,
        num_inliers=num_inliers,
        model_found=True,
        fundamental_matrix=estimate.matrix,
        reason="" if accepted else "not enough inliers",
    )
