"""Loop closure hypothesis verification strategies.

Place recognition proposes loop closure hypotheses: a reference
signature (the current keyframe) that looks like a hypothesis
signature seen earlier. Before the loop is added to the map, a
verifier accepts or rejects the pair:

- HypothesisVerifier: accepts any pair of usable signatures
- SimilarityVerifier: accepts when the precomputed similarity is high enough
- EpipolarGeometryVerifier: accepts when enough visual word
  correspondences agree with a common fundamental matrix

verify() never raises on well-formed input: every failure is a
rejection.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .config import VerifierConfig, VerifierStrategy
from .epipolar import EpipolarCheck, check_epipolar_geometry
from .estimator import FundamentalMatrixEstimator, OpenCVFundamentalEstimator
from .signature import Signature

logger = logging.getLogger(__name__)


class HypothesisVerifier:
    """Accepts any hypothesis between two usable signatures."""

    def __init__(self, config: VerifierConfig | None = None) -> None:
        """Initialize verifier.

        Args:
            config: Verifier parameters (defaults to VerifierConfig())
        """
        self._config = config or VerifierConfig()

    @classmethod
    def from_parameters(cls, parameters: Mapping[str, Any], **kwargs) -> HypothesisVerifier:
        """Create a verifier from a string-keyed parameter table.

        Args:
            parameters: Parameter table, unknown keys are ignored
            **kwargs: Additional arguments passed to __init__

        Returns:
            Configured verifier
        """
        return cls(config=VerifierConfig.from_parameters(parameters), **kwargs)

    @property
    def config(self) -> VerifierConfig:
        """Verifier parameters."""
        return self._config

    def verify(self, reference: Signature | None, hypothesis: Signature | None) -> bool:
        """Decide whether the hypothesis is a valid loop closure for the reference.

        Args:
            reference: Reference signature
            hypothesis: Hypothesis signature

        Returns:
            True if the hypothesis is accepted
        """
        return (
            reference is not None
            and hypothesis is not None
            and not reference.bad
            and not hypothesis.bad
        )


class SimilarityVerifier(HypothesisVerifier):
    """Accepts hypotheses whose similarity reaches a threshold."""

    def verify(self, reference: Signature | None, hypothesis: Signature | None) -> bool:
        if reference is None or hypothesis is None:
            return False
        similarity = reference.compare_to(hypothesis)
        logger.debug(
            "id(%d,%d) similarity=%f, threshold=%f",
            reference.id,
            hypothesis.id,
            similarity,
            self._config.similarity_threshold,
        )
        return similarity >= self._config.similarity_threshold


class EpipolarGeometryVerifier(HypothesisVerifier):
    """Accepts hypotheses satisfying the epipolar constraint.

    Visual word correspondences between the two signatures are fed to a
    robust fundamental matrix estimator; the hypothesis is accepted when
    at least `min_match_count` distinct correspondences are inliers.
    """

    def __init__(
        self,
        config: VerifierConfig | None = None,
        estimator: FundamentalMatrixEstimator | None = None,
    ) -> None:
        """Initialize verifier.

        Args:
            config: Verifier parameters (defaults to VerifierConfig())
            estimator: Fundamental matrix estimator (defaults to OpenCV RANSAC)
        """
        super().__init__(config)
        self._estimator = estimator or OpenCVFundamentalEstimator()

    def verify(self, reference: Signature | None, hypothesis: Signature | None) -> bool:
        return self.check(reference, hypothesis).accepted

    def check(self, reference: Signature | None, hypothesis: Signature | None) -> EpipolarCheck:
        """Run the epipolar check and return its details.

        Args:
            reference: Reference signature
            hypothesis: Hypothesis signature

        Returns:
            EpipolarCheck, rejected if a signature is missing or has no keypoints
        """
        if reference is None or hypothesis is None:
            return EpipolarCheck(accepted=False, reason="missing signature")
        if not reference.has_keypoints or not hypothesis.has_keypoints:
            return EpipolarCheck(accepted=False, reason="no keypoints")
        return check_epipolar_geometry(hypothesis, reference, self._config, self._estimator)


_VERIFIERS: dict[VerifierStrategy, type[HypothesisVerifier]] = {
    VerifierStrategy.NONE: HypothesisVerifier,
    VerifierStrategy.SIMILARITY: SimilarityVerifier,
    VerifierStrategy.EPIPOLAR: EpipolarGeometryVerifier,
}


def create_verifier(
    parameters: Mapping[str, Any] | VerifierConfig | None = None,
    estimator: FundamentalMatrixEstimator | None = None,
) -> HypothesisVerifier:
    """Create the verifier selected by the configured strategy.

    Args:
        parameters: Parameter table or configuration (defaults to VerifierConfig())
        estimator: Estimator for the epipolar strategy (defaults to OpenCV RANSAC)

    Returns:
        Verifier for the configured strategy

    Raises:
        ParameterError: If the parameters are invalid
    """
    if isinstance(parameters, VerifierConfig):
        config = parameters
    else:
        config = VerifierConfig.from_parameters(parameters or {})

    logger.debug("Creating %s hypothesis verifier", config.strategy.name.lower())
    if config.strategy is VerifierStrategy.EPIPOLAR:
        return EpipolarGeometryVerifier(config=config, estimator=estimator)
    return _VERIFIERS[config.strategy](config=config)
