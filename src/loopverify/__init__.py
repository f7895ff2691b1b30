"""Loop closure hypothesis verification for visual SLAM."""

__version__ = "0.1.0"

# Re-export main classes for convenient imports
from .config import ParameterError, VerifierConfig, VerifierStrategy
from .epipolar import EpipolarCheck, check_epipolar_geometry, count_unique_inliers
from .estimator import (
    FundamentalEstimate,
    FundamentalMatrixEstimator,
    OpenCVFundamentalEstimator,
    is_valid_model,
)
from .pairing import (
    Correspondence,
    PairingPolicy,
    PairingResult,
    count_shared_words,
    find_pairs,
    find_pairs_all,
    find_pairs_direct,
    find_pairs_one,
    find_shared_ids,
)
from .signature import Keypoint, Signature, build_word_index
from .verifier import (
    EpipolarGeometryVerifier,
    HypothesisVerifier,
    SimilarityVerifier,
    create_verifier,
)

__all__ = [
    "__version__",
    # Signatures
    "Keypoint",
    "Signature",
    "build_word_index",
    # Pairing
    "Correspondence",
    "PairingPolicy",
    "PairingResult",
    "find_pairs",
    "find_pairs_direct",
    "find_pairs_one",
    "find_pairs_all",
    "find_shared_ids",
    "count_shared_words",
    # Estimation
    "FundamentalEstimate",
    "FundamentalMatrixEstimator",
    "OpenCVFundamentalEstimator",
    "is_valid_model",
    # Epipolar check
    "EpipolarCheck",
    "check_epipolar_geometry",
    "count_unique_inliers",
    # Verifiers
    "HypothesisVerifier",
    "SimilarityVerifier",
    "EpipolarGeometryVerifier",
    "create_verifier",
    # Configuration
    "VerifierConfig",
    "VerifierStrategy",
    "ParameterError",
]
