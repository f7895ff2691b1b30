"""Configuration for the hypothesis verifiers.

Parameters come from a string-keyed table, the same flat key space the
rest of the mapping pipeline uses, e.g.:

    VhEp/MatchCountMin: "8"
    VhEp/RansacParam1: "3.0"

Unknown keys are ignored and missing keys keep the default value. The
resulting VerifierConfig is frozen, so a verifier can be shared between
threads.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from .pairing import PairingPolicy

KEY_STRATEGY = "Vh/Strategy"
KEY_SIMILARITY = "Vh/Similarity"
KEY_MATCH_COUNT_MIN = "VhEp/MatchCountMin"
KEY_RANSAC_PARAM1 = "VhEp/RansacParam1"
KEY_RANSAC_PARAM2 = "VhEp/RansacParam2"
KEY_PAIRING_POLICY = "VhEp/PairingPolicy"


class ParameterError(ValueError):
    """Raised when a verifier parameter cannot be parsed or is out of range."""


class VerifierStrategy(Enum):
    """Hypothesis verification strategies."""

    NONE = 0
    SIMILARITY = 1
    EPIPOLAR = 2


@dataclass(frozen=True)
class VerifierConfig:
    """Parameters shared by the hypothesis verifiers."""

    strategy: VerifierStrategy = VerifierStrategy.EPIPOLAR
    similarity_threshold: float = 0.2  # Minimum similarity (similarity strategy)
    min_match_count: int = 8  # Minimum matches / inliers to accept
    ransac_distance_threshold: float = 3.0  # Max distance (px) to the epipolar line
    ransac_confidence: float = 0.99  # Desired RANSAC success probability
    pairing_policy: PairingPolicy = PairingPolicy.ONE_TO_ONE

    def __post_init__(self) -> None:
        if self.min_match_count < 0:
            raise ParameterError(
                f"{KEY_MATCH_COUNT_MIN} must be >= 0, got {self.min_match_count}"
            )
        if self.ransac_distance_threshold <= 0:
            raise ParameterError(
                f"{KEY_RANSAC_PARAM1} must be > 0, got {self.ransac_distance_threshold}"
            )
        if not 0.0 < self.ransac_confidence < 1.0:
            raise ParameterError(
                f"{KEY_RANSAC_PARAM2} must be in (0, 1), got {self.ransac_confidence}"
            )

    @classmethod
    def from_parameters(
        cls,
        parameters: Mapping[str, Any],
        base: VerifierConfig | None = None,
    ) -> VerifierConfig:
        """Build a configuration from a string-keyed parameter table.

        Args:
            parameters: Parameter table, values as strings or numbers
            base: Configuration providing the values of missing keys
                (defaults to VerifierConfig())

        Returns:
            New configuration

        Raises:
            ParameterError: If a value cannot be parsed or is out of range
        """
        base = base or cls()
        changes: dict[str, Any] = {}

        if KEY_STRATEGY in parameters:
            changes["strategy"] = _parse_strategy(parameters[KEY_STRATEGY])
        if KEY_SIMILARITY in parameters:
            changes["similarity_threshold"] = _parse_number(
                KEY_SIMILARITY, parameters[KEY_SIMILARITY], float
            )
        if KEY_MATCH_COUNT_MIN in parameters:
            changes["min_match_count"] = _parse_number(
                KEY_MATCH_COUNT_MIN, parameters[KEY_MATCH_COUNT_MIN], int
            )
        if KEY_RANSAC_PARAM1 in parameters:
            changes["ransac_distance_threshold"] = _parse_number(
                KEY_RANSAC_PARAM1, parameters[KEY_RANSAC_PARAM1], float
            )
        if KEY_RANSAC_PARAM2 in parameters:
            changes["ransac_confidence"] = _parse_number(
                KEY_RANSAC_PARAM2, parameters[KEY_RANSAC_PARAM2], float
            )
        if KEY_PAIRING_POLICY in parameters:
            changes["pairing_policy"] = _parse_pairing_policy(parameters[KEY_PAIRING_POLICY])

        return replace(base, **changes)

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> VerifierConfig:
        """Load a configuration from a YAML file.

        The file holds the parameter table either at the top level or
        under a ``verifier`` key.

        Args:
            yaml_path: Path to the YAML file

        Returns:
            Loaded configuration

        Raises:
            FileNotFoundError: If the file doesn't exist
            ParameterError: If the file content is invalid
        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Verifier config not found: {yaml_path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ParameterError(f"Invalid verifier config in {yaml_path}")
        section = data.get("verifier", data)
        if not isinstance(section, dict):
            raise ParameterError(f"Invalid verifier section in {yaml_path}")

        return cls.from_parameters(section)


def _parse_number(key: str, value: Any, kind: type) -> Any:
    try:
        if kind is int:
            return int(str(value).strip())
        return float(str(value).strip())
    except ValueError as e:
        raise ParameterError(f"Invalid value for {key}: {value!r}") from e


def _parse_strategy(value: Any) -> VerifierStrategy:
    if isinstance(value, VerifierStrategy):
        return value
    text = str(value).strip()
    try:
        if text.lstrip("-").isdigit():
            return VerifierStrategy(int(text))
        return VerifierStrategy[text.upper()]
    except (KeyError, ValueError) as e:
        raise ParameterError(f"Invalid value for {KEY_STRATEGY}: {value!r}") from e


def _parse_pairing_policy(value: Any) -> PairingPolicy:
    if isinstance(value, PairingPolicy):
        return value
    try:
        return PairingPolicy(str(value).strip().lower())
    except ValueError as e:
        raise ParameterError(f"Invalid value for {KEY_PAIRING_POLICY}: {value!r}") from e
