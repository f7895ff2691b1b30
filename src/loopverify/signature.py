"""Observations (signatures) handed to the hypothesis verifiers.

A signature is what the loop closure pipeline knows about a keyframe
at verification time: its ID, whether it is usable at all, the
precomputed similarity scores against other signatures, and, when
features were extracted, a word index mapping each visual word to the
keypoints where it was observed.

The same visual word can be observed several times in one image, so
the word index maps a word ID to a list of keypoints.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

WordIndex = dict[int, list["Keypoint"]]


@dataclass(frozen=True)
class Keypoint:
    """2D keypoint location of one visual word occurrence.

    Attributes:
        x: Column coordinate (pixels)
        y: Row coordinate (pixels)
        angle: Orientation in degrees, -1 if not computed
        size: Diameter of the keypoint neighborhood
    """

    x: float
    y: float
    angle: float = -1.0
    size: float = 0.0

    @property
    def pt(self) -> tuple[float, float]:
        """Return the (x, y) position."""
        return (self.x, self.y)


def build_word_index(word_ids: np.ndarray, points: np.ndarray) -> WordIndex:
    """Group keypoints by visual word.

    Args:
        word_ids: Visual word of each keypoint, shape (N,)
        points: 2D keypoint locations, shape (N, 2)

    Returns:
        Mapping from word ID to its keypoints, in input order

    Raises:
        ValueError: If the arrays have mismatched lengths
    """
    word_ids = np.asarray(word_ids).reshape(-1)
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(word_ids) != len(points):
        raise ValueError(
            f"word_ids and points length mismatch: {len(word_ids)} != {len(points)}"
        )

    words: WordIndex = {}
    for word_id, (x, y) in zip(word_ids, points):
        words.setdefault(int(word_id), []).append(Keypoint(float(x), float(y)))
    return words


@dataclass
class Signature:
    """A keyframe observation as seen by the verifiers.

    Attributes:
        id: Signature (keyframe) ID
        words: Word index, or None when the signature carries no keypoints
        bad: True for degenerate signatures (e.g. too few features)
        similarities: Precomputed similarity to other signatures, by ID
    """

    id: int
    words: WordIndex | None = None
    bad: bool = False
    similarities: dict[int, float] = field(default_factory=dict)

    @classmethod
    def from_arrays(
        cls,
        signature_id: int,
        word_ids: np.ndarray,
        points: np.ndarray,
        **kwargs,
    ) -> Signature:
        """Create a keypoint-bearing signature from flat arrays.

        Args:
            signature_id: Signature ID
            word_ids: Visual word of each keypoint, shape (N,)
            points: 2D keypoint locations, shape (N, 2)
            **kwargs: Additional arguments passed to __init__

        Returns:
            Signature with its word index populated
        """
        return cls(id=signature_id, words=build_word_index(word_ids, points), **kwargs)

    @property
    def has_keypoints(self) -> bool:
        """Whether the signature exposes a word index."""
        return self.words is not None

    @property
    def num_keypoints(self) -> int:
        """Total number of keypoints over all words."""
        if self.words is None:
            return 0
        return sum(len(kps) for kps in self.words.values())

    def compare_to(self, other: Signature) -> float:
        """Return the precomputed similarity to another signature (0 if unknown)."""
        return self.similarities.get(other.id, 0.0)
