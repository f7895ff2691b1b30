"""Visual word correspondences between two signatures.

Two keypoints correspond when they were quantized to the same visual
word. Because a word can occur several times in one image, pairing is
ambiguous and three policies are provided:

- DIRECT: walk both keypoint lists of a word in lock-step
- ONE_TO_ONE: only pair words seen exactly once on both sides
- ALL: pair every keypoint of a word with every keypoint of the same word

Besides the correspondences, each policy returns a "real pair count":
the number of pairs one could theoretically match for the shared
words. It is used for the minimum match count and for diagnostics.

Example, with word IDs a=[1 2 3 4 6 6] and b=[1 1 2 4 5 6 6]:

    DIRECT      -> (1,1a) (2,2) (4,4) (6a,6a) (6b,6b)   real pairs = 5
    ONE_TO_ONE  -> (2,2) (4,4)                          real pairs = 5
    ALL         -> (1,1a) (1,1b) (2,2) (4,4)
                   (6a,6a) (6a,6b) (6b,6a) (6b,6b)      real pairs = 5
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from .signature import Keypoint, WordIndex


class PairingPolicy(Enum):
    """How keypoints sharing a visual word are paired."""

    DIRECT = "direct"
    ONE_TO_ONE = "one"
    ALL = "all"


@dataclass(frozen=True)
class Correspondence:
    """A pair of keypoints quantized to the same visual word."""

    word_id: int
    point_a: Keypoint
    point_b: Keypoint


@dataclass
class PairingResult:
    """Correspondences found between two word indices.

    Attributes:
        correspondences: Pairs in ascending word ID order
        real_pair_count: Number of theoretically matchable pairs
    """

    correspondences: list[Correspondence] = field(default_factory=list)
    real_pair_count: int = 0

    def __len__(self) -> int:
        return len(self.correspondences)

    @property
    def word_ids(self) -> list[int]:
        """Word ID of each correspondence."""
        return [c.word_id for c in self.correspondences]

    def to_arrays(self) -> tuple[np.ndarray, np.ndarray]:
        """Return the (N, 2) float32 point arrays of both sides, in order."""
        if not self.correspondences:
            empty = np.empty((0, 2), dtype=np.float32)
            return empty, empty.copy()
        points_a = np.array([c.point_a.pt for c in self.correspondences], dtype=np.float32)
        points_b = np.array([c.point_b.pt for c in self.correspondences], dtype=np.float32)
        return points_a, points_b


def find_pairs_direct(words_a: WordIndex, words_b: WordIndex) -> PairingResult:
    """Pair the keypoints of each word in lock-step.

    Stops at the shorter of the two keypoint lists; the remaining
    keypoints of the longer list are dropped.
    """
    result = PairingResult()
    for word_id in sorted(words_a):
        for kp_a, kp_b in zip(words_a[word_id], words_b.get(word_id, ())):
            result.correspondences.append(Correspondence(word_id, kp_a, kp_b))
            result.real_pair_count += 1
    return result


def find_pairs_one(words_a: WordIndex, words_b: WordIndex) -> PairingResult:
    """Pair only the words observed exactly once in both signatures.

    Ambiguous words are not paired but still add the size of the
    smaller side to the real pair count.
    """
    result = PairingResult()
    for word_id in sorted(words_a):
        pts_a = words_a[word_id]
        pts_b = words_b.get(word_id, [])
        if len(pts_a) == 1 and len(pts_b) == 1:
            result.correspondences.append(Correspondence(word_id, pts_a[0], pts_b[0]))
            result.real_pair_count += 1
        elif pts_a and pts_b:
            result.real_pair_count += min(len(pts_a), len(pts_b))
    return result


def find_pairs_all(words_a: WordIndex, words_b: WordIndex) -> PairingResult:
    """Pair every keypoint of a word with every keypoint of the same word."""
    result = PairingResult()
    for word_id in sorted(words_a):
        pts_a = words_a[word_id]
        pts_b = words_b.get(word_id, [])
        result.real_pair_count += min(len(pts_a), len(pts_b))
        for kp_a in pts_a:
            for kp_b in pts_b:
                result.correspondences.append(Correspondence(word_id, kp_a, kp_b))
    return result


_FINDERS = {
    PairingPolicy.DIRECT: find_pairs_direct,
    PairingPolicy.ONE_TO_ONE: find_pairs_one,
    PairingPolicy.ALL: find_pairs_all,
}


def find_pairs(
    words_a: WordIndex,
    words_b: WordIndex,
    policy: PairingPolicy = PairingPolicy.ONE_TO_ONE,
) -> PairingResult:
    """Find correspondences between two word indices with the given policy.

    Args:
        words_a: Word index of the first signature
        words_b: Word index of the second signature
        policy: Pairing policy

    Returns:
        PairingResult with correspondences ordered by word ID
    """
    return _FINDERS[policy](words_a, words_b)


def find_shared_ids(words_a: WordIndex, words_b: WordIndex) -> list[int]:
    """Return the word IDs present in both indices, ascending."""
    return [word_id for word_id in sorted(words_a) if word_id in words_b]


def count_shared_words(words_a: WordIndex, words_b: WordIndex) -> int:
    """Count the keypoints of both sides over the words of the first index."""
    total = 0
    for word_id, pts_a in words_a.items():
        total += len(pts_a) + len(words_b.get(word_id, ()))
    return total
