#!/usr/bin/env python3
"""Demo of loop closure hypothesis verification on a synthetic scene.

A random 3D point cloud is observed by two cameras related by a small
rotation and translation. Each 3D point gets its own visual word, plus
a few ambiguous words observed several times. The demo then runs every
verification strategy on:

- the true loop closure (both views of the same scene)
- a false loop closure (the second view's keypoints shuffled between words)

Usage:
    uv run python examples/epipolar_demo.py
    uv run python examples/epipolar_demo.py --n-points 200 --min-matches 20 --debug
    uv run python examples/epipolar_demo.py --config verifier.yaml
"""

import argparse
import logging
from pathlib import Path

import numpy as np

from loopverify import (
    EpipolarGeometryVerifier,
    Signature,
    SimilarityVerifier,
    VerifierConfig,
    create_verifier,
)


def make_scene(
    n_points: int, n_ambiguous: int, seed: int
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Project a random point cloud in two views.

    Args:
        n_points: Number of 3D points
        n_ambiguous: Number of points sharing a visual word with another point
        seed: Random seed

    Returns:
        Tuple of (word_ids, points_a, points_b)
    """
    rng = np.random.default_rng(seed)
    points_3d = np.column_stack(
        [
            rng.uniform(-3.0, 3.0, n_points),
            rng.uniform(-2.0, 2.0, n_points),
            rng.uniform(4.0, 12.0, n_points),
        ]
    )

    K = np.array([[458.0, 0.0, 367.0], [0.0, 457.0, 248.0], [0.0, 0.0, 1.0]])
    angle = np.deg2rad(8.0)
    R = np.array(
        [
            [np.cos(angle), 0.0, np.sin(angle)],
            [0.0, 1.0, 0.0],
            [-np.sin(angle), 0.0, np.cos(angle)],
        ]
    )
    t = np.array([0.8, 0.05, 0.1])

    def project(points: np.ndarray) -> np.ndarray:
        pixels = (K @ points.T).T
        pixels = pixels[:, :2] / pixels[:, 2:3]
        # Detector noise
        return pixels + rng.normal(0.0, 0.5, pixels.shape)

    points_a = project(points_3d)
    points_b = project((R @ points_3d.T).T + t)

    word_ids = np.arange(n_points)
    # Reuse the words of the first points for the last ones
    word_ids[n_points - n_ambiguous :] = word_ids[:n_ambiguous]
    return word_ids, points_a, points_b


def main() -> None:
    """Run the verification demo."""
    parser = argparse.ArgumentParser(description="Loop closure hypothesis verification demo")
    parser.add_argument("--n-points", type=int, default=120, help="3D points in the scene")
    parser.add_argument("--n-ambiguous", type=int, default=10, help="Points with a repeated word")
    parser.add_argument("--min-matches", type=int, default=None, help="Override VhEp/MatchCountMin")
    parser.add_argument("--config", type=Path, default=None, help="YAML verifier parameters")
    parser.add_argument("--seed", type=int, default=0, help="Random seed")
    parser.add_argument("--debug", action="store_true", help="Show verifier diagnostics")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = VerifierConfig.from_yaml(args.config) if args.config else VerifierConfig(min_match_count=20)
    if args.min_matches is not None:
        config = VerifierConfig.from_parameters(
            {"VhEp/MatchCountMin": args.min_matches}, base=config
        )

    word_ids, points_a, points_b = make_scene(args.n_points, args.n_ambiguous, args.seed)
    shuffled = np.random.default_rng(args.seed + 1).permutation(len(points_b))

    reference = Signature.from_arrays(100, word_ids, points_b, similarities={1: 0.8, 2: 0.1})
    true_loop = Signature.from_arrays(1, word_ids, points_a)
    false_loop = Signature.from_arrays(2, word_ids, points_a[shuffled])

    verifiers = {
        "none": create_verifier({"Vh/Strategy": "none"}),
        "similarity": SimilarityVerifier(config),
        "epipolar": EpipolarGeometryVerifier(config),
    }

    print("=" * 60)
    print("LOOP CLOSURE HYPOTHESIS VERIFICATION")
    print("=" * 60)
    print(f"  Points:         {args.n_points} ({args.n_ambiguous} ambiguous words)")
    print(f"  Min matches:    {config.min_match_count}")
    print(f"  RANSAC:         {config.ransac_distance_threshold}px, "
          f"confidence={config.ransac_confidence}")
    print()

    for name, hypothesis in (("true loop", true_loop), ("false loop", false_loop)):
        print(f"{name} (signature {hypothesis.id}):")
        for strategy, verifier in verifiers.items():
            accepted = verifier.verify(reference, hypothesis)
            print(f"  {strategy:<12} {'accepted' if accepted else 'rejected'}")

        check = verifiers["epipolar"].check(reference, hypothesis)
        print(
            f"  pairs={check.num_pairs}, real pairs={check.real_pair_count}, "
            f"inliers={check.num_inliers}"
            + (f", reason: {check.reason}" if check.reason else "")
        )
        print()


if __name__ == "__main__":
    main()
