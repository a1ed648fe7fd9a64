"""
Shot-group analysis for RingStat.

Computes, for one session's shot list:
  1. Teiler statistics over consecutive shot pairs
  2. Center of impact and its offset from the point of aim
  3. Spread (population standard deviation per axis)
  4. Quadrant tendency

Teiler is only measured between *adjacent* shots in shot_number order,
matching the scoring hardware's per-shot Teiler01 field. It is not an
all-pairs minimum.
"""

import logging
import math
from typing import Optional, Sequence

import numpy as np

from ringstat.models.shot import (
    BestTeiler,
    Center,
    Direction,
    Shot,
    ShotGroupAnalysis,
    Spread,
    TeilerStats,
    Tendency,
)

logger = logging.getLogger(__name__)

# Tie-break order for the dominant quadrant
QUADRANT_ORDER = ("top_right", "top_left", "bottom_left", "bottom_right")


def _pair_teilers(shots: Sequence[Shot]) -> tuple[list[float], bool]:
    """Teiler for each adjacent pair, preferring the hardware value.

    Returns:
        (teiler list of length n-1, whether any value came from the hardware)
    """
    if len(shots) < 2:
        return [], False

    xs = np.array([s.x for s in shots], dtype=float)
    ys = np.array([s.y for s in shots], dtype=float)
    computed = np.hypot(np.diff(xs), np.diff(ys))

    teilers = []
    from_external = False
    for shot, distance in zip(shots[1:], computed):
        if shot.teiler01 is not None:
            teilers.append(float(shot.teiler01))
            from_external = True
        else:
            teilers.append(float(distance))
    return teilers, from_external


def direction_labels(x: float, y: float) -> tuple[str, str]:
    """Left/right and above/below labels (screen coordinates, y grows down)."""
    x_label = "right" if x > 0 else "left" if x < 0 else "centered"
    y_label = "below" if y > 0 else "above" if y < 0 else "centered"
    return x_label, y_label


def quadrant_of(shot: Shot) -> str:
    """Quadrant label; shots on an axis fall on the x >= 0 / y >= 0 side."""
    if shot.x >= 0 and shot.y < 0:
        return "top_right"
    if shot.x < 0 and shot.y < 0:
        return "top_left"
    if shot.x < 0:
        return "bottom_left"
    return "bottom_right"


def analyze_shots(shots: Sequence[Shot]) -> Optional[ShotGroupAnalysis]:
    """Compute the full group analysis for a session's shots.

    Args:
        shots: Shots ordered by shot_number.

    Returns:
        ShotGroupAnalysis, or None for an empty shot list.
    """
    if not shots:
        return None

    # 1. Teiler between consecutive shots
    teilers, from_external = _pair_teilers(shots)
    if teilers:
        teiler = TeilerStats(
            best=min(teilers),
            worst=max(teilers),
            average=sum(teilers) / len(teilers),
            from_external_source=from_external,
        )
    else:
        teiler = TeilerStats(0.0, 0.0, 0.0, from_external_source=False)

    # 2. Center of impact
    xs = np.array([s.x for s in shots], dtype=float)
    ys = np.array([s.y for s in shots], dtype=float)
    center_x = float(np.mean(xs))
    center_y = float(np.mean(ys))

    # 3. Spread: population std (divide by n)
    x_std = float(np.std(xs, ddof=0))
    y_std = float(np.std(ys, ddof=0))
    total = math.sqrt(x_std ** 2 + y_std ** 2)

    # 4. Offset from point of aim
    offset = math.hypot(center_x, center_y)

    # 5. Direction
    angle = (math.degrees(math.atan2(center_y, center_x)) + 360) % 360
    x_label, y_label = direction_labels(center_x, center_y)

    # 6. Quadrant tendency
    distribution = {q: 0 for q in QUADRANT_ORDER}
    for shot in shots:
        distribution[quadrant_of(shot)] += 1
    dominant = max(QUADRANT_ORDER, key=lambda q: distribution[q])

    return ShotGroupAnalysis(
        teiler=teiler,
        spread=Spread(x_std=x_std, y_std=y_std, total=total, radius=total * 2),
        center=Center(
            x=center_x,
            y=center_y,
            offset=offset,
            direction=Direction(x=x_label, y=y_label, angle=angle),
        ),
        tendency=Tendency(quadrant_distribution=distribution, dominant=dominant),
        teiler_values=teilers,
    )


def find_best_teiler(shots: Sequence[Shot]) -> Optional[BestTeiler]:
    """Closest adjacent pair of shots, by the same teiler rules as analyze_shots.

    Returns:
        BestTeiler with the shot numbers of the pair, or None for fewer
        than two shots.
    """
    teilers, _ = _pair_teilers(shots)
    if not teilers:
        return None

    # First minimum wins
    index = teilers.index(min(teilers))
    return BestTeiler(
        distance=teilers[index],
        from_shot=shots[index].shot_number,
        to_shot=shots[index + 1].shot_number,
    )


def score_distribution(shots: Sequence[Shot]) -> list[dict]:
    """Number of shots per integer ring, from 10 down to 0, skipping empty rings."""
    counts: dict[int, int] = {}
    for shot in shots:
        score = shot.ring01 if shot.ring01 else shot.ring
        ring = int(math.floor(score))
        counts[ring] = counts.get(ring, 0) + 1

    logger.debug(f"Score distribution over {len(shots)} shots: {counts}")
    return [
        {"name": str(ring), "value": counts[ring]}
        for ring in range(10, -1, -1)
        if counts.get(ring)
    ]
