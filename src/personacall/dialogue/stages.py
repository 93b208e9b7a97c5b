"""
Stage tracking — turn index to conversation phase.

One canonical table. An earlier variant of the product used 7/10/11 as
boundaries; which table ships is still an open product decision.
"""

from __future__ import annotations

from personacall.dialogue.models import Stage

# (last turn index of the stage, stage); the final stage has no upper bound
STAGE_THRESHOLDS: tuple[tuple[int, Stage], ...] = (
    (6, Stage.EMPATHY),
    (8, Stage.REALIZATION),
)
FINAL_STAGE = Stage.ACTION


def stage_for_turn(turn_index: int) -> Stage:
    """Map a turn index to its stage. Pure and total over all ints."""
    for upper, stage in STAGE_THRESHOLDS:
        if turn_index <= upper:
            return stage
    return FINAL_STAGE


def first_turn_of(stage: Stage) -> int:
    """Smallest turn index that lands in ``stage`` (0 for the first stage)."""
    lower = 0
    for upper, candidate in STAGE_THRESHOLDS:
        if candidate == stage:
            return lower
        lower = upper + 1
    return lower
