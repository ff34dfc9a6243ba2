# src/statustracker/estimate.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Union

from .parse import IssueRecord

DONE_STATUS_CATEGORY = "Done"


@dataclass(frozen=True)
class Complete:
    pass


@dataclass(frozen=True)
class IncompleteAndPointed:
    points: float


@dataclass(frozen=True)
class IncompleteAndUnpointed:
    pass


ClassifiedIssue = Union[Complete, IncompleteAndPointed, IncompleteAndUnpointed]


def story_points(issue: IssueRecord, field_ids: Sequence[str]) -> Optional[float]:
    """First numeric value among ``field_ids``, in order."""
    for field_id in field_ids:
        points = issue.numeric_field(field_id)
        if points is not None:
            return points
    return None


def classify(issue: IssueRecord, field_ids: Sequence[str]) -> ClassifiedIssue:
    # a finished card is finished whatever its estimate says
    if issue.status_category() == DONE_STATUS_CATEGORY:
        return Complete()

    points = story_points(issue, field_ids)
    # 0 points means nobody estimated it yet
    if points is None or points == 0:
        return IncompleteAndUnpointed()
    return IncompleteAndPointed(points)


@dataclass(frozen=True)
class TallyResult:
    num_complete: int
    num_incomplete_and_pointed: int
    num_incomplete_and_unpointed: int
    unfinished_estimated_story_points: float
    unfinished_unestimated_story_points: float
    unfinished_story_points: float
    num_sprints_remaining: float
    default_story_points: float
    velocity_in_story_points: float


def _divide(points: float, velocity: float) -> float:
    # IEEE semantics instead of ZeroDivisionError: x/0 is +-inf, 0/0 is nan
    try:
        return points / velocity
    except ZeroDivisionError:
        if points == 0:
            return math.nan
        return math.copysign(math.inf, points) * math.copysign(1.0, velocity)


def tally(
    issues: Iterable[ClassifiedIssue],
    default_story_points: float,
    velocity: float,
) -> TallyResult:
    """
    Count classified issues and turn the remaining points into sprints.

    Unestimated cards are assumed to be worth ``default_story_points`` each.
    ``velocity`` must be > 0; it is not checked here. Zero gives an infinite
    (or nan) result and a negative velocity a negative one.
    """
    num_complete = 0
    num_pointed = 0
    num_unpointed = 0
    pointed: list[float] = []

    for issue in issues:
        if isinstance(issue, Complete):
            num_complete += 1
        elif isinstance(issue, IncompleteAndPointed):
            num_pointed += 1
            pointed.append(issue.points)
        elif isinstance(issue, IncompleteAndUnpointed):
            num_unpointed += 1
        else:
            raise TypeError(f"Not a classified issue: {issue!r}")

    # fsum is exact, so the total does not depend on issue order
    estimated = math.fsum(pointed)
    unestimated = num_unpointed * default_story_points
    unfinished = estimated + unestimated

    return TallyResult(
        num_complete=num_complete,
        num_incomplete_and_pointed=num_pointed,
        num_incomplete_and_unpointed=num_unpointed,
        unfinished_estimated_story_points=estimated,
        unfinished_unestimated_story_points=unestimated,
        unfinished_story_points=unfinished,
        num_sprints_remaining=_divide(unfinished, velocity),
        default_story_points=default_story_points,
        velocity_in_story_points=velocity,
    )


def estimate_issues(
    issues: Iterable[IssueRecord],
    field_ids: Sequence[str],
    default_story_points: float,
    velocity: float,
) -> TallyResult:
    return tally((classify(i, field_ids) for i in issues), default_story_points, velocity)
