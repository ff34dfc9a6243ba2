# tests/test_estimate.py
import itertools
import math

import pytest

from statustracker.estimate import (
    Complete,
    IncompleteAndPointed,
    IncompleteAndUnpointed,
    classify,
    estimate_issues,
    story_points,
    tally,
)
from statustracker.parse import IssueRecord

FIELD_IDS = ["customfield_10002", "customfield_10400", "status"]


def make_issue(category=None, **fields) -> IssueRecord:
    if category is not None:
        fields["status"] = {"name": category, "statusCategory": {"name": category}}
    return IssueRecord(id="1", key="ABC-1", fields=fields)


def test_done_wins_over_points():
    assert classify(make_issue("Done", customfield_10002=5), FIELD_IDS) == Complete()


def test_zero_points_is_unpointed():
    assert classify(make_issue("To Do", customfield_10002=0), FIELD_IDS) == IncompleteAndUnpointed()


def test_fractional_points():
    assert classify(make_issue("In Progress", customfield_10002=3.5), FIELD_IDS) == IncompleteAndPointed(3.5)


def test_no_points_is_unpointed():
    assert classify(make_issue("To Do"), FIELD_IDS) == IncompleteAndUnpointed()
    assert classify(make_issue(), FIELD_IDS) == IncompleteAndUnpointed()


def test_first_numeric_field_wins():
    issue = make_issue("To Do", customfield_10002=None, customfield_10400=8)
    assert classify(issue, FIELD_IDS) == IncompleteAndPointed(8.0)
    issue = make_issue("To Do", customfield_10002=2, customfield_10400=8)
    assert story_points(issue, FIELD_IDS) == 2.0


def test_done_is_case_sensitive():
    assert classify(make_issue("done", customfield_10002=1), FIELD_IDS) == IncompleteAndPointed(1.0)


def test_non_numeric_points_are_ignored():
    issue = make_issue("To Do", customfield_10002="5")
    assert story_points(issue, FIELD_IDS) is None
    assert classify(issue, FIELD_IDS) == IncompleteAndUnpointed()


def test_no_field_ids_everything_unpointed():
    assert classify(make_issue("To Do", customfield_10002=5), ["status"]) == IncompleteAndUnpointed()


MIXED = [
    Complete(),
    IncompleteAndPointed(5),
    IncompleteAndPointed(3),
    IncompleteAndUnpointed(),
    IncompleteAndUnpointed(),
]


def test_tally_end_to_end():
    r = tally(MIXED, default_story_points=2, velocity=4)
    assert r.num_complete == 1
    assert r.num_incomplete_and_pointed == 2
    assert r.num_incomplete_and_unpointed == 2
    assert r.unfinished_estimated_story_points == 8
    assert r.unfinished_unestimated_story_points == 4
    assert r.unfinished_story_points == 12
    assert r.num_sprints_remaining == 3.0
    assert r.default_story_points == 2
    assert r.velocity_in_story_points == 4


def test_tally_is_order_independent():
    issues = MIXED + [IncompleteAndPointed(0.1), IncompleteAndPointed(0.2)]
    first = tally(issues, 3.0, 10.0)
    for perm in itertools.permutations(issues):
        assert tally(perm, 3.0, 10.0) == first


def test_tally_empty():
    r = tally([], 3.0, 10.0)
    assert r.unfinished_story_points == 0
    assert r.num_sprints_remaining == 0


# velocity > 0 is the caller's job; tally stays permissive
def test_tally_zero_velocity_is_infinite():
    assert tally(MIXED, 2, 0).num_sprints_remaining == math.inf


def test_tally_zero_velocity_nothing_left_is_nan():
    assert math.isnan(tally([Complete()], 2, 0).num_sprints_remaining)


def test_tally_negative_velocity_is_negative():
    assert tally(MIXED, 2, -4).num_sprints_remaining == -3.0


def test_tally_rejects_unclassified():
    with pytest.raises(TypeError):
        tally([object()], 2, 4)


def test_estimate_issues_classifies_then_tallies():
    issues = [
        make_issue("Done", customfield_10002=13),
        make_issue("In Progress", customfield_10002=5),
        make_issue("To Do", customfield_10400=3),
        make_issue("To Do", customfield_10002=0),
        make_issue("To Do"),
    ]
    r = estimate_issues(issues, FIELD_IDS, 2.0, 4.0)
    assert r.num_complete == 1
    assert r.unfinished_story_points == 12
    assert r.num_sprints_remaining == 3.0


def test_classify_huge_or_nan_points_is_unpointed():
    assert classify(make_issue("To Do", customfield_10002=10 ** 400), FIELD_IDS) == IncompleteAndUnpointed()
    assert classify(make_issue("To Do", customfield_10002=float("nan")), FIELD_IDS) == IncompleteAndUnpointed()
