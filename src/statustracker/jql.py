# src/statustracker/jql.py
"""Small JQL subset: conjunctions of ``field IN (...)`` membership filters.

Clauses and values are plain frozen dataclasses. ``render`` walks the tree and
turns it into the text Jira expects; a new clause or value kind only needs a
new dataclass and a branch in the matching ``_render_*`` function.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple, Union

from .errors import TooBroadError

# Reserved by Jira's text search; these need a double backslash inside quotes.
RESERVED_CHARS = frozenset('+-&|!(){}[]^~*?\\:')


def escape_text(s: str) -> str:
    out = []
    for c in s:
        if c == '"':
            out.append("\\")
        elif c in RESERVED_CHARS:
            out.append("\\\\")
        out.append(c)
    return "".join(out)


@dataclass(frozen=True)
class TextValue:
    text: str


# Numbers, booleans or function calls like approved() would join this union.
FilterValue = Union[TextValue]


@dataclass(frozen=True)
class MembershipIn:
    field: str
    values: Tuple[FilterValue, ...]


@dataclass(frozen=True)
class Conjunction:
    clauses: Tuple["FilterClause", ...] = ()


FilterClause = Union[Conjunction, MembershipIn]


@dataclass(frozen=True)
class Query:
    clause: FilterClause

    def to_jql(self) -> str:
        return render(self.clause)

    def __str__(self) -> str:
        return self.to_jql()


def _render_value(value: FilterValue) -> str:
    if isinstance(value, TextValue):
        return f'"{escape_text(value.text)}"'
    raise TypeError(f"Unsupported JQL value: {value!r}")


def render(clause: FilterClause) -> str:
    if isinstance(clause, Conjunction):
        return "(" + " AND ".join(render(c) for c in clause.clauses) + ")"
    if isinstance(clause, MembershipIn):
        values = ", ".join(_render_value(v) for v in clause.values)
        return f"{clause.field} IN ({values})"
    raise TypeError(f"Unsupported JQL clause: {clause!r}")


def _unique(values: Iterable[str]) -> list[str]:
    # set semantics, first-seen order
    return list(dict.fromkeys(values))


def _membership(field: str, values: list[str]) -> MembershipIn:
    return MembershipIn(field, tuple(TextValue(v) for v in values))


def build_issue_search_query(
    projects: Iterable[str],
    labels: Iterable[str],
    issue_types: Iterable[str] = (),
) -> Query:
    """
    Combine the non-empty filters into ``(project IN (...) AND labels IN (...)
    AND issuetype IN (...))``.

    Raises TooBroadError when neither a project nor a label is given, since
    the search would otherwise crawl the whole Jira instance. Issue types on
    their own do not narrow the search enough.
    """
    projects = _unique(projects)
    labels = _unique(labels)
    issue_types = _unique(issue_types)

    if not projects and not labels:
        raise TooBroadError()

    clauses: list[FilterClause] = []
    if projects:
        clauses.append(_membership("project", projects))
    if labels:
        clauses.append(_membership("labels", labels))
    if issue_types:
        clauses.append(_membership("issuetype", issue_types))

    return Query(Conjunction(tuple(clauses)))


__all__ = [
    "Conjunction",
    "FilterClause",
    "FilterValue",
    "MembershipIn",
    "Query",
    "TextValue",
    "build_issue_search_query",
    "escape_text",
    "render",
]
