# src/statustracker/main.py
from __future__ import annotations

import argparse
import logging
import sys

from rich.console import Console

from . import __version__
from .config import Settings
from .errors import StatusTrackerError
from .estimate import estimate_issues
from .fields import STATUS_FIELD_ID
from .jira_api import JiraClient
from .jql import build_issue_search_query
from .logging_setup import setup_logging
from .report import explain, format_sprints_remaining, to_csv_row, write_csv

log = logging.getLogger(__name__)


def _positive_float(value: str) -> float:
    try:
        f = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if not f > 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0, got {value}")
    return f


def _settings(args: argparse.Namespace) -> Settings:
    return Settings.from_env(
        base_url=args.jira_url,
        username=args.jira_username,
        token=args.jira_token,
    )


def _field_ids(client: JiraClient, field_name: str) -> list[str]:
    field_ids = client.get_story_point_field_ids(field_name)
    field_ids.append(STATUS_FIELD_ID)
    return field_ids


def cmd_estimate(args: argparse.Namespace) -> int:
    # validate before touching the network
    query = build_issue_search_query(args.jira_project, args.jira_label, args.jira_issue_type)
    settings = _settings(args)
    console = Console()

    with JiraClient(settings) as client:
        field_ids = _field_ids(client, args.jira_story_points_field)
        if args.verbose:
            console.print("Searching for issues with the following JQL:", soft_wrap=True, highlight=False)
            console.print(query.to_jql(), markup=False, emoji=False, soft_wrap=True, highlight=False)
        issues = client.search_all(field_ids, query)

    result = estimate_issues(
        issues,
        field_ids,
        args.default_story_points,
        args.velocity_in_story_points,
    )
    log.info("Estimate done", extra={"issues": len(issues), "sprints": result.num_sprints_remaining})

    if args.verbose:
        explain(result, console)
    else:
        print(format_sprints_remaining(result))
    return 0


def cmd_csv(args: argparse.Namespace) -> int:
    query = build_issue_search_query(args.jira_project, args.jira_label, args.jira_issue_type)
    settings = _settings(args)

    with JiraClient(settings) as client:
        field_ids = _field_ids(client, args.jira_story_points_field)
        issues = client.search_all(field_ids, query)

    count = write_csv((to_csv_row(i, field_ids, settings.base_url) for i in issues), sys.stdout)
    sys.stdout.flush()
    log.info("CSV written", extra={"count": count})
    return 0


def cmd_tag(args: argparse.Namespace) -> int:
    settings = _settings(args)
    with JiraClient(settings) as client:
        for key in args.jira_key:
            client.add_label(key, args.jira_label)
    print("Done!")
    return 0


def _add_filter_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--jira-project", action="append", default=[], help="Project key (repeatable)")
    p.add_argument("--jira-label", action="append", default=[], help="Label (repeatable)")
    p.add_argument("--jira-issue-type", action="append", default=[], help="Issue type (repeatable)")


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--jira-url", help="Jira base URL (default: $JIRA_URL)")
    common.add_argument("--jira-username", help="Jira user (default: $JIRA_USERNAME)")
    common.add_argument("--jira-token", help="Jira API token (default: $JIRA_TOKEN)")
    common.add_argument("--debug", action="store_true", help="Debug logging and full tracebacks")

    parser = argparse.ArgumentParser(
        prog="statustracker",
        description="A suite of utilities to estimate time left to complete a project. "
                    "Based on team velocity and estimated story points.",
        fromfile_prefix_chars="@",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_est = sub.add_parser("estimate", parents=[common], help="Estimate the number of sprints remaining")
    _add_filter_args(p_est)
    p_est.add_argument("--jira-story-points-field", default="Story Points")
    p_est.add_argument("--default-story-points", type=float, default=3.0,
                       help="Points assumed for cards nobody estimated yet")
    p_est.add_argument("--velocity-in-story-points", type=_positive_float, required=True,
                       help="Story points the team completes per sprint")
    p_est.add_argument("--verbose", action="store_true", help="Show the JQL and explain the estimate")
    p_est.set_defaults(func=cmd_estimate)

    p_csv = sub.add_parser("csv", parents=[common], help="Dump matching issues as CSV to stdout")
    _add_filter_args(p_csv)
    p_csv.add_argument("--jira-story-points-field", required=True)
    p_csv.set_defaults(func=cmd_csv)

    p_tag = sub.add_parser("tag", parents=[common], help="Add a label to issues")
    p_tag.add_argument("--jira-key", action="append", required=True, help="Issue key (repeatable)")
    p_tag.add_argument("--jira-label", required=True)
    p_tag.set_defaults(func=cmd_tag)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(debug=args.debug)

    try:
        return args.func(args)
    except StatusTrackerError as e:
        if args.debug:
            log.exception("Command failed")
        print(str(e), file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
