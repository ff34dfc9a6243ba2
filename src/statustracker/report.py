# src/statustracker/report.py
from __future__ import annotations

import csv
import functools
from typing import Dict, Iterable, Optional, Sequence, TextIO

from rich.console import Console

from .estimate import TallyResult, story_points
from .parse import IssueRecord

CSV_COLUMNS = ["ID", "Story Points", "Status", "Link"]


def format_sprints_remaining(result: TallyResult) -> str:
    return f"{result.num_sprints_remaining:.1f}"


def explain(result: TallyResult, console: Optional[Console] = None) -> None:
    """Print how the sprint estimate was reached, one sentence per step."""
    console = console or Console()
    say = functools.partial(console.print, soft_wrap=True, highlight=False)
    r = result
    done = f"[yellow]{r.num_complete:.0f}[/yellow]"
    pointed = f"[bright_blue]{r.num_incomplete_and_pointed:.0f}[/bright_blue]"
    estimated = f"[bright_magenta]{r.unfinished_estimated_story_points:.0f}[/bright_magenta]"
    unpointed = f"[bright_red]{r.num_incomplete_and_unpointed:.0f}[/bright_red]"
    default = f"[cyan]{r.default_story_points:.0f}[/cyan]"
    unestimated = f"[green]{r.unfinished_unestimated_story_points:.0f}[/green]"
    total = f"[bright_yellow]{r.unfinished_story_points:.0f}[/bright_yellow]"
    velocity = f"[magenta]{r.velocity_in_story_points:.0f}[/magenta]"
    sprints = f"[bright_green]{r.num_sprints_remaining:.1f}[/bright_green]"

    say(f"There are {done} cards completed.")
    say(
        f"There are {pointed} cards remaining that are estimated, "
        f"representing {estimated} points left to go."
    )
    say(
        f"There are {unpointed} cards remaining that are unestimated.  Using a default story point "
        f"value of {default}, there are {unpointed} × {default} = {unestimated} points left to go."
    )
    say(f"That means there are {estimated} + {unestimated} = {total} total points left to go.")
    say(
        f"Given a velocity of {velocity} points / sprint, there is at least "
        f"{total} / {velocity} = {sprints} sprints remaining."
    )


def to_csv_row(issue: IssueRecord, field_ids: Sequence[str], base_url: str) -> Dict[str, object]:
    points = story_points(issue, field_ids)
    return {
        "ID": issue.key,
        "Story Points": "" if points is None else points,
        "Status": issue.status_category() or "",
        "Link": f"{base_url.rstrip('/')}/browse/{issue.key}",
    }


def write_csv(rows: Iterable[Dict[str, object]], stream: TextIO) -> int:
    writer = csv.DictWriter(stream, fieldnames=CSV_COLUMNS, lineterminator="\n")
    writer.writeheader()
    count = 0
    for row in rows:
        writer.writerow(row)
        count += 1
    return count
