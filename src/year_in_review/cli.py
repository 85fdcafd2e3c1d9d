"""CLI entry point for year-in-review."""

import asyncio
from pathlib import Path
from typing import Any

import click
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from year_in_review import __version__
from year_in_review.analytics import TeamMetrics, YearSummary
from year_in_review.clients.auth import AuthenticationError
from year_in_review.clients.http import ForgeHTTPError
from year_in_review.collect import UserNotFoundError, collect_team, collect_year_summary
from year_in_review.config import Config, ConfigurationError, config_from_env, load_config
from year_in_review.logging import redact, setup_logging
from year_in_review.report.markdown import render_report, render_team_report
from year_in_review.report.output import (
    json_filename,
    output_filename,
    team_output_filename,
    team_to_dict,
    write_json,
    write_report,
)

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="year-in-review")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable verbose output")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """GitLab and GitHub Year-in-Review Report Generator.

    Summarizes a user's (or a GitLab team's) activity over one calendar
    year as a Markdown report.

    \b
    Quick Start:
        1. Put GITLAB_TOKEN/GITLAB_USER_ID and/or GITHUB_TOKEN/GITHUB_USERNAME in .env
        2. year-in-review generate --year 2025
    """
    load_dotenv()
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose=verbose)


def _load(config_path: Path | None) -> Config:
    if config_path is not None:
        return load_config(config_path)
    return config_from_env()


def _apply_overrides(
    cfg: Config,
    year: int | None,
    output: str | None,
    output_format: str | None,
    timezone: str | None,
) -> Config:
    data = cfg.model_dump()
    if year is not None:
        data["year"] = year
    if output:
        data["output"]["filename"] = output
    if output_format:
        data["output"]["format"] = output_format
    if timezone:
        data["timezone"] = timezone
    return Config.model_validate(data)


def _print_table(title: str, rows: dict[str, Any]) -> None:
    table = Table(title=title, show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for name, value in rows.items():
        table.add_row(name, str(value))
    console.print(table)


def summary_overview(summary: YearSummary) -> dict[str, Any]:
    """Headline numbers of a single-user summary."""
    overview: dict[str, Any] = {
        "User": summary.display_name,
        "Year": summary.year,
        "Total Activities": summary.total_activities,
        "Total Projects": summary.total_projects,
    }
    if summary.gitlab is not None:
        gitlab = summary.gitlab
        overview["GitLab Activities"] = gitlab.total_activities
        overview["GitLab Projects"] = gitlab.total_projects
        if gitlab.merge_requests is not None:
            overview["GitLab Merge Requests Created"] = gitlab.merge_requests.total_created
        if gitlab.issues is not None:
            overview["GitLab Issues Created"] = gitlab.issues.total_created
        overview["GitLab Code Reviews"] = gitlab.code_reviews
        overview["GitLab Most Active Month"] = gitlab.events.most_active_month or "-"
        overview["GitLab Longest Activity Streak"] = f"{gitlab.streaks.max_streak} days"
        if gitlab.events.top_projects:
            overview["GitLab Top Project"] = gitlab.events.top_projects[0].project
    if summary.github is not None:
        github = summary.github
        overview["GitHub Events"] = github.total_activities
        overview["GitHub Commits"] = github.commits
        overview["GitHub Most Active Month"] = github.events.most_active_month or "-"
        overview["GitHub Longest Activity Streak"] = f"{github.streaks.max_streak} days"
        if github.events.top_projects:
            overview["GitHub Top Repository"] = github.events.top_projects[0].project
    return overview


def team_overview(team: TeamMetrics) -> dict[str, Any]:
    """Headline numbers of a team summary."""
    return {
        "Year": team.year,
        "Team Members": team.member_count,
        "Total Activities": team.total_activities,
        "Total Projects": team.total_projects,
    }


def _generate_single(cfg: Config) -> Path:
    summary = asyncio.run(collect_year_summary(cfg))
    filename = output_filename(summary, cfg.output.filename)

    path = write_report(Path(filename), render_report(summary))
    if cfg.output.format == "json":
        write_json(Path(json_filename(filename)), summary.to_dict())

    console.print()
    _print_table("Year-in-Review Summary", summary_overview(summary))
    return path


def _generate_team(cfg: Config) -> Path:
    console.print(f"Team members: {', '.join(cfg.gitlab.team_users)}")
    team = asyncio.run(collect_team(cfg))
    filename = team_output_filename(cfg.year, cfg.output.filename)

    path = write_report(Path(filename), render_team_report(team))
    if cfg.output.format == "json":
        write_json(Path(json_filename(filename)), team_to_dict(team))

    console.print()
    _print_table("Team Year-in-Review Summary", team_overview(team))
    return path


@main.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to a YAML config file (defaults to environment variables)",
)
@click.option("--year", type=int, default=None, help="Year to report on (default: current year)")
@click.option("--output", "-o", default=None, help="Output filename override")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["markdown", "json"]),
    default=None,
    help="markdown writes the report; json also writes the summary data",
)
@click.option("--timezone", default=None, help="IANA timezone for hour/day analytics")
@click.pass_context
def generate(
    ctx: click.Context,
    config_path: Path | None,
    year: int | None,
    output: str | None,
    output_format: str | None,
    timezone: str | None,
) -> None:
    """Collect activity and write the year-in-review report.

    A team report is generated when GitLab team users are configured.
    """
    try:
        cfg = _apply_overrides(_load(config_path), year, output, output_format, timezone)
        cfg.validate_platforms()
    except (ValidationError, ConfigurationError) as e:
        console.print(f"[bold red]Configuration error:[/bold red] {escape(redact(str(e)))}")
        console.print("[yellow]Copy .env.example to .env and fill in your credentials.[/yellow]")
        raise click.Abort() from e

    mode = "Team" if cfg.gitlab.is_team else "Personal"
    console.print(f"[bold]Generating {mode} Year-in-Review for {cfg.year}[/bold]")

    try:
        path = _generate_team(cfg) if cfg.gitlab.is_team else _generate_single(cfg)
    except KeyboardInterrupt:
        console.print("\n[yellow]Generation interrupted by user[/yellow]")
        raise click.Abort() from None
    except (
        AuthenticationError,
        ConfigurationError,
        ForgeHTTPError,
        UserNotFoundError,
    ) as e:
        console.print(f"\n[bold red]Error:[/bold red] {escape(redact(str(e)))}")
        if ctx.obj.get("verbose"):
            import traceback

            console.print("\n[dim]Traceback:[/dim]")
            console.print(redact(traceback.format_exc()), markup=False)
        raise click.Abort() from e

    console.print()
    console.print(f"[bold green]Report saved to {path}[/bold green]")


if __name__ == "__main__":
    main()
