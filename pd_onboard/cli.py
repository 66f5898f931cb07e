"""pd-onboard CLI: directory pulls and onboarding progress reports."""

import json
import logging
import sys

import click

from pd_onboard import __version__
from pd_onboard.errors import ConfigError, FetchError, LoadError

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=level,
        stream=sys.stderr,
    )


def _load_config(config_path):
    from pd_onboard.config import OnboardConfig

    try:
        return OnboardConfig.from_yaml(config_path) if config_path else OnboardConfig()
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)


def _open(path):
    from pd_onboard.dataset import open_dataset

    try:
        return open_dataset(path)
    except LoadError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="pd-onboard")
def cli():
    """pd-onboard: PagerDuty service onboarding tracker."""
    pass


# ======================================================================
# pd-onboard fetch
# ======================================================================

@cli.command()
@click.argument("resource", type=click.Choice(["users", "teams", "services"]))
@click.option("--config", "config_path", default=None, help="Path to pd-onboard YAML config.")
@click.option("--query", default=None, help="Free-text filter forwarded to the API.")
@click.option("--team-id", "team_ids", multiple=True, help="Restrict to a team id (repeatable).")
@click.option("--sort-by", default=None, help="Sort key forwarded to the API.")
@click.option("--json", "as_json", is_flag=True, help="Print full records as JSON.")
@click.option("--verbose", is_flag=True, help="Enable DEBUG logging.")
def fetch(resource, config_path, query, team_ids, sort_by, as_json, verbose):
    """Fetch every user, team or service from the directory."""
    _setup_logging(verbose)
    from pd_onboard.client import PagerDutyClient

    cfg = _load_config(config_path)
    token = cfg.api_token()
    if not token:
        click.echo(f"Error: no API token; set {cfg.directory.api_token_env}.", err=True)
        sys.exit(2)

    filters = {}
    if query:
        filters["query"] = query
    if team_ids:
        filters["team_ids"] = list(team_ids)
    if sort_by:
        filters["sort_by"] = sort_by

    with PagerDutyClient(
        base_url=cfg.directory.base_url,
        api_token=token,
        timeout=cfg.directory.timeout,
        retries=cfg.directory.retries,
        page_size=cfg.directory.page_size,
    ) as client:
        try:
            items = getattr(client, f"get_all_{resource}")(filters or None)
        except FetchError as e:
            click.echo(f"Error: failed to fetch {resource}: {e}", err=True)
            sys.exit(1)

    if as_json:
        click.echo(json.dumps([i.model_dump(by_alias=True) for i in items], indent=2))
        return
    for item in items:
        click.echo(f"{item.id}\t{item.name}")
    click.echo(f"{len(items)} {resource}", err=True)


# ======================================================================
# pd-onboard progress
# ======================================================================

@cli.command()
@click.argument("path", required=False)
@click.option("--config", "config_path", default=None, help="Path to pd-onboard YAML config.")
@click.option("--rows", "show_rows", is_flag=True, help="Also list per-row completion.")
@click.option("--verbose", is_flag=True, help="Enable DEBUG logging.")
def progress(path, config_path, show_rows, verbose):
    """Summarize onboarding completion of a spreadsheet."""
    _setup_logging(verbose)
    path = path or _load_config(config_path).dataset.path
    dataset = _open(path)
    p = dataset.get_overall_progress()

    click.echo(f"Dataset:      {path}")
    click.echo(f"  Total:       {p.total}")
    click.echo(f"  Completed:   {p.completed}")
    click.echo(f"  In progress: {p.in_progress}")
    click.echo(f"  Not started: {p.not_started}")
    click.echo(f"  Average:     {p.average_completion}%")
    if show_rows:
        click.echo("")
        for row in dataset.working:
            click.echo(f"  {row.completion:>3}%  {row.mp_service_name or '(unnamed)'}")


# ======================================================================
# pd-onboard validate
# ======================================================================

@cli.command()
@click.argument("path", required=False)
@click.option("--config", "config_path", default=None, help="Path to pd-onboard YAML config.")
@click.option("--verbose", is_flag=True, help="Enable DEBUG logging.")
def validate(path, config_path, verbose):
    """List validation issues in a spreadsheet; exit 1 if there are any."""
    _setup_logging(verbose)
    path = path or _load_config(config_path).dataset.path
    dataset = _open(path)
    issues = dataset.validation_errors
    if not issues:
        click.echo(f"OK: {len(dataset)} rows, no issues")
        return
    for issue in issues:
        click.echo(issue)
    click.echo(f"{len(issues)} issue(s) in {len(dataset)} rows", err=True)
    sys.exit(1)


def main():
    cli()
