# region Docstring
"""
repodata.cli
Operator CLI for inspecting the data repository through the provider.
Commands:
- entities: configured entity table with directory, scope and cache key pattern.
- ls ENTITY [--org]: list a bucket.
- get ENTITY ID [--org]: print one record as JSON.
- refresh ENTITY [--org]: evict and reload a bucket.
- sign FILE [--secret]: compute the X-Hub-Signature-256 header for a webhook payload.
"""
# endregion
# region Imports
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from repodata.cache import build_cache
from repodata.clients import GitHubContentClient
from repodata.config import CacheSettings, GitHubDataSettings, get_settings
from repodata.errors import RepoDataError
from repodata.provider import GitHubDataProvider
from repodata.utils import bucket_cache_key
from repodata.webhook import sign_payload

console = Console(
    record=True,
    width=120,
    color_system="auto",
)

app = typer.Typer(name="repodata", help="Inspect the GitHub-backed data repository.")

# endregion
# region Helpers


def build_provider() -> GitHubDataProvider:
    settings = get_settings(GitHubDataSettings)
    return GitHubDataProvider(
        GitHubContentClient(settings),
        build_cache(get_settings(CacheSettings)),
        settings,
    )


def _scope(provider: GitHubDataProvider, entity: str, org: Optional[str]) -> Optional[str]:
    if not provider.settings.is_known(entity):
        console.print(f"[bold red]Unknown entity type:[/bold red] {entity}")
        raise typer.Exit(code=2)
    if provider.settings.is_scoped(entity) and not org:
        console.print(f"[bold red]{entity} is organization scoped, pass --org[/bold red]")
        raise typer.Exit(code=2)
    return org if provider.settings.is_scoped(entity) else None


# endregion
# region Commands


@app.command(name="entities", help="Show the configured entity table.")
def entities():
    settings = get_settings(GitHubDataSettings)
    table = Table(title=f"Entities in {settings.full_name}@{settings.branch}")
    table.add_column("Entity", style="cyan")
    table.add_column("Directory")
    table.add_column("Scoped")
    table.add_column("Cache key")
    for name, definition in settings.entities.items():
        key = bucket_cache_key(name, "{organization_id}" if definition.scoped else None)
        table.add_row(name, definition.path, "yes" if definition.scoped else "no", key)
    console.print(table)


@app.command(name="ls", help="List the records of a bucket.")
def list_records(
    entity: str = typer.Argument(..., help="Entity type, e.g. clients"),
    org: Optional[str] = typer.Option(None, "--org", "-o", help="Organization id"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
):
    provider = build_provider()
    scope = _scope(provider, entity, org)
    try:
        records = provider.get_all(entity, scope)
    except RepoDataError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)

    if as_json:
        console.print_json(json.dumps(records))
        return
    table = Table(title=provider.bucket_path(entity, scope))
    table.add_column("id", style="cyan")
    table.add_column("name")
    table.add_column("updated_at", style="dim")
    for record in records:
        table.add_row(
            str(record.get("id", "")),
            str(record.get("name", "")),
            str(record.get("updated_at", "")),
        )
    console.print(table)
    console.print(f"[bold green]{len(records)} records[/bold green]")


@app.command(name="get", help="Print one record as JSON.")
def get_record(
    entity: str = typer.Argument(..., help="Entity type, e.g. clients"),
    id: str = typer.Argument(..., help="Record id"),
    org: Optional[str] = typer.Option(None, "--org", "-o", help="Organization id"),
):
    provider = build_provider()
    scope = _scope(provider, entity, org)
    try:
        record = provider.find(entity, id, scope)
    except RepoDataError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)
    if record is None:
        console.print(f"[bold red]{entity} {id} not found[/bold red]")
        raise typer.Exit(code=1)
    console.print_json(json.dumps(record))


@app.command(name="refresh", help="Evict a bucket from the cache and reload it.")
def refresh(
    entity: str = typer.Argument(..., help="Entity type, e.g. clients"),
    org: Optional[str] = typer.Option(None, "--org", "-o", help="Organization id"),
):
    provider = build_provider()
    scope = _scope(provider, entity, org)
    try:
        records = provider.refresh(entity, scope)
    except RepoDataError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)
    console.print(
        f"[bold green]Reloaded {provider.cache_key(entity, scope)}:[/bold green] "
        f"{len(records)} records"
    )


@app.command(name="sign", help="Compute the X-Hub-Signature-256 header for a payload file.")
def sign(
    payload: Path = typer.Argument(..., exists=True, dir_okay=False, help="Payload file"),
    secret: Optional[str] = typer.Option(
        None, "--secret", "-s", help="Shared secret (defaults to GITHUB_WEBHOOK_SECRET)"
    ),
):
    secret = secret or get_settings(GitHubDataSettings).webhook_secret
    if not secret:
        console.print("[bold red]No webhook secret given or configured.[/bold red]")
        raise typer.Exit(code=2)
    console.print(sign_payload(payload.read_bytes(), secret), highlight=False)


# endregion

if __name__ == "__main__":
    app()
