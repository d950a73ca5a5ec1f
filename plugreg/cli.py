"""plugreg CLI — the main entry point for the plugin registry builder."""

import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from plugreg import __version__
from plugreg.config import load_config
from plugreg.registry.errors import RegistryBuildError, RegistryError, ScaffoldError
from plugreg.spec.issues import ValidationIssue

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    envvar="PLUGREG_CONFIG",
    default=None,
    help="YAML config file (default: ./plugreg.yaml when present)",
)
@click.option("--plugins-dir", "-p", default=None, help="Root of the plugins tree")
@click.option("--registry", "-r", "registry_path", default=None, help="Path of registry.json")
@click.option("--verbose", "-v", is_flag=True, help="Log progress to stderr")
@click.pass_context
def main(ctx: click.Context, config_path, plugins_dir, registry_path, verbose: bool):
    """plugreg — build and validate the plugin registry.

    Manifests live at plugins/{letter}/{author}/{plugin-id}/{version}/plugin.json
    and are aggregated into a single registry.json.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    try:
        config = load_config(config_path)
    except RegistryError as e:
        _fail(str(e))
    ctx.obj = config.with_overrides(plugins_dir=plugins_dir, registry_path=registry_path)


# ── Build ────────────────────────────────────────────────────────────


@main.command()
@click.option(
    "--refresh-timestamp",
    is_flag=True,
    help="Stamp a new last_updated even if the plugin list is unchanged",
)
@click.pass_obj
def build(config, refresh_timestamp: bool):
    """Build registry.json from the plugins tree."""
    _build(config, refresh_timestamp)


@main.command(name="format")
@click.pass_obj
def format_registry(config):
    """Rebuild registry.json and refresh its last_updated timestamp."""
    _build(config, refresh_timestamp=True)


def _build(config, refresh_timestamp: bool):
    from plugreg.registry.local_registry import LocalRegistry

    reg = LocalRegistry(config)
    try:
        report = reg.build(refresh_timestamp=refresh_timestamp)
    except RegistryBuildError as e:
        err_console.print("[red]Errors found:[/]")
        _print_issues(e.issues)
        _fail(str(e))
    except RegistryError as e:
        _fail(f"Error building registry: {e}")

    for warning in report.load.warnings:
        err_console.print(f"  [yellow]![/] {escape(warning.format())}")

    stats = report.document.statistics
    console.print(f"[green]v[/] Registry built: {escape(str(report.registry_path))}")
    console.print(
        f"   {stats.total_plugins} plugin(s), {stats.total_versions} version(s), "
        f"{stats.total_authors} author(s)"
    )
    if report.timestamp_preserved:
        console.print("   [dim]No changes; last_updated kept[/]")


# ── Validate ─────────────────────────────────────────────────────────


@main.command()
@click.argument("manifests", nargs=-1, type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def validate(config, manifests: tuple):
    """Validate plugin manifests against the directory convention and schema.

    With no arguments every manifest under the plugins directory is checked.
    """
    from plugreg.registry.loader import load_manifests, validate_file
    from plugreg.registry.models import LoadResult

    if manifests:
        result = LoadResult(results=[validate_file(m, config.plugins_dir) for m in manifests])
    elif not Path(config.plugins_dir).is_dir():
        err_console.print(f"[yellow]![/] {escape(str(config.plugins_dir))} directory not found")
        return
    else:
        result = load_manifests(config.plugins_dir, manifest_filename=config.manifest_filename)

    for entry in result.results:
        if entry.ok:
            console.print(f"  [green]v[/] {escape(entry.relative_path)}")
        else:
            _print_issues(entry.errors)
        for warning in entry.warnings:
            err_console.print(f"  [yellow]![/] {escape(warning.format())}")

    console.print(
        f"\nValidation summary: {result.passed_count} passed, {result.failed_count} failed"
    )
    if not result.passed:
        raise SystemExit(1)
    console.print(f"[green]All {result.passed_count} manifest(s) valid.[/]")


@main.command(name="validate-registry")
@click.pass_obj
def validate_registry_cmd(config):
    """Validate a built registry.json (schema, duplicates, identity, statistics)."""
    from plugreg.utils.validator import validate_registry_file

    try:
        check = validate_registry_file(config.registry_path)
    except RegistryError as e:
        _fail(str(e))

    if not check.passed:
        err_console.print("[red]Registry validation failed:[/]")
        _print_issues([i for i in check.issues if i.is_error])
        raise SystemExit(1)

    console.print("[green]v[/] Registry validation passed")
    console.print(f"   Found {check.plugin_count} plugin(s)")


@main.command(name="check-duplicates")
@click.pass_obj
def check_duplicates(config):
    """Check registry.json for duplicate author + id combinations."""
    from plugreg.registry.duplicates import group_duplicates
    from plugreg.registry.local_registry import LocalRegistry

    try:
        plugins = LocalRegistry(config).list_all()
    except RegistryError as e:
        _fail(str(e))

    duplicates = group_duplicates(plugins)
    if duplicates:
        err_console.print("[red]Duplicate plugin author+id combinations found:[/]")
        for (author, plugin_id), group in duplicates.items():
            err_console.print(
                f'  - Author: "{escape(author)}", ID: "{escape(plugin_id)}" '
                f"appears {len(group)} times:"
            )
            for p in group:
                err_console.print(
                    f"    * {escape(str(p.get('name', '?')))} ({escape(str(p.get('repository', '?')))})"
                )
        raise SystemExit(1)

    console.print("[green]v[/] No duplicate plugin author+id combinations found")
    console.print(f"   Total plugins: {len(plugins)}")


# ── Search ───────────────────────────────────────────────────────────


@main.command()
@click.argument("query", default="")
@click.option("--tag", "-t", multiple=True, help="Filter by tag")
@click.option("--category", "-c", default="", help="Filter by category")
@click.pass_obj
def search(config, query: str, tag: tuple, category: str):
    """Search the registry for plugins."""
    from plugreg.registry.local_registry import LocalRegistry
    from plugreg.registry.models import SearchQuery

    try:
        result = LocalRegistry(config).search(
            SearchQuery(text=query, tags=list(tag), category=category)
        )
    except RegistryError as e:
        _fail(str(e))

    if not result.entries:
        console.print(
            f'[yellow]No plugins matching "{escape(query)}".[/]'
            if query
            else "[yellow]No plugins in registry.[/]"
        )
        return

    table = Table(title=f"Plugins ({result.total_count} found)")
    table.add_column("ID", style="cyan")
    table.add_column("Version")
    table.add_column("Author")
    table.add_column("Description")

    for p in result.entries:
        description = str(p.get("description", ""))
        if len(description) > 60:
            description = description[:60] + "..."
        table.add_row(
            escape(str(p.get("id", ""))),
            escape(str(p.get("latest_version", "-"))),
            escape(str(p.get("author", ""))),
            escape(description),
        )

    console.print(table)


# ── Create ───────────────────────────────────────────────────────────


@main.command()
@click.pass_obj
def create(config):
    """Interactively create a new plugin manifest."""
    from plugreg.scaffold import ManifestDraft, scaffold_manifest
    from plugreg.spec.schema import CATEGORIES, DEFAULT_CATEGORY
    from plugreg.utils.identity import normalize_author

    console.print("\n[bold blue]plugreg[/] — Create plugin entry\n")

    plugin_id = click.prompt("Plugin ID (lowercase, alphanumeric with hyphens)")
    name = click.prompt("Plugin name (display name)")
    author = click.prompt("Author name")
    console.print(f"  Normalized author name: [cyan]{escape(normalize_author(author))}[/]")
    repository = click.prompt("GitHub repository URL")
    version = click.prompt("Version (semver)", default="1.0.0")
    description = click.prompt("Description (10-500 characters)")

    console.print("\nCategories:")
    for i, c in enumerate(CATEGORIES, start=1):
        console.print(f"  {i}. {c}")
    choice = click.prompt(f"Category (1-{len(CATEGORIES)})", default=str(len(CATEGORIES)))
    category = (
        CATEGORIES[int(choice) - 1]
        if choice.isdigit() and 1 <= int(choice) <= len(CATEGORIES)
        else DEFAULT_CATEGORY
    )

    tags = click.prompt("Tags (comma-separated)", default="", show_default=False)
    license_id = click.prompt("License (SPDX identifier)", default="MIT")
    homepage = click.prompt("Homepage URL (optional)", default="", show_default=False)

    draft = ManifestDraft(
        id=plugin_id,
        name=name,
        author=author,
        repository=repository,
        description=description,
        latest_version=version,
        category=category,
        tags=tags.split(","),
        license=license_id,
        homepage=homepage,
    )

    try:
        path = scaffold_manifest(config.plugins_dir, draft, config.manifest_filename)
    except ScaffoldError as e:
        for detail in e.details:
            err_console.print(f"  [red]x[/] {escape(detail)}")
        _fail(str(e))

    console.print(f"\n[green]Plugin entry created:[/] {escape(str(path))}")
    console.print("Next: run 'plugreg validate', then 'plugreg build'.")


# ── Schema ───────────────────────────────────────────────────────────


@main.command(name="schema")
@click.argument("which", type=click.Choice(["manifest", "registry"]), default="manifest")
@click.option("--write", "write_dir", default=None, help="Write both schema files to this directory")
def dump_schema(which: str, write_dir: str | None):
    """Print the JSON Schema for manifests or the registry document."""
    from plugreg.spec.schema import get_manifest_schema, get_registry_schema

    if write_dir:
        out = Path(write_dir)
        out.mkdir(parents=True, exist_ok=True)
        for filename, schema in (
            ("manifest.schema.json", get_manifest_schema()),
            ("registry.schema.json", get_registry_schema()),
        ):
            (out / filename).write_text(json.dumps(schema, indent=2) + "\n", encoding="utf-8")
            console.print(f"[green]v[/] {escape(str(out / filename))}")
        return

    schema = get_manifest_schema() if which == "manifest" else get_registry_schema()
    click.echo(json.dumps(schema, indent=2))


def _print_issues(issues: list[ValidationIssue]):
    for issue in issues:
        err_console.print(f"  [red]x[/] {escape(issue.format())}")
        for detail in issue.details:
            err_console.print(f"     - {escape(detail)}")


def _fail(message: str):
    err_console.print(f"[red]Error:[/] {escape(message)}")
    raise SystemExit(1)


if __name__ == "__main__":
    main()
