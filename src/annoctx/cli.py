"""annoctx developer CLI.

    annoctx models myapp.models          # list registered models
    annoctx check myapp.models           # detect cyclic prototype children
    annoctx config --init                # write .anno/config.yaml
"""

from __future__ import annotations

import importlib
import json
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from annoctx.core.graph import CircularDependencyError, toposort
from annoctx.core.manager import get_manager
from annoctx.core.meta import ModelMeta
from annoctx.core.types import ModelKind
from annoctx.foundation.config import get_config, load_config, save_default_config
from annoctx.foundation.errors import CyclicPrototypeInstanceFound
from annoctx.foundation.logging import configure_logging
from annoctx.model.effects import sagas_of

console = Console()


def _import_modules(modules: tuple[str, ...]) -> None:
    for name in modules:
        try:
            importlib.import_module(name)
        except ImportError as e:
            raise click.ClickException(f"Cannot import {name}: {e}") from e


def _prototype_edges(metas: list[ModelMeta]) -> list[tuple[str, str]]:
    """Edges a full instantiation of every prototype model would record."""
    return [
        (meta.name, spec.model_name)
        for meta in metas
        if meta.kind is ModelKind.PROTOTYPE
        for spec in meta.children.values()
    ]


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.version_option(version="0.1.0")
def main(debug: bool) -> None:
    """Inspect annoctx models."""
    configure_logging(debug=debug)


@main.command()
@click.argument("modules", nargs=-1, required=True)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def models(modules: tuple[str, ...], as_json: bool) -> None:
    """List the models registered by importing MODULES."""
    _import_modules(modules)
    metas = sorted(get_manager().registry.get_all_model_meta(), key=lambda m: m.name)

    if as_json:
        click.echo(json.dumps([
            {
                "name": meta.name,
                "kind": meta.kind.value,
                "fields": list(meta.initial_state),
                "children": {attr: spec.model_name for attr, spec in meta.children.items()},
                "sagas": sagas_of(meta.model_constructor),
            }
            for meta in metas
        ], indent=2))
        return

    if not metas:
        console.print("[yellow]No models registered[/yellow]")
        return

    table = Table(title="Registered Models")
    table.add_column("Name", style="cyan")
    table.add_column("Kind")
    table.add_column("Fields")
    table.add_column("Children")
    table.add_column("Sagas", style="dim")
    for meta in metas:
        table.add_row(
            meta.name,
            meta.kind.value,
            ", ".join(meta.initial_state) or "-",
            ", ".join(f"{attr}→{spec.model_name}" for attr, spec in meta.children.items()) or "-",
            ", ".join(sagas_of(meta.model_constructor)) or "-",
        )
    console.print(table)


@main.command()
@click.argument("modules", nargs=-1, required=True)
def check(modules: tuple[str, ...]) -> None:
    """Fail if declared prototype children of MODULES form a cycle."""
    _import_modules(modules)
    edges = _prototype_edges(get_manager().registry.get_all_model_meta())
    try:
        toposort(edges)
    except CircularDependencyError as e:
        err = CyclicPrototypeInstanceFound(edges, e.cycle)
        console.print(f"[red]✗ {escape(str(err))}[/red]")
        sys.exit(1)
    console.print(f"[green]✓ No cyclic prototype instances[/green] ({len(edges)} edge(s))")


@main.command()
@click.option("--init", is_flag=True, help="Create default config file")
@click.option("--path", type=click.Path(), help="Config file path (default: .anno/config.yaml)")
def config(init: bool, path: str | None) -> None:
    """Show or create the annoctx configuration."""
    if init:
        saved_path = save_default_config(path or ".anno/config.yaml")
        console.print(f"[green]✓ Config file created:[/green] {saved_path}")
        return

    cfg = load_config(path) if path else get_config()
    console.print(f"key_strategy: {cfg.key_strategy}")
    console.print(f"drop_orphan_actions: {cfg.drop_orphan_actions}")
    console.print(f"debug: {cfg.debug}")


if __name__ == "__main__":
    main()
