"""Init command: writes a starter .anchor-audit.yaml."""

import sys
from pathlib import Path

import click
import yaml
from rich.console import Console

from anchor_audit.analyzer import SEED_SCOPES, SEED_SCOPE_FILE
from anchor_audit.config.ignore import IgnoreManager, create_default_config

console = Console()

CONFIG_FILENAME = IgnoreManager.CONFIG_FILENAMES[0]


def describe_config(content: str) -> list:
    """One summary line per top-level section of a config template."""
    data = yaml.safe_load(content) or {}
    lines = []
    for section, value in data.items():
        if isinstance(value, dict):
            settings = ", ".join(f"{k}={v}" for k, v in value.items() if not isinstance(v, list))
            lists = ", ".join(f"{k} ({len(v)})" for k, v in value.items() if isinstance(v, list))
            lines.append(f"{section}: {', '.join(p for p in (settings, lists) if p)}")
        elif isinstance(value, list):
            lines.append(f"{section}: {len(value)} entries")
        else:
            lines.append(f"{section}: empty")
    return lines


@click.command()
@click.argument('directory', type=click.Path(file_okay=False, path_type=Path), default='.')
@click.option('--force', '-f', is_flag=True, help='Overwrite an existing config file')
@click.option('--seed-scope', type=click.Choice(list(SEED_SCOPES)), default=SEED_SCOPE_FILE,
              help='Initial seeds.scope value')
@click.option('--include-instruction-handlers', is_flag=True, default=False,
              help='Enable handlers.include_instruction_handlers')
def init(directory: Path, force: bool, seed_scope: str, include_instruction_handlers: bool):
    """
    Write a starter .anchor-audit.yaml into DIRECTORY (default: current directory).

    Examples:

        anchor-audit init

        anchor-audit init programs/vault --seed-scope project
    """
    config_path = (directory / CONFIG_FILENAME).resolve()

    if config_path.exists() and not force:
        console.print(f"[yellow]{config_path} already exists, use --force to overwrite[/yellow]")
        sys.exit(1)

    content = create_default_config(seed_scope, include_instruction_handlers)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(content, encoding="utf-8")

    console.print(f"[green]Wrote {config_path}[/green]")
    for line in describe_config(content):
        console.print(f"  {line}")
