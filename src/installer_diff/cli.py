"""Click CLI entry point for installer-diff."""

from __future__ import annotations

import logging
import sys
from typing import BinaryIO

import click

from installer_diff.config import dump_rules, load_rules
from installer_diff.errors import InstallerDiffError
from installer_diff.pipeline import filter_manifests


@click.group()
@click.version_option(package_name="installer-diff")
def main() -> None:
    """installer-diff: Normalize installer output for line-based diffing."""


@main.command("filter")
@click.argument("input_file", metavar="[INPUT]", type=click.File("rb"), default="-")
@click.option("--rules", "rules_path", default=None, type=click.Path(dir_okay=False),
              help="YAML file overriding the built-in rule sets")
@click.option(
    "--input-format",
    type=click.Choice(["json", "yaml"]),
    default="json",
    help="Input format",
)
@click.option("--no-exclude", is_flag=True, help="Keep resources the inclusion rules would drop")
@click.option("-v", "--verbose", is_flag=True, help="Log every dropped resource to stderr")
def filter_cmd(
    input_file: BinaryIO,
    rules_path: str | None,
    input_format: str,
    no_exclude: bool,
    verbose: bool,
) -> None:
    """Normalize a JSON array of manifests read from INPUT (default: stdin)."""
    _configure_logging(verbose)

    try:
        rules = load_rules(rules_path)
        output = filter_manifests(
            input_file.read(),
            rules,
            exclude=not no_exclude,
            input_format=input_format,
        )
    except InstallerDiffError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(output)


@main.command("rules")
@click.option("--rules", "rules_path", default=None, type=click.Path(dir_okay=False),
              help="YAML file overriding the built-in rule sets")
def rules_cmd(rules_path: str | None) -> None:
    """Print the effective rule sets as YAML."""
    try:
        rules = load_rules(rules_path)
    except InstallerDiffError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(dump_rules(rules), nl=False)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
