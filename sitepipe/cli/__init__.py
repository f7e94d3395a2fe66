"""Command line interface."""

from sitepipe.cli.commands import cli, load_configurer, main


__all__ = ["cli", "load_configurer", "main"]
