"""CLI command modules."""

from vigil.cli.commands import daemon, paths, results, tools, triggers, watch

__all__ = [
    "daemon",
    "paths",
    "results",
    "tools",
    "triggers",
    "watch",
]
