"""Frontend interfaces for the activity grid."""

from .cli import CLIActivityGrid

__all__ = ["CLIActivityGrid"]
