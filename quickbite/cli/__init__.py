"""QuickBite CLI.

Command-line storefront administration built with Click and Rich.
"""

from quickbite.cli.main import cli

__all__ = ["cli"]
