"""Entry point for running argus as a module.

Usage:
    python -m argus [command] [options]

Example:
    python -m argus scan . --format all
    python -m argus sync --dry-run
"""

from argus.cli import app

if __name__ == "__main__":
    app()
