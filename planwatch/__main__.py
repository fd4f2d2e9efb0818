"""Allow running planwatch as ``python -m planwatch``."""

from planwatch.cli import cli

if __name__ == "__main__":
    cli()
