"""Entry point for ``python -m mdserve``."""

from mdserve.cli import app

if __name__ == "__main__":
    app()
