# magnet_schema/__main__.py
"""Entry point for ``python -m magnet_schema``."""

from magnet_schema.cli import app

if __name__ == "__main__":
    app()
