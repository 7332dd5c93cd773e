"""Entry point for ``python -m frame_commander``."""

from frame_commander.cli.commands import app

if __name__ == "__main__":
    app()
