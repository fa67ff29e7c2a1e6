"""
Entry point for running switchclaw as a module: python -m switchclaw
"""

from switchclaw.cli.commands import app

if __name__ == "__main__":
    app()
