"""
Entry point for running riffmcp as a module: python -m riffmcp
"""

from riffmcp.cli.commands import app

if __name__ == "__main__":
    app()
