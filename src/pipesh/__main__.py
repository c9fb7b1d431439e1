"""pipesh CLI entry point."""

from pipesh.cli import app

if __name__ == "__main__":
    app()
