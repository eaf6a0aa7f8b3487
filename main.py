"""Main entry point for gcflow."""

from pathlib import Path

from dotenv import load_dotenv

from gcflow.cli import app


def main():
    """Run the command line interface."""
    project_root = Path(__file__).resolve().parent
    load_dotenv(project_root / ".env")
    app()


if __name__ == "__main__":
    main()
