"""Main entry point for ReviewInsight."""

from reviewinsight.cli import main as cli_main


def main():
    """Main entry point - delegates to the CLI."""
    cli_main()

if __name__ == "__main__":
    main()
