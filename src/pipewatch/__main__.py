"""Allow running pipewatch as ``python -m pipewatch``."""

from pipewatch.cli import cli_main

if __name__ == "__main__":
    cli_main()
