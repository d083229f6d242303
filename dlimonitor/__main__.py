"""
Package entry point.

Allows running the monitor via:

    python -m dlimonitor

This simply forwards execution to dlimonitor.cli.main().
"""

from dlimonitor.cli import main

if __name__ == "__main__":
    main()
