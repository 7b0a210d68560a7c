"""
Package entry point.

Allows running the application via:

    python -m lessoncal

This simply forwards execution to lessoncal.cli.main().
"""

from lessoncal.cli import main

if __name__ == "__main__":
    main()
