"""
CLI main entry point.

Provides the `excalibur` console script.
"""


def main() -> int:
    """
    Main entry point for the Excalibur CLI.

    Returns:
        int: Exit code (0 success, 1 failure, 124 timeout, 130 cancelled)
    """
    # Import here so `excalibur.interface.cli` stays cheap to import
    from excalibur.interface.cli.app import app

    try:
        app(prog_name="excalibur")
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else (0 if e.code is None else 1)
    return 0
