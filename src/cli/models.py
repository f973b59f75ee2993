"""Data models for CLI operations."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Conversion completed
    - GENERAL_ERROR (1): Unexpected failure
    - INPUT_ERROR (2): Page file missing, unreadable or not a page payload
    - CONFIG_ERROR (3): Configuration file or option invalid

    Example:
        >>> raise typer.Exit(ExitCode.INPUT_ERROR)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    INPUT_ERROR = 2
    CONFIG_ERROR = 3


OUTPUT_FORMATS = ('markdown', 'json', 'yaml')

VERSION = '0.1.0'

DEFAULT_CONFIG_FILE = 'confluence-md.yaml'
