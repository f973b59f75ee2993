"""Command-line interface for Confluence to Markdown conversion.

This package provides the `confluence-md` CLI tool that loads saved page and
comment payloads, resolves configuration from the environment, a YAML file
and command-line options, and writes the converted Markdown document.
"""

from .config import ConfigLoader
from .models import ExitCode
from .errors import (
    CLIError,
    ConfigError,
    InputFileError,
)

__all__ = [
    'ConfigLoader',
    'ExitCode',
    'CLIError',
    'ConfigError',
    'InputFileError',
]
