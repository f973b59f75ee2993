"""Main CLI entry point for the confluence-md command.

This module provides the Typer application that converts Confluence pages
(REST content payloads saved as JSON) and raw storage format fragments to
Markdown.
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer
import yaml

from src.cli.config import ConfigLoader
from src.cli.errors import ConfigError, InputFileError
from src.cli.models import DEFAULT_CONFIG_FILE, OUTPUT_FORMATS, VERSION, ExitCode
from src.cli.output import OutputHandler
from src.content_converter.document_assembler import DocumentAssembler
from src.content_converter.markdown_converter import MarkdownConverter
from src.models.confluence_page import CommentRecord, PageRecord, comments_from_api
from src.models.conversion_result import ConversionResult
from src.models.converter_config import ConverterConfig
from src.models.errors import InvalidRecordError

app = typer.Typer(
    name="confluence-md",
    help="""Convert Confluence storage format pages to Markdown.

QUICK START:
  confluence-md convert page.json                      # Page to stdout
  confluence-md convert page.json --comments c.json    # Page with comment thread
  confluence-md convert page.json -o page.md           # Write to file
  confluence-md fragment body.xhtml                    # Raw storage markup
  confluence-md init --tables pipe                     # Write confluence-md.yaml""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'src' namespace logger to avoid affecting third-party
    libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    app_logger = logging.getLogger("src")
    app_logger.setLevel(level)

    # Repeated invocations in one process must not stack handlers
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    log_format = "%(asctime)s [%(levelname)8s] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(log_format, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"confluence-md_{timestamp}.log"

        file_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        file_formatter = logging.Formatter(file_format, datefmt=date_format)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def _read_json(file_path: str):
    """Read and decode a JSON file.

    Raises:
        InputFileError: If the file cannot be read or is not valid JSON
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except FileNotFoundError:
        raise InputFileError(file_path, 'read', 'File not found')
    except PermissionError:
        raise InputFileError(file_path, 'read', 'Permission denied')
    except json.JSONDecodeError as e:
        raise InputFileError(file_path, 'parse', f"Invalid JSON: {e}")
    except OSError as e:
        raise InputFileError(file_path, 'read', str(e))


def _load_page(file_path: str) -> PageRecord:
    """Load a page record from a saved content payload.

    Raises:
        InputFileError: If the file cannot be read or decoded
        InvalidRecordError: If the payload is not a page
    """
    page = PageRecord.from_api(_read_json(file_path))
    logger.debug(f"Loaded page {page.id} from {file_path}")
    return page


def _load_comments(
    file_path: Optional[str],
    output: OutputHandler,
) -> Optional[List[CommentRecord]]:
    """Load the comment thread, or None if it cannot be loaded.

    A broken comments file must not stop the page conversion: the failure
    is reported as a warning and the page is converted without comments.
    """
    if not file_path:
        return None
    try:
        comments = comments_from_api(_read_json(file_path))
    except (InputFileError, InvalidRecordError) as e:
        logger.warning(f"Comments not loaded from {file_path}: {e}")
        output.warning(f"Comments not loaded, continuing without them: {e}")
        return None
    logger.debug(f"Loaded {len(comments)} comment(s) from {file_path}")
    return comments


def _format_result(result: ConversionResult, output_format: str) -> str:
    """Serialize a conversion result in the requested output format."""
    if output_format == 'json':
        return json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
    if output_format == 'yaml':
        return yaml.safe_dump(
            result.to_dict(),
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )
    return result.content


def _write_output(text: str, output_file: Optional[str]) -> None:
    """Write text to a file, or to stdout when no file is given.

    Raises:
        InputFileError: If the output file cannot be written
    """
    if not text.endswith("\n"):
        text += "\n"
    if not output_file:
        typer.echo(text, nl=False)
        return
    try:
        path = Path(output_file)
        if path.parent and not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding='utf-8')
    except PermissionError:
        raise InputFileError(output_file, 'write', 'Permission denied')
    except OSError as e:
        raise InputFileError(output_file, 'write', str(e))


def _resolve_config(
    output: OutputHandler,
    config_file: Optional[str],
    **overrides,
) -> ConverterConfig:
    try:
        return ConfigLoader.resolve(config_file, **overrides)
    except (ConfigError, InputFileError) as e:
        logger.error(f"Invalid configuration: {e}")
        output.error(str(e))
        raise typer.Exit(ExitCode.CONFIG_ERROR)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"confluence-md version {VERSION}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Convert Confluence storage format pages to Markdown."""


@app.command()
def convert(
    page_json: str = typer.Argument(
        ...,
        help="JSON file with the page content payload (body.storage, version, space)",
        metavar="PAGE_JSON",
    ),
    comments_json: Optional[str] = typer.Option(
        None,
        "--comments",
        help="JSON file with the page's comments ({\"results\": [...]} or a list)",
        metavar="FILE",
    ),
    output_file: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the result to FILE instead of stdout",
        metavar="FILE",
    ),
    output_format: str = typer.Option(
        "markdown",
        "--format",
        "-f",
        help="Output format: markdown, json or yaml",
    ),
    config_file: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file",
        metavar="FILE",
    ),
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        help="Confluence base URL for absolute page links",
        metavar="URL",
    ),
    tables: Optional[str] = typer.Option(
        None,
        "--tables",
        help="Table rendering: placeholder or pipe",
    ),
    no_comments: bool = typer.Option(
        False,
        "--no-comments",
        help="Leave the comments section out",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
) -> None:
    """Convert a page (and optionally its comments) to a Markdown document.

    \b
    EXAMPLES:
      confluence-md convert page.json
      confluence-md convert page.json --comments comments.json -o page.md
      confluence-md convert page.json --format json --base-url https://company.atlassian.net/wiki
    """
    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    if output_format not in OUTPUT_FORMATS:
        output.error(
            f"Unknown output format '{output_format}' (expected one of {', '.join(OUTPUT_FORMATS)})"
        )
        raise typer.Exit(ExitCode.CONFIG_ERROR)

    config = _resolve_config(
        output,
        config_file,
        base_url=base_url,
        table_style=tables,
        include_comments=False if no_comments else None,
    )

    try:
        page = _load_page(page_json)
    except (InputFileError, InvalidRecordError) as e:
        logger.error(f"Cannot load page: {e}")
        output.error(f"Cannot load page: {e}")
        raise typer.Exit(ExitCode.INPUT_ERROR)

    comments = _load_comments(comments_json, output) if config.include_comments else None

    try:
        result = DocumentAssembler(config).convert(page, comments)
        _write_output(_format_result(result, output_format), output_file)
    except InputFileError as e:
        logger.error(f"Cannot write output: {e}")
        output.error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except Exception as e:
        logger.exception("Unexpected error during conversion")
        output.error(f"Unexpected error: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    output.print_warnings(result.warnings)
    if output_file:
        output.success(f"Converted page {page.id} to {output_file}")
    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def fragment(
    source: str = typer.Argument(
        "-",
        help="File with storage format markup, or - for stdin",
        metavar="FILE",
    ),
    output_file: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the Markdown to FILE instead of stdout",
        metavar="FILE",
    ),
    config_file: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file",
        metavar="FILE",
    ),
    tables: Optional[str] = typer.Option(
        None,
        "--tables",
        help="Table rendering: placeholder or pipe",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
) -> None:
    """Convert raw storage format markup to Markdown.

    \b
    EXAMPLES:
      confluence-md fragment body.xhtml
      echo '<h3>Title</h3>' | confluence-md fragment -
    """
    _configure_logging(verbosity)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    config = _resolve_config(output, config_file, table_style=tables)

    try:
        if source == "-":
            markup = typer.get_text_stream("stdin").read()
        else:
            try:
                markup = Path(source).read_text(encoding='utf-8')
            except FileNotFoundError:
                raise InputFileError(source, 'read', 'File not found')
            except OSError as e:
                raise InputFileError(source, 'read', str(e))
    except InputFileError as e:
        output.error(str(e))
        raise typer.Exit(ExitCode.INPUT_ERROR)

    result = MarkdownConverter(config).convert_fragment(markup)
    try:
        _write_output(result.markdown, output_file)
    except InputFileError as e:
        output.error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    output.print_warnings(result.warnings)
    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def init(
    config_path: str = typer.Argument(
        DEFAULT_CONFIG_FILE,
        help="Where to write the configuration file",
        metavar="FILE",
    ),
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        help="Confluence base URL for absolute page links",
        metavar="URL",
    ),
    tables: Optional[str] = typer.Option(
        None,
        "--tables",
        help="Table rendering: placeholder or pipe",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite an existing configuration file",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
) -> None:
    """Write a configuration file from the environment and options.

    \b
    EXAMPLES:
      confluence-md init
      confluence-md init docs/confluence-md.yaml --base-url https://company.atlassian.net/wiki --tables pipe
    """
    _configure_logging(verbosity)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    if Path(config_path).exists() and not force:
        output.error(f"Configuration file already exists: {config_path} (use --force to overwrite)")
        raise typer.Exit(ExitCode.CONFIG_ERROR)

    config = _resolve_config(output, None, base_url=base_url, table_style=tables)
    output.debug(f"Resolved configuration: {config}")

    try:
        ConfigLoader.save(config_path, config)
    except InputFileError as e:
        logger.error(f"Cannot write configuration: {e}")
        output.error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    output.success(f"Configuration written to {config_path}")
    output.info(f"  Base URL: {config.base_url or '(none)'}")
    output.info(f"  Tables: {config.table_style}")
    raise typer.Exit(ExitCode.SUCCESS)


def main() -> None:
    """Main entry point for the CLI application.

    This function is called when the module is executed directly or
    when the console script is invoked.
    """
    app()


# Allow running as: python -m src.cli.main
if __name__ == "__main__":
    main()
