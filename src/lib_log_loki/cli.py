"""Command-line interface for inspecting and exercising the Loki shipper.

Purpose
-------
Give operators a quick way to check configuration: ``preview`` prints the exact
push payload a record would produce, ``push`` delivers one record to the
configured endpoint, and ``info`` prints package metadata.

Contents
--------
* :func:`cli` - click group carrying the ``--use-dotenv`` toggle.
* :func:`cli_info`, :func:`cli_preview`, :func:`cli_push` - subcommands.
* :func:`main` - test-friendly wrapper returning an exit code.

System Role
-----------
Presentation layer only. Configuration comes from ``LOKI_*`` environment
variables (see :mod:`lib_log_loki.config`); the heavy lifting stays in the
runtime façade.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Sequence

import click
from rich.console import Console
from rich.text import Text

from . import __init__conf__
from . import config as config_module
from .application.use_cases.format_entry import format_entry
from .application.use_cases.send_batch import build_push_request
from .domain.errors import ConfigurationError
from .domain.levels import LogLevel
from .domain.records import LogRecord
from .domain.settings import build_settings
from .runtime import build_shipper

CLICK_CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])

EXIT_DELIVERY_FAILED = 1
EXIT_CONFIGURATION_ERROR = 2

#: Entrypoint used by ``preview`` when ``LOKI_ENTRYPOINT`` is unset; nothing is sent.
PREVIEW_ENTRYPOINT = "http://localhost:3100"

_LEVEL_CHOICES = [level.name for level in LogLevel]


def _parse_key_values(ctx: click.Context, param: click.Parameter, values: Sequence[str]) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}", ctx=ctx, param=param)
        parsed[key.strip()] = value
    return parsed


def _record_options(function: Any) -> Any:
    function = click.option(
        "--context",
        "context",
        multiple=True,
        callback=_parse_key_values,
        help="Context field KEY=VALUE attached to the record (repeatable).",
    )(function)
    function = click.option(
        "--label",
        "labels",
        multiple=True,
        callback=_parse_key_values,
        help="Stream label KEY=VALUE attached to the record (repeatable).",
    )(function)
    function = click.option("--channel", default="cli", show_default=True, help="Record channel.")(function)
    function = click.option(
        "--level",
        type=click.Choice(_LEVEL_CHOICES, case_sensitive=False),
        default="INFO",
        show_default=True,
        help="Record severity.",
    )(function)
    return function


def _build_record(message: str, level: str, channel: str, labels: dict[str, str], context: dict[str, str]) -> LogRecord:
    return LogRecord(
        timestamp=datetime.now(timezone.utc),
        level=LogLevel.from_name(level),
        message=message,
        channel=channel,
        context=context,
        labels=labels,
    )


def _fail_configuration(exc: ConfigurationError) -> None:
    Console(stderr=True).print(Text.assemble(("configuration error: ", "red"), str(exc)), soft_wrap=True)
    raise click.exceptions.Exit(EXIT_CONFIGURATION_ERROR)


@click.group(
    help=__init__conf__.title,
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=True,
)
@click.version_option(
    version=__init__conf__.version,
    prog_name=__init__conf__.shell_command,
    message=f"{__init__conf__.shell_command} version {__init__conf__.version}",
)
@click.option(
    "--use-dotenv/--no-use-dotenv",
    default=None,
    help=f"Load the nearest .env before reading LOKI_* variables (env toggle: {config_module.DOTENV_ENV_VAR}).",
)
@click.pass_context
def cli(ctx: click.Context, use_dotenv: bool | None) -> None:
    """Root command; prints the metadata banner when called without a subcommand."""

    wanted = config_module.dotenv_requested() if use_dotenv is None else use_dotenv
    if wanted:
        config_module.enable_dotenv()
    if ctx.invoked_subcommand is None:
        click.echo(__init__conf__.summary_info(), nl=False)


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print resolved metadata so users can inspect installation details."""

    click.echo(__init__conf__.summary_info(), nl=False)


@cli.command("preview", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("message")
@_record_options
def cli_preview(message: str, level: str, channel: str, labels: dict[str, str], context: dict[str, str]) -> None:
    """Print the JSON push payload MESSAGE would produce, without sending it."""

    try:
        api_config = config_module.api_config_from_env()
        api_config.setdefault("entrypoint", PREVIEW_ENTRYPOINT)
        settings = build_settings(api_config)
    except ConfigurationError as exc:
        _fail_configuration(exc)
        return

    record = _build_record(message, level, channel, labels, context)
    entry = format_entry(
        record,
        global_labels=settings.global_labels,
        global_context=settings.global_context,
        system_name=settings.system_name,
    )
    request = build_push_request([entry], settings)
    Console().print_json(request.body.decode("utf-8"))


@cli.command("push", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("message")
@_record_options
def cli_push(message: str, level: str, channel: str, labels: dict[str, str], context: dict[str, str]) -> None:
    """Push MESSAGE to the endpoint named by LOKI_ENTRYPOINT."""

    try:
        shipper = build_shipper(config_module.api_config_from_env(), level=config_module.level_from_env())
    except ConfigurationError as exc:
        _fail_configuration(exc)
        return

    record = _build_record(message, level, channel, labels, context)
    result = shipper.handle_one(record)
    if result.delivered:
        summary = f"delivered {result.entries} entry to {shipper.settings.push_url} (HTTP {result.status_code})"
        Console().print(summary, markup=False, highlight=False, soft_wrap=True)
        return

    if result.reason == "below_threshold":
        summary = f"record below LOKI_LEVEL={shipper.settings.level.name}; nothing sent"
    else:
        summary = f"push failed ({result.reason}): {result.error}"
    Console(stderr=True).print(summary, markup=False, highlight=False, soft_wrap=True)
    raise click.exceptions.Exit(EXIT_DELIVERY_FAILED)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the click group and return its exit code.

    Examples
    --------
    >>> main(["--version"])  # doctest: +ELLIPSIS
    lib_log_loki version ...
    0
    """

    args = list(argv) if argv is not None else None
    try:
        result = cli.main(args=args, prog_name=__init__conf__.shell_command, standalone_mode=False)
    except click.exceptions.Exit as exc:
        return exc.exit_code
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        return 1
    return result if isinstance(result, int) else 0


__all__ = ["cli", "main"]
