"""Command line interface for the Pylo project."""

from __future__ import annotations

import difflib
from copy import deepcopy
from typing import Any, Callable, NoReturn, Optional

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.syntax import Syntax

from pylo.config import (
    ConfigError,
    ConfigManager,
    PyloConfig,
    flatten_for_env,
    resolve_with_precedence,
    set_dotted,
)
from pylo.context import RunMode
from pylo.log import configure_logging
from pylo.report import WebhookReporter, outcome_payload, render_outcome
from pylo.runner import PyloRunner, default_roots

console = Console()


def _fail(exc: Exception, *, code: str, json_output: bool) -> NoReturn:
    """Report `exc` and stop with exit status 1.

    In JSON mode the error is printed as `{"error": {"code", "message"}}` so scripted
    callers always receive a parseable document.
    """
    if json_output:
        console.print_json(data={"error": {"code": code, "message": str(exc)}})
        raise SystemExit(1)
    if isinstance(exc, click.ClickException):
        raise exc
    raise click.ClickException(str(exc)) from exc


def _resolve_output_modes(
    ctx: click.Context,
    config: PyloConfig,
    *,
    json_output: bool,
    quiet: bool,
    summary_mode: bool,
) -> tuple[bool, bool]:
    """Combine CLI flags with configured defaults into (quiet, summary_only).

    Raises:
        click.ClickException: If incompatible output modes are requested.
    """

    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE

    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        return False, False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return quiet_enabled, summary_only


def _run_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the options shared by `rename` and `restore`."""

    decorators = [
        click.argument(
            "roots",
            nargs=-1,
            type=click.Path(exists=True, file_okay=False, path_type=str),
        ),
        click.option(
            "--dry-run/--execute",
            "dry_run",
            default=None,
            help="Preview changes without touching the filesystem, or force execution.",
        ),
        click.option("--webhook", type=str, help="Webhook URL receiving the activity report."),
        click.option("--json", "json_output", is_flag=True, help="Emit the run outcome as JSON."),
        click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines."),
        click.option("--quiet", is_flag=True, help="Suppress non-error output."),
        click.pass_context,
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def _execute_run(
    ctx: click.Context,
    mode: RunMode,
    *,
    roots: tuple[str, ...],
    dry_run: Optional[bool],
    webhook: Optional[str],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Load configuration, run the engine, and report the outcome.

    Item-level failures are reported through the outcome counters and never change
    the exit status.
    """

    overrides: dict[str, Any] = {}
    if roots:
        overrides["run.roots"] = list(roots)
    if dry_run is not None:
        overrides["run.execute_by_default"] = not dry_run
    if webhook:
        overrides["report.webhook_url"] = webhook

    try:
        config = ConfigManager().load(cli_overrides=overrides)

        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )

        runner = PyloRunner(config)
        configure_logging(config.logging, runner.app_dir)

        outcome = runner.run(
            mode, default_roots(config), dry_run=not config.run.execute_by_default
        )

        report = config.report
        reporter = WebhookReporter(
            report.webhook_url,
            username=report.username,
            preview_chars=report.preview_chars,
            attach_line_threshold=report.attach_line_threshold,
            timeout=report.timeout_seconds,
        )
        reporter.send(outcome)

        if json_output:
            console.print_json(data=outcome_payload(outcome))
            return

        render_outcome(console, outcome, quiet=quiet_enabled, summary_only=summary_only)
    except ConfigError as exc:
        _fail(exc, code="config_error", json_output=json_output)
    except click.ClickException as exc:
        _fail(exc, code="cli_error", json_output=json_output)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="pylo")
def cli() -> None:
    """Pylo renames every top-level entry of a folder to generated names, reversibly."""


@cli.command()
@_run_options
def rename(
    ctx: click.Context,
    roots: tuple[str, ...],
    dry_run: Optional[bool],
    webhook: Optional[str],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Give every file and directory directly under ROOTS a generated name.

    ROOTS defaults to the configured roots, or the Desktop when none are set.
    """

    _execute_run(
        ctx,
        RunMode.RENAME,
        roots=roots,
        dry_run=dry_run,
        webhook=webhook,
        json_output=json_output,
        summary_mode=summary_mode,
        quiet=quiet,
    )


@cli.command()
@_run_options
def restore(
    ctx: click.Context,
    roots: tuple[str, ...],
    dry_run: Optional[bool],
    webhook: Optional[str],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Return entries under ROOTS to the names they had before `pylo rename`."""

    _execute_run(
        ctx,
        RunMode.RESTORE,
        roots=roots,
        dry_run=dry_run,
        webhook=webhook,
        json_output=json_output,
        summary_mode=summary_mode,
        quiet=quiet,
    )


@cli.group()
def config() -> None:
    """Manage Pylo configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
@click.option("--env", "as_env", is_flag=True, help="Show settings as PYLO__ variables.")
def config_view(no_env: bool, as_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if as_env:
        for key, value in flatten_for_env(loaded).items():
            console.print(f"{key}={value}", markup=False)
        return

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'naming.prefix'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        original_data = manager.read_overrides()
        file_data = deepcopy(original_data)
        set_dotted(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=PyloConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if file_data == original_data:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    manager.save(file_data)
    after = manager.read_text().splitlines()

    diff = difflib.unified_diff(
        before,
        after,
        fromfile="config.yaml (before)",
        tofile="config.yaml (after)",
        lineterm="",
    )
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))

    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
