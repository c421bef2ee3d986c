"""Command line interface for mvedit."""

from __future__ import annotations

import difflib
import logging
import shlex
from pathlib import Path
from typing import Any, Callable, Sequence

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from mvedit.config import (
    ConfigError,
    ConfigManager,
    MveditConfig,
    flatten_for_env,
    resolve_with_precedence,
)
from mvedit.config.resolver import set_dotted
from mvedit.listing import FileLister, ListingError, split_patterns
from mvedit.rename.errors import ExecutionError, PlanError
from mvedit.rename.models import ExecutionFailure, ExecutionSuccess, NoOp
from mvedit.session import CommitOutcome, RenameSession, summarize

console = Console()
_log_handler: logging.Handler | None = None


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Print output unless quiet or summary-only mode filters it out.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """

    if quiet and mode != "error":
        return
    if summary_only and mode not in {"summary", "warning", "error"}:
        return
    console.print(message)


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {escape(str(root))}: {parts}.[/green]"


def _output_modes(
    ctx: click.Context,
    config: MveditConfig,
    *,
    quiet: bool,
    summary_mode: bool,
    json_output: bool,
) -> tuple[bool, bool]:
    """Resolve quiet/summary flags against configured CLI defaults.

    Returns:
        tuple[bool, bool]: Effective ``(quiet, summary_only)`` values.

    Raises:
        click.ClickException: If the flags are combined in an unsupported way.
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


def _configure_logging(level: str, verbose: int) -> None:
    """Route mvedit log records to stderr through Rich."""

    global _log_handler
    if verbose:
        level = "DEBUG" if verbose > 1 else "INFO"
    logger = logging.getLogger("mvedit")
    if _log_handler is not None:
        logger.removeHandler(_log_handler)
    _log_handler = RichHandler(console=Console(stderr=True), show_path=False)
    logger.addHandler(_log_handler)
    logger.setLevel(level)


def _load_config(ctx: click.Context) -> MveditConfig:
    manager = ConfigManager()
    manager.ensure_exists()
    config = manager.load()
    _configure_logging(config.logging.level, (ctx.find_root().obj or {}).get("verbose", 0))
    return config


def _collect_patterns(values: Sequence[str]) -> list[str]:
    patterns: list[str] = []
    for value in values:
        patterns.extend(split_patterns(value))
    return patterns


def _read_list(path: Path) -> list[str]:
    return [line.rstrip() for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def _outcome_payload(outcome: NoOp | ExecutionSuccess, root: Path) -> dict[str, Any]:
    if isinstance(outcome, NoOp):
        status = "noop"
    else:
        status = "preview" if outcome.dry_run else "success"
    return {
        "context": {"root": root.as_posix()},
        "status": status,
        "message": summarize(outcome),
        "result": outcome.model_dump(mode="json"),
    }


def _render_outcome(
    outcome: CommitOutcome,
    *,
    root: Path,
    command: str,
    json_output: bool,
    quiet: bool,
    summary_only: bool,
) -> None:
    """Print the result of a commit, or fail the command for a failed apply."""

    if isinstance(outcome, ExecutionFailure):
        outcome.raise_for_failure()

    if json_output:
        console.print_json(data=_outcome_payload(outcome, root))
        return

    if isinstance(outcome, NoOp):
        _emit_message(
            "[yellow]Nothing to do; the list is unchanged.[/yellow]",
            mode="warning",
            quiet=quiet,
            summary_only=summary_only,
        )
        return

    label = "Dry run for" if outcome.dry_run else "Renamed in"
    table = Table(title=f"{label} {escape(str(root))}")
    table.add_column("#", justify="right")
    table.add_column("Move", overflow="fold")
    lines = outcome.preview if outcome.dry_run else [str(pair) for pair in outcome.applied]
    for number, line in enumerate(lines, start=1):
        table.add_row(str(number), escape(line))
    _emit_message(table, mode="detail", quiet=quiet, summary_only=summary_only)

    metrics: dict[str, Any] = {"dry_run": outcome.dry_run, "renames": len(lines)}
    if not outcome.dry_run:
        metrics["pruned"] = outcome.pruned
    _emit_message(
        _format_summary_line(command, root, metrics),
        mode="summary",
        quiet=quiet,
        summary_only=summary_only,
    )


def _run_guarded(action: str, json_output: bool, body: Callable[[], None]) -> None:
    """Run ``body`` and translate errors into CLI failures."""

    try:
        body()
    except PlanError as exc:
        _handle_cli_error(
            str(exc),
            code="plan_error",
            json_output=json_output,
            details={"kind": type(exc).__name__},
            original=exc,
        )
    except ExecutionError as exc:
        _handle_cli_error(
            str(exc),
            code="execution_error",
            json_output=json_output,
            details=exc.result.model_dump(mode="json"),
            original=exc,
        )
    except ListingError as exc:
        _handle_cli_error(str(exc), code="listing_error", json_output=json_output, original=exc)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)
    except click.Abort:
        raise
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error while {action}: {exc}",
            code="internal_error",
            json_output=json_output,
            details={"exception": type(exc).__name__},
            original=exc,
        )


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="mvedit")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-vv for debug).")
@click.pass_context
def cli(ctx: click.Context, verbose: int) -> None:
    """mvedit renames and moves files by editing their paths as text.

    Returns:
        None: This function is invoked for its side effects.
    """
    ctx.obj = {"verbose": verbose}


@cli.command()
@click.argument("patterns", nargs=-1)
@click.option(
    "-g",
    "--glob",
    "globs",
    multiple=True,
    help="Glob filter passed to the listing command; comma-separated values allowed.",
)
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory to list and rename in (defaults to the current directory).",
)
@click.option(
    "--dry-run/--no-dry-run",
    default=None,
    help="Preview renames instead of applying them (defaults to rename.dry_run).",
)
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the outcome.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def edit(
    ctx: click.Context,
    patterns: tuple[str, ...],
    globs: tuple[str, ...],
    root: Path | None,
    dry_run: bool | None,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Edit the listed file paths in $EDITOR and apply the changes on save.

    Each line is one file; change a line to move that file. Lines must not be
    added, removed, or left blank.

    Args:
        ctx: Click context used for parameter source inspection.
        patterns: Glob filters for the listing command.
        globs: Additional glob filters given with ``-g``.
        root: Directory to operate in.
        dry_run: Session dry-run override.
        json_output: If True, emit JSON describing the outcome.
        summary_mode: When True, limit output to summary lines and warnings.
        quiet: When True, suppress non-error output entirely.
    """

    def body() -> None:
        config = _load_config(ctx)
        quiet_enabled, summary_only = _output_modes(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        work_root = (root or Path.cwd()).expanduser().resolve()
        lister = FileLister(config.listing.command)
        files = lister.list_files(_collect_patterns(patterns + globs), cwd=work_root)
        if not files:
            _emit_message(
                "[yellow]No files returned by the listing command.[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            return

        session = RenameSession.from_config(files, config, root=work_root, dry_run=dry_run)
        text = session.text()
        while True:
            edited = click.edit(text, extension=".txt")
            if edited is None:
                outcome: CommitOutcome = NoOp(count=len(files))
                break
            lines = edited.splitlines()
            try:
                outcome = session.commit(lines)
            except PlanError as exc:
                if json_output:
                    raise
                _emit_message(
                    f"[red]mvedit: {escape(str(exc))}[/red]",
                    mode="error",
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )
                if not click.confirm("Re-open the editor?", default=True):
                    raise
                text = edited
                continue

            if (
                isinstance(outcome, ExecutionSuccess)
                and outcome.dry_run
                and not json_output
                and not quiet_enabled
            ):
                _render_outcome(
                    outcome,
                    root=work_root,
                    command="Rename",
                    json_output=False,
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )
                if click.confirm("Apply these renames?", default=False):
                    session.toggle_dry_run()
                    outcome = session.commit(lines)
                else:
                    return
            break

        _render_outcome(
            outcome,
            root=work_root,
            command="Rename",
            json_output=json_output,
            quiet=quiet_enabled,
            summary_only=summary_only,
        )

    _run_guarded("renaming files", json_output, body)


@cli.command()
@click.argument("original", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("edited", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory the listed paths are relative to (defaults to the current directory).",
)
@click.option(
    "--dry-run/--no-dry-run",
    default=None,
    help="Preview renames instead of applying them (defaults to rename.dry_run).",
)
@click.option(
    "--update/--no-update",
    default=True,
    help="Rewrite ORIGINAL with the edited list after a successful apply.",
)
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the outcome.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def apply(
    ctx: click.Context,
    original: Path,
    edited: Path,
    root: Path | None,
    dry_run: bool | None,
    update: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Apply the differences between two path lists, ORIGINAL and EDITED.

    Args:
        ctx: Click context used for parameter source inspection.
        original: File listing one current path per line.
        edited: File listing the desired path for each line of ORIGINAL.
        root: Directory the paths are relative to.
        dry_run: Session dry-run override.
        update: Whether ORIGINAL is rewritten after a successful apply.
        json_output: If True, emit JSON describing the outcome.
        summary_mode: When True, limit output to summary lines and warnings.
        quiet: When True, suppress non-error output entirely.
    """

    def body() -> None:
        config = _load_config(ctx)
        quiet_enabled, summary_only = _output_modes(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        work_root = (root or Path.cwd()).expanduser().resolve()
        session = RenameSession.from_config(
            _read_list(original), config, root=work_root, dry_run=dry_run
        )
        outcome = session.commit(edited.read_text(encoding="utf-8").splitlines())
        if update and isinstance(outcome, ExecutionSuccess) and not outcome.dry_run:
            original.write_text(session.text(), encoding="utf-8")
        _render_outcome(
            outcome,
            root=work_root,
            command="Rename",
            json_output=json_output,
            quiet=quiet_enabled,
            summary_only=summary_only,
        )

    _run_guarded("renaming files", json_output, body)


@cli.command("ls")
@click.argument("patterns", nargs=-1)
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory to list (defaults to the current directory).",
)
@click.pass_context
def list_command(ctx: click.Context, patterns: tuple[str, ...], root: Path | None) -> None:
    """Print the paths `mvedit edit` would open, one per line."""

    def body() -> None:
        config = _load_config(ctx)
        lister = FileLister(config.listing.command)
        work_root = (root or Path.cwd()).expanduser().resolve()
        for path in lister.list_files(_collect_patterns(patterns), cwd=work_root):
            click.echo(path)

    _run_guarded("listing files", False, body)


@cli.group()
def config() -> None:
    """Manage mvedit configuration files and overrides.

    Returns:
        None: This function is invoked for its side effects.
    """


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
@click.option(
    "--as-env",
    is_flag=True,
    help="Print the settings as MVEDIT__SECTION__KEY environment assignments.",
)
def config_view(no_env: bool, as_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Args:
        no_env: If True, ignore environment-derived overrides.
        as_env: If True, print shell-ready environment assignments instead of YAML.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        effective = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if as_env:
        for key, value in flatten_for_env(effective).items():
            click.echo(f"{key}={shlex.quote(value)}")
        return

    yaml_text = yaml.safe_dump(effective.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        key: Dotted path describing the configuration field to update.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        before = manager.read_text().splitlines()
        segments = [segment.strip() for segment in key.split(".") if segment.strip()]
        if not segments:
            raise click.ClickException("KEY must specify a dotted path such as 'rename.dry_run'.")

        try:
            parsed_value = yaml.safe_load(value)
        except yaml.YAMLError as exc:
            raise click.ClickException(f"Unable to parse value: {exc}") from exc

        file_data = manager.load_file_overrides()
        set_dotted(file_data, segments, parsed_value, source_name="config")
        resolve_with_precedence(defaults=MveditConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()

    # The timestamp line changes on every save; compare settings only.
    before = [line for line in before if not line.startswith("# Last updated:")]
    after = [line for line in after if not line.startswith("# Last updated:")]
    diff = list(
        difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    if not diff:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an interactive editor session.

    Raises:
        click.ClickException: If edited content is invalid or cannot be saved.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")

    if edited is None or edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc

    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        resolve_with_precedence(defaults=MveditConfig(), file_overrides=parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point.

    Returns:
        None: This function is invoked for its side effects.
    """
    cli()


if __name__ == "__main__":
    main()
