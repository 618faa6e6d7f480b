"""sopsfilter CLI — Typer application with the git filter commands.

``clean``, ``smudge`` and ``diff`` are invoked by git itself; their stdout
is file content, so every diagnostic goes to stderr.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sopsfilter import __version__
from sopsfilter.formats import Format

app = typer.Typer(
    name="sopsfilter",
    help="Git clean/smudge filter for sops-encrypted files.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)

# Exit codes: 1 = the operation failed, 2 = environment/config problem
EXIT_FAILURE = 1
EXIT_ENVIRONMENT = 2


@dataclass
class CliOptions:
    """Global flags, carried to the commands on ``ctx.obj``."""

    config: Optional[str] = None
    log_level: Optional[str] = None


def _fail(label: str, exc: Exception, code: int = EXIT_FAILURE) -> typer.Exit:
    console.print(f"[bold red]{label}:[/bold red] {escape(str(exc))}", highlight=False)
    return typer.Exit(code=code)


def _open_repository():
    """Find the work tree, exit 2 on failure."""
    from sopsfilter.git.adapter import RepositoryUnavailable
    from sopsfilter.git.repository import Repository

    try:
        return Repository.open()
    except RepositoryUnavailable as exc:
        raise _fail("Error", exc, EXIT_ENVIRONMENT) from exc


def _load_settings(ctx: typer.Context, repo_root: Path):
    """Load config and set up logging, exit 2 on a bad config."""
    from sopsfilter.config.loader import ConfigError, load_config
    from sopsfilter.logging_config import configure_logging

    options = ctx.find_object(CliOptions) or CliOptions()
    try:
        cfg = load_config(repo_root, options.config)
    except ConfigError as exc:
        raise _fail("Config error", exc, EXIT_ENVIRONMENT) from exc
    if options.log_level:
        cfg.log.level = options.log_level  # type: ignore[assignment]
    configure_logging(cfg.log.level, console=console)
    return cfg


def _read_stdin() -> bytes:
    return typer.get_binary_stream("stdin").read()


def _emit(data: bytes) -> None:
    from sopsfilter.reconcile.sink import WriteFailure, emit

    try:
        emit(data, typer.get_binary_stream("stdout"))
    except WriteFailure as exc:
        raise _fail("Write error", exc) from exc


# ── clean ─────────────────────────────────────────────────────────────────────


@app.command()
def clean(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path of the file, relative to the repository root (%f)"),
    input_type: Optional[Format] = typer.Option(None, "--input-type", help="Plaintext format (default: infer from path)"),
    output_type: Optional[Format] = typer.Option(None, "--output-type", help="Ciphertext format (default: input type)"),
) -> None:
    """Encrypt stdin for the index, reusing the stored ciphertext if unchanged."""
    from sopsfilter import sops
    from sopsfilter.config.loader import resolve_sops_config
    from sopsfilter.formats import format_for_path_or_string
    from sopsfilter.git.adapter import GitError, RepositoryUnavailable
    from sopsfilter.logging_config import get_logger
    from sopsfilter.reconcile.engine import Reconciler, UnhandledStatusError
    from sopsfilter.reconcile.models import ReconciliationInput
    from sopsfilter.reconcile.recoverer import PlaintextRecoverer

    repo = _open_repository()
    cfg = _load_settings(ctx, repo.root)
    sops_config = resolve_sops_config(cfg, repo.root)
    plaintext = _read_stdin()

    plaintext_format = format_for_path_or_string(path, input_type)
    ciphertext_format = format_for_path_or_string(path, output_type or input_type)
    try:
        fresh = sops.encrypt(
            plaintext,
            path,
            plaintext_format,
            ciphertext_format,
            binary=cfg.sops.binary,
            config_file=sops_config,
            cwd=repo.root,
        )
    except sops.SopsError as exc:
        raise _fail("sops error", exc) from exc

    request = ReconciliationInput(
        path=path,
        plaintext=plaintext,
        fresh_ciphertext=fresh,
        input_format=input_type,
        output_format=output_type,
    )
    reconciler = Reconciler(
        repo,
        PlaintextRecoverer(binary=cfg.sops.binary, config_file=sops_config, cwd=repo.root),
        get_logger("reconcile"),
    )
    try:
        result = reconciler.decide(request)
    except UnhandledStatusError as exc:
        raise _fail("Not handled", exc) from exc
    except RepositoryUnavailable as exc:
        raise _fail("Error", exc, EXIT_ENVIRONMENT) from exc
    except GitError as exc:
        raise _fail("Git error", exc) from exc
    except sops.SopsError as exc:
        raise _fail("sops error", exc) from exc

    _emit(result.data)


# ── smudge ────────────────────────────────────────────────────────────────────


@app.command()
def smudge(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path of the file, relative to the repository root (%f)"),
    input_type: Optional[Format] = typer.Option(None, "--input-type", help="Plaintext format (default: infer from path)"),
    output_type: Optional[Format] = typer.Option(None, "--output-type", help="Ciphertext format (default: input type)"),
) -> None:
    """Decrypt stdin for the working tree."""
    from sopsfilter import sops
    from sopsfilter.config.loader import resolve_sops_config
    from sopsfilter.formats import format_for_path_or_string
    from sopsfilter.logging_config import get_logger

    repo = _open_repository()
    cfg = _load_settings(ctx, repo.root)
    log = get_logger("smudge")
    data = _read_stdin()

    plaintext_format = format_for_path_or_string(path, input_type)
    ciphertext_format = format_for_path_or_string(path, output_type or input_type)
    try:
        plaintext = sops.decrypt(
            data,
            ciphertext_format,
            plaintext_format,
            binary=cfg.sops.binary,
            config_file=resolve_sops_config(cfg, repo.root),
            cwd=repo.root,
        )
    except sops.DecodeFailure as exc:
        # Content committed before the filter existed is not encrypted
        log.warning("%s: not a sops document, checking out unchanged (%s)", path, exc)
        plaintext = data
    except sops.SopsError as exc:
        raise _fail("sops error", exc) from exc

    _emit(plaintext)


# ── diff ──────────────────────────────────────────────────────────────────────


@app.command()
def diff(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="File handed over by git's textconv"),
    input_type: Optional[Format] = typer.Option(None, "--input-type", help="Format (default: infer from name)"),
) -> None:
    """Print the decrypted content of FILE (git diff textconv)."""
    from sopsfilter import sops
    from sopsfilter.config.loader import resolve_sops_config
    from sopsfilter.formats import format_for_path_or_string
    from sopsfilter.logging_config import get_logger

    repo = _open_repository()
    cfg = _load_settings(ctx, repo.root)
    log = get_logger("diff")

    try:
        data = file.read_bytes()
    except OSError as exc:
        raise _fail("Error", exc) from exc

    fmt = format_for_path_or_string(file.name, input_type)
    try:
        content = sops.decrypt(
            data,
            fmt,
            binary=cfg.sops.binary,
            config_file=resolve_sops_config(cfg, repo.root),
            cwd=repo.root,
        )
    except sops.DecodeFailure:
        # The working-tree side of a diff is already plaintext
        log.debug("%s: not encrypted, shown as is", file)
        content = data
    except sops.SopsError as exc:
        raise _fail("sops error", exc) from exc

    _emit(content)


# ── install ───────────────────────────────────────────────────────────────────


@app.command()
def install(
    ctx: typer.Context,
    pattern: Optional[List[str]] = typer.Option(None, "--pattern", "-p", help="gitattributes pattern (repeatable)"),
    format: Optional[Format] = typer.Option(None, "--format", "-f", help="Pin the format instead of inferring it"),
    name: Optional[str] = typer.Option(None, "--name", help="Driver name (default from config)"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing driver with the same name"),
) -> None:
    """Register the filter and diff driver in this repository."""
    from sopsfilter.driver.installer import driver_name, install_driver

    repo = _open_repository()
    cfg = _load_settings(ctx, repo.root)
    patterns = list(pattern or cfg.filter.patterns)
    if not patterns:
        console.print("[bold red]Error:[/bold red] no --pattern given and none configured in [filter] patterns")
        raise typer.Exit(code=EXIT_ENVIRONMENT)

    success, msg = install_driver(
        repo.root,
        driver_name(name or cfg.filter.name, format),
        patterns,
        fmt=format,
        force=force,
    )
    if success:
        console.print(f"[green]✓[/green] {msg}")
    else:
        console.print(f"[red]✗[/red] {msg}")
        raise typer.Exit(code=EXIT_FAILURE)


# ── uninstall ─────────────────────────────────────────────────────────────────


@app.command()
def uninstall(
    ctx: typer.Context,
    format: Optional[Format] = typer.Option(None, "--format", "-f", help="Format the driver was installed with"),
    name: Optional[str] = typer.Option(None, "--name", help="Driver name (default from config)"),
) -> None:
    """Remove the filter and diff driver from this repository."""
    from sopsfilter.driver.installer import driver_name, uninstall_driver

    repo = _open_repository()
    cfg = _load_settings(ctx, repo.root)
    success, msg = uninstall_driver(repo.root, driver_name(name or cfg.filter.name, format))
    if success:
        console.print(f"[green]✓[/green] {msg}")
    else:
        console.print(f"[red]✗[/red] {msg}")
        raise typer.Exit(code=EXIT_FAILURE)


# ── check ─────────────────────────────────────────────────────────────────────


@app.command()
def check(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path relative to the repository root"),
    input_type: Optional[Format] = typer.Option(None, "--input-type", help="Format (default: infer from path)"),
) -> None:
    """Show how PATH would be filtered: format, attributes, sops rule, status."""
    from sopsfilter import sops
    from sopsfilter.config.loader import resolve_sops_config
    from sopsfilter.formats import format_for_path_or_string
    from sopsfilter.git.adapter import GitError, get_attribute
    from sopsfilter.sops_config import (
        SopsConfigError,
        find_sops_config,
        load_creation_rules,
        matching_rule,
    )

    repo = _open_repository()
    cfg = _load_settings(ctx, repo.root)

    sops_config = resolve_sops_config(cfg, repo.root) or find_sops_config(repo.root)
    if sops_config is None:
        rule_text = "[yellow]no .sops.yaml found[/yellow]"
    else:
        try:
            rule = matching_rule(load_creation_rules(sops_config), path)
        except SopsConfigError as exc:
            raise _fail("sops config error", exc, EXIT_ENVIRONMENT) from exc
        if rule is None:
            rule_text = "[red]no creation rule matches[/red]"
        else:
            rule_text = escape(f"#{rule.index} {rule.path_regex or '(any)'} → {', '.join(rule.key_types) or '-'}")

    try:
        status = repo.classify(path)
        filter_attr = get_attribute(repo.root, path, "filter")
        diff_attr = get_attribute(repo.root, path, "diff")
    except GitError as exc:
        raise _fail("Git error", exc) from exc

    table = Table(title=escape(path), show_header=False, title_style="bold", border_style="dim")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Format", format_for_path_or_string(path, input_type).value)
    table.add_row(
        "sops binary",
        escape(cfg.sops.binary) if sops.is_sops_available(cfg.sops.binary) else "[red]not found[/red]",
    )
    table.add_row("Filter driver", escape(filter_attr) if filter_attr else "[yellow]unset[/yellow]")
    table.add_row("Diff driver", escape(diff_attr) if diff_attr else "[yellow]unset[/yellow]")
    table.add_row("sops config", escape(str(sops_config)) if sops_config else "-")
    table.add_row("Creation rule", rule_text)
    table.add_row("Staging", status.staging.value)
    table.add_row("Worktree", status.worktree.value)
    console.print(table)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init() -> None:
    """Generate a starter .sopsfilter.toml in the repo root."""
    from sopsfilter.config.defaults import DEFAULT_TOML
    from sopsfilter.config.loader import CONFIG_FILE_NAME

    repo = _open_repository()
    config_path = repo.root / CONFIG_FILE_NAME

    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILE_NAME} already exists at {config_path}")
        raise typer.Exit(code=EXIT_FAILURE)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"sopsfilter {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .sopsfilter.toml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log decisions to stderr"),
    debug: bool = typer.Option(False, "--debug", help="Debug logging"),
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """sopsfilter — keep sops-encrypted files stable in git history."""
    ctx.obj = CliOptions(
        config=config,
        log_level="debug" if debug else "info" if verbose else None,
    )
