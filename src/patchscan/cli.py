"""patchscan CLI — Typer application with ls, grep, events, and init commands."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Tuple

import typer
from rich.console import Console

from patchscan import __version__

if TYPE_CHECKING:
    from patchscan.config.schema import PatchScanConfig
    from patchscan.output.terminal import ListingStyle
    from patchscan.tools.lsdiff import ListOptions

app = typer.Typer(
    name="patchscan",
    help="List and search the files touched by unified, context and git diffs.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)


def _setup(config: Optional[str], log_level: Optional[str]) -> "PatchScanConfig":
    """Load config and configure logging, exit 2 on a bad config."""
    from patchscan.config.loader import ConfigError, load_config
    from patchscan.config.schema import LOG_LEVELS
    from patchscan.logging import configure_logging

    try:
        cfg = load_config(config_override=config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    if log_level:
        if log_level.lower() not in LOG_LEVELS:
            console.print(f"[bold red]Invalid log level:[/bold red] {log_level}")
            raise typer.Exit(code=2)
        cfg.logging.level = log_level.lower()

    configure_logging(cfg.logging.level, cfg.logging.format)
    return cfg


def _resolve_format(cfg: "PatchScanConfig", format: Optional[str]) -> str:
    from patchscan.config.schema import OUTPUT_FORMATS

    if format:
        if format not in OUTPUT_FORMATS:
            console.print(f"[bold red]Invalid format:[/bold red] {format}")
            raise typer.Exit(code=2)
        cfg.output.format = format  # type: ignore[assignment]
    return cfg.output.format


def _listing_setup(
    cfg: "PatchScanConfig",
    files: List[Path],
    *,
    status: bool,
    line_number: bool,
    number_files: bool,
    with_filename: Optional[bool],
    include: List[str],
    exclude: List[str],
    include_from: List[Path],
    exclude_from: List[Path],
    strip_match: int,
    strip: int,
    add_prefix: Optional[str],
    add_old_prefix: Optional[str],
    add_new_prefix: Optional[str],
    git_prefixes: Optional[str],
    files_range: Optional[str],
    lines_range: Optional[str],
    hunks_range: Optional[str],
    empty_as_absent: bool,
    decompress: bool,
    verbose: int,
) -> Tuple["ListOptions", "ListingStyle"]:
    """Turn the shared listing flags into option objects."""
    from patchscan.config.schema import GIT_PREFIX_MODES
    from patchscan.output.terminal import ListingStyle
    from patchscan.tools.lsdiff import ListOptions
    from patchscan.tools.patterns import FileFilter
    from patchscan.tools.ranges import RangeError, RangeSet

    if git_prefixes:
        if git_prefixes not in GIT_PREFIX_MODES:
            console.print(f"[bold red]Invalid git-prefixes mode:[/bold red] {git_prefixes}")
            raise typer.Exit(code=2)
        cfg.output.git_prefixes = git_prefixes  # type: ignore[assignment]

    has_patterns = bool(include or exclude or include_from or exclude_from)
    if strip_match and not strip and not has_patterns:
        console.print(
            "[yellow]⚠[/yellow]  -p given without -i or -x; treating it as --strip"
        )
        strip = strip_match

    try:
        file_filter = FileFilter.build(
            include=include,
            exclude=exclude,
            include_files=include_from,
            exclude_files=exclude_from,
            strip_match=strip_match,
        )
    except OSError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    try:
        files_set, lines_set, hunks_set = (
            RangeSet.parse(spec) if spec else None
            for spec in (files_range, lines_range, hunks_range)
        )
    except RangeError as exc:
        console.print(f"[bold red]Invalid range:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    options = ListOptions(
        file_filter=file_filter,
        git_prefixes=cfg.output.git_prefixes,
        strip=strip,
        add_prefix=add_prefix,
        add_old_prefix=add_old_prefix,
        add_new_prefix=add_new_prefix,
        files=files_set,
        lines=lines_set,
        hunks=hunks_set,
        empty_as_absent=empty_as_absent,
        decompress=decompress,
        max_header_lines=cfg.scanner.max_header_lines,
    )
    style = ListingStyle(
        with_filename=len(files) > 1 if with_filename is None else with_filename,
        line_numbers=line_number,
        number_files=number_files,
        show_status=status,
        verbose=verbose,
    )
    return options, style


def _print_listing(entries, style: "ListingStyle", fmt: str) -> None:
    from patchscan.output import json_report, terminal

    if fmt == "json":
        print(json_report.render_listing(entries))
    else:
        terminal.render_listing(entries, style)


# ── ls ────────────────────────────────────────────────────────────────────────


@app.command("ls")
def ls_command(
    files: Optional[List[Path]] = typer.Argument(None, help="Patch files (stdin when omitted)"),
    status: bool = typer.Option(False, "--status", "-s", help="Show file additions (+), removals (-) and modifications (!)"),
    line_number: bool = typer.Option(False, "--line-number", "-n", help="Show the line number each file's headers start at"),
    number_files: bool = typer.Option(False, "--number-files", "-N", help="Show file numbers"),
    with_filename: Optional[bool] = typer.Option(None, "--with-filename/--no-filename", "-H/-h", help="Prefix entries with the patch name"),
    include: Optional[List[str]] = typer.Option(None, "--include", "-i", help="Only list files matching this glob"),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-x", help="Skip files matching this glob"),
    include_from: Optional[List[Path]] = typer.Option(None, "--include-from-file", "-I", help="Read include globs from a file"),
    exclude_from: Optional[List[Path]] = typer.Option(None, "--exclude-from-file", "-X", help="Read exclude globs from a file"),
    strip_match: int = typer.Option(0, "--strip-match", "-p", min=0, help="Strip N leading components before matching"),
    strip: int = typer.Option(0, "--strip", min=0, help="Strip N leading components from listed names"),
    add_prefix: Optional[str] = typer.Option(None, "--addprefix", help="Prepend PREFIX to listed names"),
    add_old_prefix: Optional[str] = typer.Option(None, "--addoldprefix", help="Prepend PREFIX to names taken from the old side"),
    add_new_prefix: Optional[str] = typer.Option(None, "--addnewprefix", help="Prepend PREFIX to names taken from the new side"),
    git_prefixes: Optional[str] = typer.Option(None, "--git-prefixes", help="Git a/ b/ prefixes: strip | keep"),
    files_range: Optional[str] = typer.Option(None, "--files", "-F", help="Only files numbered in RANGE (xRANGE excludes)"),
    lines_range: Optional[str] = typer.Option(None, "--lines", help="Only files with a hunk touching old lines in RANGE (xRANGE excludes)"),
    hunks_range: Optional[str] = typer.Option(None, "--hunks", help="Only files with a hunk numbered in RANGE (xRANGE excludes)"),
    empty_as_absent: bool = typer.Option(False, "--empty-files-as-absent", "-E", help="Treat empty files as absent in --status"),
    decompress: bool = typer.Option(False, "--decompress", "-z", help="Decompress .gz and .bz2 inputs"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="With -n, also list hunks (twice: with context)"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .patchscan.toml"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="debug | info | warning | error | critical"),
) -> None:
    """List the files modified by a patch."""
    from patchscan.scanner.errors import ScanError
    from patchscan.tools.lsdiff import FileLister

    cfg = _setup(config, log_level)
    fmt = _resolve_format(cfg, format)
    paths = list(files or [])
    options, style = _listing_setup(
        cfg, paths,
        status=status, line_number=line_number, number_files=number_files,
        with_filename=with_filename, include=list(include or []),
        exclude=list(exclude or []), include_from=list(include_from or []),
        exclude_from=list(exclude_from or []), strip_match=strip_match,
        strip=strip, add_prefix=add_prefix, add_old_prefix=add_old_prefix,
        add_new_prefix=add_new_prefix, git_prefixes=git_prefixes,
        files_range=files_range, lines_range=lines_range, hunks_range=hunks_range,
        empty_as_absent=empty_as_absent, decompress=decompress, verbose=verbose,
    )

    try:
        entries = FileLister(options).list_paths(paths)
    except ScanError as exc:
        console.print(f"[bold red]Scanner error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc
    except OSError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    _print_listing(entries, style, fmt)


# ── grep ──────────────────────────────────────────────────────────────────────


@app.command("grep")
def grep_command(
    pattern: Optional[str] = typer.Argument(None, help="Regex to search added, removed and changed lines for"),
    files: Optional[List[Path]] = typer.Argument(None, help="Patch files (stdin when omitted)"),
    regex_file: Optional[List[Path]] = typer.Option(None, "--file", "-f", help="Read regexes from a file, one per line"),
    extended: bool = typer.Option(False, "--extended-regexp", "-E", help="Accepted for compatibility; regexes are always extended"),
    ignore_case: bool = typer.Option(False, "--ignore-case", help="Match case-insensitively"),
    status: bool = typer.Option(False, "--status", "-s", help="Show file additions (+), removals (-) and modifications (!)"),
    line_number: bool = typer.Option(False, "--line-number", "-n", help="Show the line number each file's headers start at"),
    number_files: bool = typer.Option(False, "--number-files", "-N", help="Show file numbers"),
    with_filename: Optional[bool] = typer.Option(None, "--with-filename/--no-filename", "-H/-h", help="Prefix entries with the patch name"),
    include: Optional[List[str]] = typer.Option(None, "--include", "-i", help="Only search files matching this glob"),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-x", help="Skip files matching this glob"),
    include_from: Optional[List[Path]] = typer.Option(None, "--include-from-file", "-I", help="Read include globs from a file"),
    exclude_from: Optional[List[Path]] = typer.Option(None, "--exclude-from-file", "-X", help="Read exclude globs from a file"),
    strip_match: int = typer.Option(0, "--strip-match", "-p", min=0, help="Strip N leading components before matching"),
    strip: int = typer.Option(0, "--strip", min=0, help="Strip N leading components from listed names"),
    add_prefix: Optional[str] = typer.Option(None, "--addprefix", help="Prepend PREFIX to listed names"),
    add_old_prefix: Optional[str] = typer.Option(None, "--addoldprefix", help="Prepend PREFIX to names taken from the old side"),
    add_new_prefix: Optional[str] = typer.Option(None, "--addnewprefix", help="Prepend PREFIX to names taken from the new side"),
    git_prefixes: Optional[str] = typer.Option(None, "--git-prefixes", help="Git a/ b/ prefixes: strip | keep"),
    files_range: Optional[str] = typer.Option(None, "--files", "-F", help="Only search files numbered in RANGE (xRANGE excludes)"),
    lines_range: Optional[str] = typer.Option(None, "--lines", help="Only search hunks touching old lines in RANGE (xRANGE excludes)"),
    hunks_range: Optional[str] = typer.Option(None, "--hunks", help="Only search hunks numbered in RANGE (xRANGE excludes)"),
    empty_as_absent: bool = typer.Option(False, "--empty-files-as-absent", help="Treat empty files as absent in --status"),
    decompress: bool = typer.Option(False, "--decompress", "-z", help="Decompress .gz and .bz2 inputs"),
    format: Optional[str] = typer.Option(None, "--format", help="Output format: terminal | json"),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="With -n, also list matching hunks"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .patchscan.toml"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="debug | info | warning | error | critical"),
) -> None:
    """List the files whose changed lines match a regex. Exits 1 on no match."""
    from patchscan.scanner.errors import ScanError
    from patchscan.tools.grepdiff import (
        HunkGrepper,
        PatternError,
        compile_patterns,
        read_regex_file,
    )

    cfg = _setup(config, log_level)
    fmt = _resolve_format(cfg, format)

    paths = list(files or [])
    raw_patterns: List[str] = []
    try:
        for path in regex_file or []:
            raw_patterns.extend(read_regex_file(path))
    except OSError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    # With -f the first positional argument is a patch file, not a regex.
    if pattern is not None:
        if regex_file:
            paths.insert(0, Path(pattern))
        else:
            raw_patterns.append(pattern)

    try:
        patterns = compile_patterns(raw_patterns, ignore_case=ignore_case)
        options, style = _listing_setup(
            cfg, paths,
            status=status, line_number=line_number, number_files=number_files,
            with_filename=with_filename, include=list(include or []),
            exclude=list(exclude or []), include_from=list(include_from or []),
            exclude_from=list(exclude_from or []), strip_match=strip_match,
            strip=strip, add_prefix=add_prefix, add_old_prefix=add_old_prefix,
            add_new_prefix=add_new_prefix, git_prefixes=git_prefixes,
            files_range=files_range, lines_range=lines_range, hunks_range=hunks_range,
            empty_as_absent=empty_as_absent, decompress=decompress, verbose=verbose,
        )
        grepper = HunkGrepper(patterns, options)
    except PatternError as exc:
        console.print(f"[bold red]Pattern error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    try:
        entries = grepper.grep_paths(paths)
    except ScanError as exc:
        console.print(f"[bold red]Scanner error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc
    except OSError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    _print_listing(entries, style, fmt)
    if not entries:
        raise typer.Exit(code=1)


# ── events ────────────────────────────────────────────────────────────────────


@app.command()
def events(
    file: Optional[Path] = typer.Argument(None, help="Patch file (stdin when omitted)"),
    decompress: bool = typer.Option(False, "--decompress", "-z", help="Decompress .gz and .bz2 input"),
    max_header_lines: Optional[int] = typer.Option(None, "--max-header-lines", min=1, help="Give up on a header block after N lines"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .patchscan.toml"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="debug | info | warning | error | critical"),
) -> None:
    """Dump the scanner's event stream for a patch."""
    from patchscan.output import json_report, terminal
    from patchscan.scanner import Scanner
    from patchscan.scanner.errors import ScanError
    from patchscan.tools.inputs import open_patch

    cfg = _setup(config, log_level)
    fmt = _resolve_format(cfg, format)
    if max_header_lines is not None:
        cfg.scanner.max_header_lines = max_header_lines

    try:
        with open_patch(file, decompress=decompress) as stream:
            scanner = Scanner(stream, max_header_lines=cfg.scanner.max_header_lines)
            collected = list(scanner)
    except ScanError as exc:
        console.print(f"[bold red]Scanner error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc
    except OSError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    if fmt == "json":
        print(json_report.render_events(collected))
    else:
        terminal.render_events(collected)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init() -> None:
    """Generate a starter .patchscan.toml in the current directory."""
    from patchscan.config.defaults import DEFAULT_TOML
    from patchscan.config.loader import CONFIG_FILENAME

    config_path = Path.cwd() / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"patchscan {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """patchscan — list and search the files touched by a patch."""
