"""CLI command implementations"""

import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
import yaml

from cardbox.config import Settings, load_config
from cardbox.core.assemble import assemble
from cardbox.core.container import extract_report
from cardbox.core.models import AssemblyOptions, AssemblyResult
from cardbox.core.pipeline import decode_file, decode_from_file_map, read_dir, write_file
from cardbox.errors import AssemblyError, CardboxError


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling and configure logging."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    return settings


def _decode(path: Path, options: AssemblyOptions) -> AssemblyResult:
    """Decode a .card file or an unpacked card directory, exiting on failure."""
    try:
        if path.is_dir():
            return decode_from_file_map(read_dir(path), options)
        return decode_file(path, options)
    except AssemblyError as e:
        _echo_warnings(e.warnings)
        _fail(f"Cannot assemble {path}", e)
    except CardboxError as e:
        _fail(f"Cannot read {path}", e)


def _echo_warnings(warnings: list[str]) -> None:
    for w in warnings:
        typer.echo(f"  warning: {w}", err=True)


def _summary(result: AssemblyResult) -> dict:
    """Plain-data view of a decoded document for printing."""
    doc = result.document
    summary = {
        "metadata": doc.metadata.model_dump(exclude_none=True),
        "components": [c.model_dump() for c in doc.components],
        "configs": {cid: c.model_dump(exclude={"id"}, exclude_none=True) for cid, c in doc.configs.items()},
        "warnings": result.warnings,
    }
    if doc.layout is not None:
        summary["layout"] = doc.layout.model_dump(exclude_none=True)
    return summary


def inspect_cmd(
    path: Annotated[Path, typer.Argument(exists=True, help=".card file or unpacked card directory")],
    strict: Annotated[Optional[bool], typer.Option("--strict/--lenient", help="Fail on the first component error")] = None,
    fmt: Annotated[Optional[str], typer.Option("--format", help="Output format: yaml or json")] = None,
    ):
    """Decode a card and print its metadata, components, configs, and warnings."""
    settings = _settings(overrides={"strict": strict, "output_format": fmt})
    result = _decode(path, settings.assembly_options())
    summary = _summary(result)
    if settings.output_format == "json":
        typer.echo(json.dumps(summary, indent=2, ensure_ascii=False))
    else:
        typer.echo(yaml.safe_dump(summary, sort_keys=False, allow_unicode=True).rstrip())


def validate_cmd(
    path: Annotated[Path, typer.Argument(exists=True, help=".card file or unpacked card directory")],
    strict: Annotated[Optional[bool], typer.Option("--strict/--lenient", help="Fail on the first component error")] = None,
    ):
    """Check that a card assembles; exit 1 if it does not."""
    settings = _settings(overrides={"strict": strict})
    result = _decode(path, settings.assembly_options())
    _echo_warnings(result.warnings)
    doc = result.document
    typer.echo(
        f"OK: {doc.metadata.id} ({doc.metadata.name}) - "
        f"{len(doc.components)} component(s), {len(doc.configs)} loaded, {len(result.warnings)} warning(s)"
    )


def unpack_cmd(
    path: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help=".card file to unpack")],
    out: Annotated[Path, typer.Option("--out-dir", "-o", help="Directory to write members into")] = Path("unpacked"),
    ):
    """Write every member of a card container to disk."""
    _settings()
    try:
        files, errors = extract_report(path.read_bytes())
    except CardboxError as e:
        _fail(f"Cannot read {path}", e)
    _echo_warnings([str(e) for e in errors])

    root = out.resolve()
    written = 0
    for name, data in files.items():
        target = (root / name).resolve()
        if not target.is_relative_to(root):
            _echo_warnings([f"{name}: path escapes output directory, skipped"])
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        typer.echo(f"  {name}")
        written += 1
    typer.echo(f"Unpacked {written} file(s) to {out}/")


def pack_cmd(
    source: Annotated[Path, typer.Argument(exists=True, file_okay=False, help="Unpacked card directory")],
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Container to write (default: <dir>.card)")] = None,
    strict: Annotated[Optional[bool], typer.Option("--strict/--lenient", help="Fail on the first component error")] = None,
    ):
    """Assemble an unpacked card directory and write it as a stored container."""
    settings = _settings(overrides={"strict": strict})
    options = AssemblyOptions(strict=settings.strict, keep_raw_files=True)
    try:
        result = assemble(read_dir(source), options)
    except AssemblyError as e:
        _echo_warnings(e.warnings)
        _fail(f"Cannot assemble {source}", e)
    _echo_warnings(result.warnings)

    source = source.resolve()
    target = output or source.with_name(f"{source.name}.card")
    write_file(result.document, target)
    typer.echo(f"Packed {len(result.document.components)} component(s) to {target}")
