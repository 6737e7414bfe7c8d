"""GitHub Actions runner protocol helpers.

Workflow commands (::add-mask::, ::group::, ::error::) are written to stdout;
outputs are appended to the $GITHUB_OUTPUT file using heredoc delimiters so
multi-line values survive intact.
"""
from __future__ import annotations

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Mapping, TextIO
from uuid import uuid4

from src.utils.logging import mask_secrets, register_secret


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def issue_command(command: str, message: str = "", stream: TextIO | None = None) -> None:
    stream = stream or sys.stdout
    print(f"::{command}::{_escape_data(mask_secrets(message))}", file=stream, flush=True)


def add_mask(secret: str) -> None:
    """Mask a secret in runner logs and in this process's log output."""
    if not secret or not secret.strip():
        return
    register_secret(secret)
    print(f"::add-mask::{_escape_data(secret)}", flush=True)


def error(message: str) -> None:
    issue_command("error", message)


def warning(message: str) -> None:
    issue_command("warning", message)


@contextmanager
def group(title: str) -> Iterator[None]:
    """Fold the enclosed log lines under a collapsible group."""
    issue_command("group", title)
    try:
        yield
    finally:
        issue_command("endgroup")


def append_multiline_output(path: Path, key: str, value: str) -> None:
    delimiter = f"REVIEW_{key.upper()}_{uuid4().hex}"
    while delimiter in value:
        delimiter = f"REVIEW_{key.upper()}_{uuid4().hex}"
    with path.open("a", encoding="utf-8") as fh:
        fh.write(f"{key}<<{delimiter}\n")
        fh.write(value)
        if not value.endswith("\n"):
            fh.write("\n")
        fh.write(f"{delimiter}\n")


def set_outputs(outputs: Mapping[str, str], output_path: str = "") -> None:
    """Write action outputs to $GITHUB_OUTPUT, or to stdout for local runs."""
    if output_path:
        path = Path(output_path)
        for key, value in outputs.items():
            append_multiline_output(path, key, value)
        return
    for key, value in outputs.items():
        print(f"{key}={mask_secrets(value)}", flush=True)
