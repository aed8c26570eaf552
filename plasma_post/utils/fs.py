"""File helpers: YAML loading and atomic program writes.

A controller that watches an output directory must never pick up a
half-written program, so G-code files are written to a sibling
temporary file, flushed to disk, then renamed over the target.

Usage:
    from plasma_post.utils import fs
    raw = fs.load_yaml("machine.yaml")
    fs.atomic_write_text("out/part.gcode", program)
"""

import os
from pathlib import Path
from typing import Any, Union

import yaml

PathLike = Union[str, Path]


def ensure_dir(p: PathLike) -> Path:
    """Create *p* (and parents) if missing; return it as a Path."""
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def atomic_write_bytes(path: PathLike, data: bytes, tmp_suffix: str = ".tmp") -> None:
    """Replace *path* with *data* in one rename.

    Parameters
    ----------
    path : PathLike
        Destination; parent directories are created.
    data : bytes
        Complete file contents.
    tmp_suffix : str
        Appended to the destination name for the staging file, which
        lives in the same directory so the rename never crosses a
        filesystem boundary.

    Raises
    ------
    RuntimeError
        If staging or renaming fails; the staging file is removed.
    """
    target = Path(path)
    ensure_dir(target.parent)
    staging = target.with_name(target.name + tmp_suffix)

    try:
        with open(staging, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        staging.replace(target)
    except OSError as e:
        staging.unlink(missing_ok=True)
        raise RuntimeError(f"Failed to write {target} atomically: {e}") from e


def atomic_write_text(path: PathLike, text: str, encoding: str = "utf-8") -> None:
    """Text variant of :func:`atomic_write_bytes`."""
    atomic_write_bytes(path, text.encode(encoding))


def load_yaml(path: PathLike) -> Any:
    """Parse a YAML document with ``yaml.safe_load``.

    Returns whatever the document holds (usually a mapping; ``None`` for
    an empty file).  Callers validate the shape.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    yaml.YAMLError
        If the document is not valid YAML; the message names the file.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"YAML file not found: {path}")

    with open(path, "r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e
