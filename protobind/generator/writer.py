"""Artifact layout and atomic file output."""

import logging
import os
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from . import cpp, kotlin
from .naming import cpp_file_names, kotlin_file_path, kotlin_package
from .types import SchemaFile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Artifact:
    """A generated file; path is relative to the output directory."""

    path: str
    content: str


def cpp_artifacts(
    schema: SchemaFile,
    *,
    native_namespace: str = cpp.DEFAULT_NATIVE_NAMESPACE,
    includes: Iterable[str] = (),
) -> list[Artifact]:
    """Declarations and definitions file for a schema."""
    header_name, source_name = cpp_file_names(schema.name)
    header = cpp.render_header(schema, native_namespace=native_namespace, includes=includes)
    source = cpp.render_source(
        schema, header_name=header_name, native_namespace=native_namespace
    )
    return [Artifact(header_name, header), Artifact(source_name, source)]


def kotlin_artifacts(schema: SchemaFile, *, native_package: str = "") -> list[Artifact]:
    """The mapper file for a schema, placed under its package directory."""
    path = kotlin_file_path(native_package or kotlin_package(schema.package))
    return [Artifact(path, kotlin.render(schema, native_package=native_package))]


def write_file(path: Path, content: str) -> None:
    """Write a file so that it is either fully written or not there at all.

    The content goes to a temporary file next to the target, which is then
    renamed over it.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def write_artifacts(artifacts: Iterable[Artifact], output_dir: str | os.PathLike) -> list[Path]:
    """Write artifacts under output_dir and return the paths written."""
    written: list[Path] = []
    for artifact in artifacts:
        path = Path(output_dir) / artifact.path
        write_file(path, artifact.content)
        logger.debug("Wrote %s (%d bytes)", path, len(artifact.content))
        written.append(path)
    return written
