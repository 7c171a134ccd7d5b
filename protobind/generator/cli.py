"""Command-line interface for protobind code generation."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.tree import Tree

from protobind.generator import compile_schema, load_descriptor_set
from protobind.generator.classify import field_kind
from protobind.generator.cpp import DEFAULT_NATIVE_NAMESPACE
from protobind.generator.parser import DEFAULT_TIMEOUT
from protobind.generator.types import GeneratorError, Message, ProtoEnum, SchemaFile
from protobind.generator.writer import (
    Artifact,
    cpp_artifacts,
    kotlin_artifacts,
    write_artifacts,
)

console = Console()
err_console = Console(stderr=True, soft_wrap=True)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_time=False, show_path=False)],
        force=True,
    )


def _fail(error: Exception, verbose: bool) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {escape(str(error))}", highlight=False)
    if verbose:
        err_console.print_exception()
    sys.exit(1)


def _load_schema(
    proto_file: Path,
    descriptor_set: Path | None,
    include_dirs: tuple[Path, ...],
    protoc: str,
    timeout: float,
) -> SchemaFile:
    if descriptor_set is not None:
        return load_descriptor_set(descriptor_set, proto_file.name)
    return compile_schema(proto_file, include_dirs, protoc=protoc, timeout=timeout)


def _schema_options(f):
    """Options shared by every command that loads a schema."""
    f = click.option(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        show_default=True,
        help="Seconds to wait for protoc",
    )(f)
    f = click.option(
        "--protoc",
        default="protoc",
        show_default=True,
        envvar="PROTOBIND_PROTOC",
        help="Path to the protoc binary",
    )(f)
    f = click.option(
        "--descriptor-set",
        "descriptor_set",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        default=None,
        help="Pre-compiled FileDescriptorSet (protoc --include_imports) to use instead of protoc",
    )(f)
    f = click.option(
        "--include",
        "-I",
        "include_dirs",
        multiple=True,
        type=click.Path(file_okay=False, path_type=Path),
        help="Include directory for proto imports (repeatable)",
    )(f)
    f = click.option(
        "--proto",
        "-p",
        "proto_file",
        required=True,
        type=click.Path(dir_okay=False, path_type=Path),
        help="Path to the .proto file",
    )(f)
    return f


@click.group(context_settings={"auto_envvar_prefix": "PROTOBIND"})
def cli() -> None:
    """protobind: native model bindings generator for protobuf schemas."""


@cli.command()
@_schema_options
@click.option(
    "--output",
    "-o",
    "output_dir",
    required=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Output directory for generated files",
)
@click.option("--cpp/--no-cpp", "emit_cpp", default=True, help="Generate C++ files")
@click.option("--kotlin/--no-kotlin", "emit_kotlin", default=True, help="Generate Kotlin files")
@click.option(
    "--cpp-namespace",
    "native_namespace",
    default=DEFAULT_NATIVE_NAMESPACE,
    show_default=True,
    help="Root C++ namespace of the native types (empty for none)",
)
@click.option(
    "--cpp-include",
    "cpp_includes",
    multiple=True,
    help="Header declaring the native C++ types (repeatable)",
)
@click.option(
    "--kotlin-package",
    "native_package",
    default="",
    help="Package of the native Kotlin classes (defaults to the proto package)",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def gen(
    proto_file: Path,
    include_dirs: tuple[Path, ...],
    descriptor_set: Path | None,
    protoc: str,
    timeout: float,
    output_dir: Path,
    emit_cpp: bool,
    emit_kotlin: bool,
    native_namespace: str,
    cpp_includes: tuple[str, ...],
    native_package: str,
    verbose: bool,
) -> None:
    """Generate toNative/toProto conversions for a .proto file."""
    _setup_logging(verbose)
    try:
        schema = _load_schema(proto_file, descriptor_set, include_dirs, protoc, timeout)

        # Render everything before writing anything
        cpp_files: list[Artifact] = []
        kotlin_files: list[Artifact] = []
        if emit_cpp:
            cpp_files = cpp_artifacts(
                schema, native_namespace=native_namespace, includes=cpp_includes
            )
        if emit_kotlin:
            kotlin_files = kotlin_artifacts(schema, native_package=native_package)

        written_cpp = write_artifacts(cpp_files, output_dir)
        written_kotlin = write_artifacts(kotlin_files, output_dir)
    except (GeneratorError, OSError) as e:
        _fail(e, verbose)
        return

    if written_cpp:
        console.print("[green]✓[/green] Generated C++ files:")
        for path in written_cpp:
            console.print(f"  - {path.name}")
    if written_kotlin:
        console.print("[green]✓[/green] Generated Kotlin files:")
        for path in written_kotlin:
            console.print(f"  - {path.relative_to(output_dir)}")
    if not written_cpp and not written_kotlin:
        console.print("Nothing to generate (both --no-cpp and --no-kotlin given)")


@cli.command()
@_schema_options
@click.option("--json", "output_json", is_flag=True, help="Output the descriptor model as JSON")
def info(
    proto_file: Path,
    include_dirs: tuple[Path, ...],
    descriptor_set: Path | None,
    protoc: str,
    timeout: float,
    output_json: bool,
) -> None:
    """Display the descriptor tree and each field's classification."""
    _setup_logging(False)
    try:
        schema = _load_schema(proto_file, descriptor_set, include_dirs, protoc, timeout)
    except (GeneratorError, OSError) as e:
        _fail(e, False)
        return

    if output_json:
        click.echo(schema.to_json(indent=2))
    else:
        _output_tree(schema)


def _enum_branch(parent: Tree, enum: ProtoEnum) -> None:
    branch = parent.add(f"[bold magenta]enum[/bold magenta] {enum.name}")
    for value in enum.values:
        branch.add(f"{value.name} = {value.number}")


def _message_branch(parent: Tree, message: Message) -> None:
    branch = parent.add(f"[bold cyan]message[/bold cyan] {message.name}")
    for f in message.fields:
        kind = field_kind(f)
        type_name = f.declared_type or f.wire_type
        branch.add(f"{f.wire_name} = {f.number}  [dim]{type_name}[/dim]  [yellow]{kind.name}[/yellow]")
    for enum in message.nested_enums:
        _enum_branch(branch, enum)
    for nested in message.nested_messages:
        _message_branch(branch, nested)


def _output_tree(schema: SchemaFile) -> None:
    """Print the descriptor tree using rich formatting."""
    package = schema.package or "(no package)"
    tree = Tree(f"[bold]{schema.name}[/bold]  [dim]package {package}, {schema.syntax}[/dim]")
    for enum in schema.enums:
        _enum_branch(tree, enum)
    for message in schema.messages:
        _message_branch(tree, message)
    console.print(tree)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
