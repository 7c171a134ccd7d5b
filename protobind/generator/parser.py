"""Schema loading: runs protoc and turns its descriptor set into the model."""

import logging
import os
import subprocess
import tempfile
from collections.abc import Iterable
from pathlib import Path

from google.protobuf.descriptor_pb2 import (
    DescriptorProto,
    EnumDescriptorProto,
    FieldDescriptorProto,
    FileDescriptorProto,
    FileDescriptorSet,
)
from google.protobuf.message import DecodeError

from .classify import classify
from .naming import camel_case
from .types import BaseKind, EnumValue, Field, GeneratorError, Message, ProtoEnum, SchemaFile

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


class SchemaCompilerError(GeneratorError):
    """Raised when protoc cannot produce a descriptor set for a schema."""

    def __init__(self, message: str, returncode: int | None = None, diagnostics: str = "") -> None:
        if diagnostics:
            message = f"{message}: {diagnostics.strip()}"
        super().__init__(message)
        self.returncode = returncode
        self.diagnostics = diagnostics


def _qualify(scope: str, name: str) -> str:
    return f"{scope}.{name}" if scope else name


def _build_field(field_proto: FieldDescriptorProto, syntax: str) -> Field:
    classification = classify(field_proto, syntax)
    return Field(
        native_name=camel_case(field_proto.name),
        wire_name=field_proto.name,
        number=field_proto.number,
        wire_type=classification.wire_type,
        multiplicity=classification.multiplicity,
        declared_type=(
            field_proto.type_name.lstrip(".") if classification.base != BaseKind.SCALAR else ""
        ),
    )


def _build_enum(enum_proto: EnumDescriptorProto, scope: str) -> ProtoEnum:
    return ProtoEnum(
        name=enum_proto.name,
        full_name=_qualify(scope, enum_proto.name),
        values=tuple(EnumValue(name=v.name, number=v.number) for v in enum_proto.value),
    )


def _build_message(message_proto: DescriptorProto, scope: str, syntax: str) -> Message:
    full_name = _qualify(scope, message_proto.name)
    return Message(
        name=message_proto.name,
        full_name=full_name,
        fields=tuple(_build_field(f, syntax) for f in message_proto.field),
        nested_messages=tuple(
            _build_message(nested, full_name, syntax) for nested in message_proto.nested_type
        ),
        nested_enums=tuple(_build_enum(e, full_name) for e in message_proto.enum_type),
    )


def build_schema_file(
    file_proto: FileDescriptorProto, dependencies: Iterable[SchemaFile] = ()
) -> SchemaFile:
    """Translate one file descriptor into a SchemaFile."""
    # protoc leaves syntax empty for proto2 files
    syntax = file_proto.syntax or "proto2"
    package = file_proto.package
    options = file_proto.options
    return SchemaFile(
        name=file_proto.name,
        package=package,
        syntax=syntax,
        messages=tuple(_build_message(m, package, syntax) for m in file_proto.message_type),
        enums=tuple(_build_enum(e, package) for e in file_proto.enum_type),
        java_package=options.java_package,
        java_outer_classname=options.java_outer_classname,
        java_multiple_files=options.java_multiple_files,
        service_names=tuple(s.name for s in file_proto.service),
        dependencies=tuple(dependencies),
    )


def _matches(file_name: str, target: str) -> bool:
    return file_name == target or file_name.endswith("/" + target)


def build_schema(descriptor_set: FileDescriptorSet, target: str) -> SchemaFile:
    """Build the SchemaFile for target, resolving its imports from the same set."""
    by_name = {f.name: f for f in descriptor_set.file}
    main = next((f for f in descriptor_set.file if _matches(f.name, target)), None)
    if main is None:
        found = ", ".join(by_name) or "none"
        raise SchemaCompilerError(f"Could not find descriptor for {target} (found: {found})")

    built: dict[str, SchemaFile] = {}

    def build(file_proto: FileDescriptorProto) -> SchemaFile:
        if file_proto.name not in built:
            # Imports missing from the set are left out; fields that use them fail to resolve
            deps = [build(by_name[d]) for d in file_proto.dependency if d in by_name]
            built[file_proto.name] = build_schema_file(file_proto, deps)
        return built[file_proto.name]

    schema = build(main)
    logger.debug(
        "Loaded %s: package '%s', %d message(s), %d enum(s), %d import(s)",
        schema.name,
        schema.package,
        len(schema.messages),
        len(schema.enums),
        len(schema.dependencies),
    )
    return schema


def load_descriptor_set(path: str | os.PathLike, target: str) -> SchemaFile:
    """Load a serialized FileDescriptorSet and build the SchemaFile for target."""
    descriptor_set = FileDescriptorSet()
    with open(path, "rb") as f:
        data = f.read()
    try:
        descriptor_set.ParseFromString(data)
    except DecodeError as e:
        raise SchemaCompilerError(f"Invalid descriptor set {path}", diagnostics=str(e)) from e
    return build_schema(descriptor_set, target)


def compile_schema(
    proto_file: str | os.PathLike,
    include_dirs: Iterable[str | os.PathLike] = (),
    *,
    protoc: str = "protoc",
    timeout: float | None = DEFAULT_TIMEOUT,
) -> SchemaFile:
    """Run protoc on a .proto file and build its SchemaFile."""
    proto_path = Path(proto_file).resolve()
    if not proto_path.is_file():
        raise SchemaCompilerError(f"Proto file not found: {proto_file}")

    with tempfile.TemporaryDirectory(prefix="protobind_") as tmpdir:
        descriptor_path = Path(tmpdir) / "descriptor_set.pb"
        command = [protoc]
        command.extend(f"-I{Path(d).resolve()}" for d in include_dirs)
        command.append(f"-I{proto_path.parent}")
        command.append(f"--descriptor_set_out={descriptor_path}")
        command.append("--include_imports")
        command.append(proto_path.name)

        logger.debug("Running %s", " ".join(command))
        try:
            result = subprocess.run(
                command,
                cwd=proto_path.parent,
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise SchemaCompilerError(
                f"'{protoc}' not found. Install the protobuf compiler or pass --protoc"
            ) from e
        except subprocess.TimeoutExpired as e:
            raise SchemaCompilerError(f"protoc timed out after {timeout} seconds") from e

        if result.returncode != 0:
            raise SchemaCompilerError(
                f"protoc failed with exit code {result.returncode}",
                returncode=result.returncode,
                diagnostics=(result.stdout or "") + (result.stderr or ""),
            )
        if not descriptor_path.is_file():
            raise SchemaCompilerError(
                "protoc did not write a descriptor set",
                returncode=result.returncode,
                diagnostics=result.stderr or "",
            )

        return load_descriptor_set(descriptor_path, proto_path.name)
