"""Kotlin code generator: toNative()/toProto() extension functions."""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from jinja2 import Environment, PackageLoader

from .classify import field_kind
from .naming import (
    camel_case,
    enum_value_table,
    jvm_proto_class,
    kotlin_identifier,
    kotlin_native_class,
    kotlin_package,
    pascal_case,
)
from .types import (
    Conversion,
    FieldKind,
    GeneratorError,
    Message,
    ProtoEnum,
    SchemaFile,
    TypeIndex,
    walk,
)

logger = logging.getLogger(__name__)

env = Environment(
    loader=PackageLoader("protobind.generator", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)

template = env.get_template("kotlin.kt.j2")

# proto2 enums are closed: protoc's Java code has no UNRECOGNIZED constant for them
CLOSED_ENUM_SYNTAXES = frozenset(["proto2"])
UNRECOGNIZED = "UNRECOGNIZED"


@dataclass
class _Property:
    """How a field is spelled on the native class and on the protoc Java class."""

    native: str
    getter: str
    list_getter: str
    accessor: str

    @classmethod
    def of(cls, wire_name: str, native_name: str) -> "_Property":
        return cls(
            native=kotlin_identifier(native_name),
            getter=kotlin_identifier(camel_case(wire_name)),
            list_getter=kotlin_identifier(camel_case(wire_name) + "List"),
            accessor=pascal_case(wire_name),
        )


_TO_NATIVE: dict[FieldKind, Callable[[_Property], str]] = {
    FieldKind.SCALAR_SINGULAR: lambda p: f"{p.native} = this.{p.getter},",
    FieldKind.SCALAR_OPTIONAL: lambda p: (
        f"{p.native} = if (has{p.accessor}()) this.{p.getter} else null,"
    ),
    FieldKind.SCALAR_REPEATED: lambda p: f"{p.native} = this.{p.list_getter}.toList(),",
    FieldKind.ENUM_SINGULAR: lambda p: f"{p.native} = this.{p.getter}.toNative(),",
    FieldKind.ENUM_OPTIONAL: lambda p: (
        f"{p.native} = if (has{p.accessor}()) this.{p.getter}.toNative() else null,"
    ),
    FieldKind.ENUM_REPEATED: lambda p: (
        f"{p.native} = this.{p.list_getter}.map {{ it.toNative() }},"
    ),
    FieldKind.MESSAGE_SINGULAR: lambda p: (
        f"{p.native} = if (has{p.accessor}()) this.{p.getter}.toNative() else null,"
    ),
    FieldKind.MESSAGE_OPTIONAL: lambda p: (
        f"{p.native} = if (has{p.accessor}()) this.{p.getter}.toNative() else null,"
    ),
    FieldKind.MESSAGE_REPEATED: lambda p: (
        f"{p.native} = this.{p.list_getter}.map {{ it.toNative() }},"
    ),
}

_TO_PROTO: dict[FieldKind, Callable[[_Property], str]] = {
    FieldKind.SCALAR_SINGULAR: lambda p: f"builder.set{p.accessor}(this.{p.native})",
    FieldKind.SCALAR_OPTIONAL: lambda p: (
        f"this.{p.native}?.let {{ builder.set{p.accessor}(it) }}"
    ),
    FieldKind.SCALAR_REPEATED: lambda p: f"builder.addAll{p.accessor}(this.{p.native})",
    FieldKind.ENUM_SINGULAR: lambda p: f"builder.set{p.accessor}(this.{p.native}.toProto())",
    FieldKind.ENUM_OPTIONAL: lambda p: (
        f"this.{p.native}?.let {{ builder.set{p.accessor}(it.toProto()) }}"
    ),
    FieldKind.ENUM_REPEATED: lambda p: (
        f"builder.addAll{p.accessor}(this.{p.native}.map {{ it.toProto() }})"
    ),
    FieldKind.MESSAGE_SINGULAR: lambda p: (
        f"this.{p.native}?.let {{ builder.set{p.accessor}(it.toProto()) }}"
    ),
    FieldKind.MESSAGE_OPTIONAL: lambda p: (
        f"this.{p.native}?.let {{ builder.set{p.accessor}(it.toProto()) }}"
    ),
    FieldKind.MESSAGE_REPEATED: lambda p: (
        f"builder.addAll{p.accessor}(this.{p.native}.map {{ it.toProto() }})"
    ),
}


def _rule(table: dict[FieldKind, Callable[[_Property], str]], kind: FieldKind) -> Callable:
    try:
        return table[kind]
    except KeyError:
        raise GeneratorError(f"No Kotlin emission rule for {kind.name}") from None


def _enum_conversion(enum: ProtoEnum, schema: SchemaFile, native_package: str) -> Conversion:
    proto_type = jvm_proto_class(enum.full_name, schema)
    native_type = kotlin_native_class(enum.full_name, schema.package, native_package)
    conversion = Conversion(
        kind="enum", full_name=enum.full_name, native_type=native_type, proto_type=proto_type
    )

    for wire_name, native_name in enum_value_table(enum):
        conversion.to_native.append(f"{proto_type}.{wire_name} -> {native_type}.{native_name}")
        conversion.to_proto.append(f"{native_type}.{native_name} -> {proto_type}.{wire_name}")

    sentinel = "else" if schema.syntax in CLOSED_ENUM_SYNTAXES else f"{proto_type}.{UNRECOGNIZED}"
    conversion.to_native.append(
        f'{sentinel} -> throw IllegalArgumentException("Unrecognized proto enum value: $this")'
    )
    return conversion


def _message_conversion(
    message: Message, schema: SchemaFile, index: TypeIndex, native_package: str
) -> Conversion:
    proto_type = jvm_proto_class(message.full_name, schema)
    native_type = kotlin_native_class(message.full_name, schema.package, native_package)
    conversion = Conversion(
        kind="message", full_name=message.full_name, native_type=native_type, proto_type=proto_type
    )

    for f in message.fields:
        index.resolve_field(message, f)
        prop = _Property.of(f.wire_name, f.native_name)
        kind = field_kind(f)
        conversion.to_native.append(_rule(_TO_NATIVE, kind)(prop))
        conversion.to_proto.append(_rule(_TO_PROTO, kind)(prop))
    return conversion


def conversions(schema: SchemaFile, *, native_package: str = "") -> list[Conversion]:
    """Build the conversion pairs for every message and enum, in emission order."""
    index = TypeIndex.build(schema)
    index.check(schema)

    result: list[Conversion] = []
    for node in walk(schema):
        if isinstance(node, ProtoEnum):
            result.append(_enum_conversion(node, schema, native_package))
        else:
            result.append(_message_conversion(node, schema, index, native_package))
        logger.debug("Kotlin: %s conversions for %s", result[-1].kind, node.full_name)
    return result


def render(schema: SchemaFile, *, native_package: str = "") -> str:
    """Render the Kotlin mapper file for a schema.

    Args:
        schema: The schema file to generate conversions for
        native_package: Package of the native classes; defaults to the schema package
    """
    return template.render(
        source=schema.name,
        package=native_package or kotlin_package(schema.package),
        conversions=conversions(schema, native_package=native_package),
    )
