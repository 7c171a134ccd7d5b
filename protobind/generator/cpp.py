"""C++ code generator: toNative/toProto overloads in a header and a source file."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import PurePosixPath

from jinja2 import Environment, PackageLoader

from .classify import field_kind
from .naming import (
    cpp_accessor,
    cpp_forward_declaration,
    cpp_native_type,
    cpp_proto_enum_value,
    cpp_proto_type,
    enum_value_table,
    include_guard,
)
from .types import (
    Conversion,
    Field,
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

header_template = env.get_template("cpp.hpp.j2")
source_template = env.get_template("cpp.cpp.j2")

DEFAULT_NATIVE_NAMESPACE = "native"
HEADER_INCLUDES = ("<optional>", "<string>", "<vector>")
SOURCE_INCLUDES = ("<stdexcept>", "<string>")


@dataclass
class _FieldRef:
    """Names a field statement needs on both sides."""

    member: str
    accessor: str
    proto_type: str = ""


def _if(condition: str, statement: str) -> str:
    return f"if ({condition}) {{\n    {statement}\n}}"


def _for_each(collection: str, statement: str) -> str:
    return f"for (const auto& item : {collection}) {{\n    {statement}\n}}"


_TO_NATIVE: dict[FieldKind, Callable[[_FieldRef], str]] = {
    FieldKind.SCALAR_SINGULAR: lambda f: f"native.{f.member} = proto.{f.accessor}();",
    FieldKind.SCALAR_OPTIONAL: lambda f: _if(
        f"proto.has_{f.accessor}()", f"native.{f.member} = proto.{f.accessor}();"
    ),
    FieldKind.SCALAR_REPEATED: lambda f: _for_each(
        f"proto.{f.accessor}()", f"native.{f.member}.push_back(item);"
    ),
    FieldKind.ENUM_SINGULAR: lambda f: f"native.{f.member} = toNative(proto.{f.accessor}());",
    FieldKind.ENUM_OPTIONAL: lambda f: _if(
        f"proto.has_{f.accessor}()", f"native.{f.member} = toNative(proto.{f.accessor}());"
    ),
    # Repeated enums are stored as ints on the wire side
    FieldKind.ENUM_REPEATED: lambda f: _for_each(
        f"proto.{f.accessor}()",
        f"native.{f.member}.push_back(toNative(static_cast<{f.proto_type}>(item)));",
    ),
    FieldKind.MESSAGE_SINGULAR: lambda f: _if(
        f"proto.has_{f.accessor}()", f"native.{f.member} = toNative(proto.{f.accessor}());"
    ),
    FieldKind.MESSAGE_OPTIONAL: lambda f: _if(
        f"proto.has_{f.accessor}()", f"native.{f.member} = toNative(proto.{f.accessor}());"
    ),
    FieldKind.MESSAGE_REPEATED: lambda f: _for_each(
        f"proto.{f.accessor}()", f"native.{f.member}.push_back(toNative(item));"
    ),
}

_TO_PROTO: dict[FieldKind, Callable[[_FieldRef], str]] = {
    FieldKind.SCALAR_SINGULAR: lambda f: f"proto.set_{f.accessor}(native.{f.member});",
    FieldKind.SCALAR_OPTIONAL: lambda f: _if(
        f"native.{f.member}.has_value()", f"proto.set_{f.accessor}(native.{f.member}.value());"
    ),
    FieldKind.SCALAR_REPEATED: lambda f: _for_each(
        f"native.{f.member}", f"proto.add_{f.accessor}(item);"
    ),
    FieldKind.ENUM_SINGULAR: lambda f: f"proto.set_{f.accessor}(toProto(native.{f.member}));",
    FieldKind.ENUM_OPTIONAL: lambda f: _if(
        f"native.{f.member}.has_value()",
        f"proto.set_{f.accessor}(toProto(native.{f.member}.value()));",
    ),
    FieldKind.ENUM_REPEATED: lambda f: _for_each(
        f"native.{f.member}", f"proto.add_{f.accessor}(toProto(item));"
    ),
    FieldKind.MESSAGE_SINGULAR: lambda f: _if(
        f"native.{f.member}.has_value()",
        f"*proto.mutable_{f.accessor}() = toProto(native.{f.member}.value());",
    ),
    FieldKind.MESSAGE_OPTIONAL: lambda f: _if(
        f"native.{f.member}.has_value()",
        f"*proto.mutable_{f.accessor}() = toProto(native.{f.member}.value());",
    ),
    FieldKind.MESSAGE_REPEATED: lambda f: _for_each(
        f"native.{f.member}", f"*proto.add_{f.accessor}() = toProto(item);"
    ),
}


def _rule(table: dict[FieldKind, Callable[[_FieldRef], str]], kind: FieldKind) -> Callable:
    try:
        return table[kind]
    except KeyError:
        raise GeneratorError(f"No C++ emission rule for {kind.name}") from None


def _include_line(header: str) -> str:
    if header.startswith(("<", '"')):
        return f"#include {header}"
    return f'#include "{header}"'


def _enum_conversion(enum: ProtoEnum, owner: SchemaFile, native_namespace: str) -> Conversion:
    native_type = cpp_native_type(enum.full_name, native_namespace)
    proto_type = cpp_proto_type(enum.full_name, owner.package)
    conversion = Conversion(
        kind="enum", full_name=enum.full_name, native_type=native_type, proto_type=proto_type
    )

    table = [
        (cpp_proto_enum_value(enum.full_name, owner.package, wire_name), native_name)
        for wire_name, native_name in enum_value_table(enum)
    ]
    to_native = ["switch (proto) {"]
    for proto_value, native_name in table:
        to_native.append(f"    case {proto_value}:")
        to_native.append(f"        return {native_type}::{native_name};")
    to_native.append("    default:")
    to_native.append(
        "        throw std::invalid_argument("
        f'"Unrecognized proto enum value for {enum.full_name}: " '
        "+ std::to_string(static_cast<int>(proto)));"
    )
    to_native.append("}")

    to_proto = ["switch (native) {"]
    for proto_value, native_name in table:
        to_proto.append(f"    case {native_type}::{native_name}:")
        to_proto.append(f"        return {proto_value};")
    to_proto.append("}")
    to_proto.append(
        f'throw std::invalid_argument("Unknown native enum value for {enum.full_name}");'
    )

    conversion.to_native = ["\n".join(to_native)]
    conversion.to_proto = ["\n".join(to_proto)]
    return conversion


def _message_conversion(
    message: Message, owner: SchemaFile, index: TypeIndex, native_namespace: str
) -> Conversion:
    native_type = cpp_native_type(message.full_name, native_namespace)
    proto_type = cpp_proto_type(message.full_name, owner.package)
    conversion = Conversion(
        kind="message", full_name=message.full_name, native_type=native_type, proto_type=proto_type
    )

    conversion.to_native.append(f"{native_type} native;")
    conversion.to_proto.append(f"{proto_type} proto;")
    for f in message.fields:
        ref = _field_ref(message, f, index)
        kind = field_kind(f)
        conversion.to_native.append(_rule(_TO_NATIVE, kind)(ref))
        conversion.to_proto.append(_rule(_TO_PROTO, kind)(ref))
    conversion.to_native.append("return native;")
    conversion.to_proto.append("return proto;")
    return conversion


def _field_ref(message: Message, f: Field, index: TypeIndex) -> _FieldRef:
    resolved = index.resolve_field(message, f)
    proto_type = ""
    if resolved is not None:
        proto_type = cpp_proto_type(resolved.node.full_name, resolved.owner.package)
    return _FieldRef(member=f.wire_name, accessor=cpp_accessor(f.wire_name), proto_type=proto_type)


def conversions(
    schema: SchemaFile, *, native_namespace: str = DEFAULT_NATIVE_NAMESPACE
) -> list[Conversion]:
    """Build the conversion pairs for every message and enum, in emission order.

    All type references are checked first, so a bad reference fails before
    anything is emitted.
    """
    index = TypeIndex.build(schema)
    index.check(schema)

    result: list[Conversion] = []
    for node in walk(schema):
        if isinstance(node, ProtoEnum):
            result.append(_enum_conversion(node, schema, native_namespace))
        else:
            result.append(_message_conversion(node, schema, index, native_namespace))
        logger.debug("C++: %s conversions for %s", result[-1].kind, node.full_name)
    return result


def _forward_declarations(schema: SchemaFile) -> list[str]:
    return [
        cpp_forward_declaration(node.full_name, schema.package)
        for node in walk(schema)
        if isinstance(node, Message)
    ]


def render_header(
    schema: SchemaFile,
    *,
    native_namespace: str = DEFAULT_NATIVE_NAMESPACE,
    includes: Iterable[str] = (),
) -> str:
    """Render the declarations file for a schema.

    Args:
        schema: The schema file to generate conversions for
        native_namespace: Root namespace of the native types ("" for none)
        includes: Extra headers declaring the native types
    """
    stem = PurePosixPath(schema.name).stem
    guard = include_guard(schema.package, stem)
    return header_template.render(
        source=schema.name,
        guard=guard,
        includes=[_include_line(h) for h in (*HEADER_INCLUDES, *includes)],
        forward_declarations=_forward_declarations(schema),
        conversions=conversions(schema, native_namespace=native_namespace),
    )


def render_source(
    schema: SchemaFile,
    *,
    header_name: str,
    native_namespace: str = DEFAULT_NATIVE_NAMESPACE,
) -> str:
    """Render the definitions file for a schema.

    Args:
        schema: The schema file to generate conversions for
        header_name: File name of the declarations file, included first
        native_namespace: Root namespace of the native types ("" for none)
    """
    pb_header = str(PurePosixPath(schema.name).with_suffix("")) + ".pb.h"
    includes = [_include_line(header_name), _include_line(pb_header)]
    includes.extend(_include_line(h) for h in SOURCE_INCLUDES)
    return source_template.render(
        source=schema.name,
        includes=includes,
        conversions=conversions(schema, native_namespace=native_namespace),
    )
