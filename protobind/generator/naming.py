"""Identifier derivation for both target surfaces.

Everything here is a pure function of descriptor names; nothing holds state.
"""

import logging
import re
from pathlib import PurePosixPath

from .types import ProtoEnum, SchemaFile

logger = logging.getLogger(__name__)

GUARD_PREFIX = "PROTOBUF_HELPERS_HPP"
HELPERS_SUFFIX = "_protobuf_helpers"
KOTLIN_MAPPER_FILE = "NativeModelMapper.kt"

# Wire enum values written as kValueName map to VALUE_NAME
ENUM_VALUE_PREFIX = "k"

CPP_KEYWORDS = frozenset(
    [
        "alignas", "alignof", "and", "asm", "auto", "bool", "break", "case", "catch",
        "char", "class", "const", "constexpr", "continue", "decltype", "default",
        "delete", "do", "double", "else", "enum", "explicit", "export", "extern",
        "false", "float", "for", "friend", "goto", "if", "inline", "int", "long",
        "mutable", "namespace", "new", "noexcept", "not", "nullptr", "operator", "or",
        "private", "protected", "public", "register", "return", "short", "signed",
        "sizeof", "static", "struct", "switch", "template", "this", "throw", "true",
        "try", "typedef", "typeid", "typename", "union", "unsigned", "using",
        "virtual", "void", "volatile", "while", "xor",
    ]
)  # fmt: skip

KOTLIN_KEYWORDS = frozenset(
    [
        "as", "break", "class", "continue", "do", "else", "false", "for", "fun", "if",
        "in", "interface", "is", "null", "object", "package", "return", "super",
        "this", "throw", "true", "try", "typealias", "typeof", "val", "var", "when",
        "while",
    ]
)  # fmt: skip


def _split_package(full_name: str, package: str) -> str:
    """Strip the package from a full name, leaving the type chain (Outer.Inner)."""
    if package and full_name.startswith(package + "."):
        return full_name[len(package) + 1 :]
    return full_name


def underscores_to_camel_case(name: str, cap_first: bool) -> str:
    """protoc's camel-casing: drop separators, capitalize after them and after digits."""
    result = []
    cap_next = cap_first
    for i, c in enumerate(name):
        if c.islower():
            result.append(c.upper() if cap_next else c)
            cap_next = False
        elif c.isupper():
            result.append(c.lower() if i == 0 and not cap_first else c)
            cap_next = False
        elif c.isdigit():
            result.append(c)
            cap_next = True
        else:
            cap_next = True
    return "".join(result)


def camel_case(name: str) -> str:
    return underscores_to_camel_case(name, cap_first=False)


def pascal_case(name: str) -> str:
    return underscores_to_camel_case(name, cap_first=True)


def native_enum_value(wire_name: str) -> str:
    """Convert a wire enum value name to its native form.

    kStatusActive becomes STATUS_ACTIVE. Names without the prefix are kept
    verbatim, which can make two values collide (see enum_value_table).
    """
    if wire_name.startswith(ENUM_VALUE_PREFIX):
        return re.sub(r"([a-z])([A-Z])", r"\1_\2", wire_name[len(ENUM_VALUE_PREFIX) :]).upper()
    return wire_name


def enum_value_table(enum: ProtoEnum) -> list[tuple[str, str]]:
    """(wire name, native name) pairs for every value of an enum, in order.

    Collisions in the native names are reported but kept as they are.
    """
    table = [(value.name, native_enum_value(value.name)) for value in enum.values]
    seen: dict[str, str] = {}
    for wire_name, native_name in table:
        if native_name in seen:
            logger.warning(
                "%s: values %s and %s both map to native name %s",
                enum.full_name,
                seen[native_name],
                wire_name,
                native_name,
            )
        else:
            seen[native_name] = wire_name
    return table


# C++


def cpp_namespace(full_name: str) -> str:
    return "::".join(full_name.split("."))


def cpp_native_type(full_name: str, native_namespace: str = "") -> str:
    """Native C++ type for a message or enum, e.g. ::native::p::Rec::Inner."""
    root = cpp_namespace(native_namespace) if native_namespace else ""
    return "::" + "::".join(part for part in (root, cpp_namespace(full_name)) if part)


def cpp_proto_type(full_name: str, package: str) -> str:
    """Class protoc generates for a message or enum, e.g. ::p::Rec_Inner."""
    type_name = _split_package(full_name, package).replace(".", "_")
    if package:
        return f"::{cpp_namespace(package)}::{type_name}"
    return f"::{type_name}"


def cpp_proto_enum_value(full_name: str, package: str, wire_name: str) -> str:
    """Enumerator protoc generates for an enum value.

    Nested enums are flattened to namespace scope with their class name as
    prefix: value kKindCircle of geo.v1.Shape.Kind is ::geo::v1::Shape_Kind_kKindCircle.
    """
    if "." in _split_package(full_name, package):
        return f"{cpp_proto_type(full_name, package)}_{wire_name}"
    return f"{cpp_proto_type(full_name, package)}::{wire_name}"


def cpp_forward_declaration(full_name: str, package: str) -> str:
    type_name = _split_package(full_name, package).replace(".", "_")
    if package:
        return f"namespace {cpp_namespace(package)} {{ class {type_name}; }}"
    return f"class {type_name};"


def cpp_accessor(wire_name: str) -> str:
    """Accessor protoc generates for a field: lowercased, keywords suffixed with _."""
    name = wire_name.lower()
    if name in CPP_KEYWORDS:
        return name + "_"
    return name


def include_guard(package: str, file_stem: str = "") -> str:
    """Include guard for a header, unique per package (not per file)."""
    token = re.sub(r"[^A-Za-z0-9]", "_", package or file_stem).upper()
    return f"{GUARD_PREFIX}_{token}"


def cpp_file_names(schema_name: str) -> tuple[str, str]:
    """Header and implementation file names for a schema file."""
    stem = PurePosixPath(schema_name).stem + HELPERS_SUFFIX
    return f"{stem}.hpp", f"{stem}.cpp"


# Kotlin / JVM


def kotlin_identifier(name: str) -> str:
    if name in KOTLIN_KEYWORDS:
        return f"`{name}`"
    return name


def kotlin_package(package: str) -> str:
    return package.lower()


def kotlin_file_path(package: str) -> str:
    """Location of the mapper file, relative to the output directory."""
    parts = [p for p in kotlin_package(package).split(".") if p]
    return str(PurePosixPath(*parts, KOTLIN_MAPPER_FILE))


def kotlin_native_class(full_name: str, package: str = "", native_package: str = "") -> str:
    """Native Kotlin class for a message or enum: the dotted path itself.

    With native_package set, the schema package is swapped for it.
    """
    if native_package:
        return f"{native_package}.{_split_package(full_name, package)}"
    return full_name


def _has_conflicting_class_name(schema: SchemaFile, class_name: str) -> bool:
    names = [m.name for m in schema.messages] + [e.name for e in schema.enums]
    return class_name in names or class_name in schema.service_names


def java_outer_classname(schema: SchemaFile) -> str:
    """Outer class protoc's Java generator wraps a file's types in."""
    if schema.java_outer_classname:
        return schema.java_outer_classname
    class_name = pascal_case(PurePosixPath(schema.name).stem)
    if _has_conflicting_class_name(schema, class_name):
        class_name += "OuterClass"
    return class_name


def jvm_proto_class(full_name: str, owner: SchemaFile) -> str:
    """Fully-qualified JVM class protoc generates for a message or enum."""
    parts = [owner.java_package or owner.package]
    if not owner.java_multiple_files:
        parts.append(java_outer_classname(owner))
    parts.append(_split_package(full_name, owner.package))
    return ".".join(part for part in parts if part)
