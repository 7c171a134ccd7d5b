"""Field classification: base kind and multiplicity of a field."""

from typing import NamedTuple

from google.protobuf.descriptor_pb2 import FieldDescriptorProto

from .types import BaseKind, Field, FieldKind, Multiplicity

# protoc wire types mapped to the names used in the model
WIRE_TYPE_NAMES: dict[int, str] = {
    FieldDescriptorProto.TYPE_DOUBLE: "double",
    FieldDescriptorProto.TYPE_FLOAT: "float",
    FieldDescriptorProto.TYPE_INT64: "int64",
    FieldDescriptorProto.TYPE_UINT64: "uint64",
    FieldDescriptorProto.TYPE_INT32: "int32",
    FieldDescriptorProto.TYPE_FIXED64: "fixed64",
    FieldDescriptorProto.TYPE_FIXED32: "fixed32",
    FieldDescriptorProto.TYPE_BOOL: "bool",
    FieldDescriptorProto.TYPE_STRING: "string",
    FieldDescriptorProto.TYPE_MESSAGE: "message",
    FieldDescriptorProto.TYPE_BYTES: "bytes",
    FieldDescriptorProto.TYPE_UINT32: "uint32",
    FieldDescriptorProto.TYPE_ENUM: "enum",
    FieldDescriptorProto.TYPE_SFIXED32: "sfixed32",
    FieldDescriptorProto.TYPE_SFIXED64: "sfixed64",
    FieldDescriptorProto.TYPE_SINT32: "sint32",
    FieldDescriptorProto.TYPE_SINT64: "sint64",
}

UNKNOWN_WIRE_TYPE = "unknown"


class Classification(NamedTuple):
    base: BaseKind
    multiplicity: Multiplicity
    wire_type: str

    @property
    def kind(self) -> FieldKind:
        return FieldKind.of(self.base, self.multiplicity)


def base_kind(wire_type: str) -> BaseKind:
    """Map a wire type name to the kind of value it carries."""
    if wire_type == "message":
        return BaseKind.MESSAGE
    if wire_type == "enum":
        return BaseKind.ENUM
    # Everything else, "unknown" included, is copied as a plain value
    return BaseKind.SCALAR


def multiplicity(field_proto: FieldDescriptorProto, syntax: str) -> Multiplicity:
    """Work out how many values a raw field holds and whether it tracks presence.

    proto3 only tracks presence for fields declared `optional`; proto2 tracks it
    for every optional field.
    """
    if field_proto.label == FieldDescriptorProto.LABEL_REPEATED:
        return Multiplicity.REPEATED
    if field_proto.proto3_optional:
        return Multiplicity.OPTIONAL
    if syntax == "proto2" and field_proto.label == FieldDescriptorProto.LABEL_OPTIONAL:
        return Multiplicity.OPTIONAL
    return Multiplicity.SINGULAR


def classify(field_proto: FieldDescriptorProto, syntax: str = "proto3") -> Classification:
    """Classify a raw field descriptor. Never fails."""
    wire_type = WIRE_TYPE_NAMES.get(field_proto.type, UNKNOWN_WIRE_TYPE)
    return Classification(
        base=base_kind(wire_type),
        multiplicity=multiplicity(field_proto, syntax),
        wire_type=wire_type,
    )


def field_kind(field: Field) -> FieldKind:
    """Classify a field of the model."""
    return FieldKind.of(base_kind(field.wire_type), field.multiplicity)
