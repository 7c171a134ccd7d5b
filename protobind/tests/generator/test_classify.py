"""Tests for field classification."""

from google.protobuf.descriptor_pb2 import FieldDescriptorProto

from protobind.generator.classify import UNKNOWN_WIRE_TYPE, base_kind, classify, field_kind
from protobind.generator.types import BaseKind, Field, FieldKind, Multiplicity

LABEL_OPTIONAL = FieldDescriptorProto.LABEL_OPTIONAL
LABEL_REQUIRED = FieldDescriptorProto.LABEL_REQUIRED
LABEL_REPEATED = FieldDescriptorProto.LABEL_REPEATED


def make_field(type_, label=LABEL_OPTIONAL, proto3_optional=False):
    return FieldDescriptorProto(
        name="f", number=1, type=type_, label=label, proto3_optional=proto3_optional
    )


def describe_base_kind():
    def maps_message_and_enum(expect):
        expect(base_kind("message")) == BaseKind.MESSAGE
        expect(base_kind("enum")) == BaseKind.ENUM

    def treats_everything_else_as_scalar(expect):
        for wire_type in ["int32", "string", "bytes", "double", "group", UNKNOWN_WIRE_TYPE]:
            expect(base_kind(wire_type)) == BaseKind.SCALAR


def describe_classify():
    def classifies_proto3_singular_scalar(expect):
        c = classify(make_field(FieldDescriptorProto.TYPE_INT32))
        expect(c.base) == BaseKind.SCALAR
        expect(c.multiplicity) == Multiplicity.SINGULAR
        expect(c.wire_type) == "int32"
        expect(c.kind) == FieldKind.SCALAR_SINGULAR

    def classifies_proto3_optional(expect):
        c = classify(make_field(FieldDescriptorProto.TYPE_STRING, proto3_optional=True))
        expect(c.kind) == FieldKind.SCALAR_OPTIONAL

    def repeated_wins_over_everything(expect):
        c = classify(make_field(FieldDescriptorProto.TYPE_ENUM, label=LABEL_REPEATED), "proto2")
        expect(c.kind) == FieldKind.ENUM_REPEATED

    def classifies_messages(expect):
        expect(classify(make_field(FieldDescriptorProto.TYPE_MESSAGE)).kind) == (
            FieldKind.MESSAGE_SINGULAR
        )
        expect(
            classify(make_field(FieldDescriptorProto.TYPE_MESSAGE, label=LABEL_REPEATED)).kind
        ) == FieldKind.MESSAGE_REPEATED

    def gives_proto2_optional_fields_presence(expect):
        c = classify(make_field(FieldDescriptorProto.TYPE_INT64), "proto2")
        expect(c.kind) == FieldKind.SCALAR_OPTIONAL

    def treats_proto2_required_as_singular(expect):
        c = classify(make_field(FieldDescriptorProto.TYPE_INT64, label=LABEL_REQUIRED), "proto2")
        expect(c.kind) == FieldKind.SCALAR_SINGULAR

    def falls_back_to_unknown_for_groups(expect):
        c = classify(make_field(FieldDescriptorProto.TYPE_GROUP), "proto2")
        expect(c.wire_type) == UNKNOWN_WIRE_TYPE
        expect(c.kind) == FieldKind.SCALAR_OPTIONAL
        expect(c.base) == BaseKind.SCALAR


def describe_field_kind():
    def covers_every_combination(expect):
        kinds = {
            field_kind(Field("v", "v", 1, wire_type, multiplicity=m))
            for wire_type in ["int32", "enum", "message"]
            for m in Multiplicity
        }
        expect(kinds) == set(FieldKind)

    def exposes_base_and_multiplicity(expect):
        expect(FieldKind.ENUM_OPTIONAL.base) == BaseKind.ENUM
        expect(FieldKind.ENUM_OPTIONAL.multiplicity) == Multiplicity.OPTIONAL
        expect(FieldKind.of(BaseKind.MESSAGE, Multiplicity.REPEATED)) == (
            FieldKind.MESSAGE_REPEATED
        )
