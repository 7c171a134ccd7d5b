"""Descriptor fixtures shared by the generator tests."""

import os

import pytest
from google.protobuf import text_format
from google.protobuf.descriptor_pb2 import FileDescriptorSet

from protobind.generator import build_schema

FILE_DIR = os.path.dirname(os.path.realpath(__file__))

FIXTURES = {
    "status": "p.proto",
    "kinds": "kinds.proto",
    "nested": "geo/v1/shapes.proto",
    "legacy": "legacy.proto",
    "imports": "shop/order.proto",
    "unresolved": "broken.proto",
}


def read_descriptor_set(fixture):
    with open(f"{FILE_DIR}/{fixture}.textproto") as f:
        return text_format.Parse(f.read(), FileDescriptorSet())


@pytest.fixture
def descriptor_set():
    return read_descriptor_set


@pytest.fixture
def schema():
    """Build the SchemaFile of a named textproto fixture."""

    def load(fixture):
        return build_schema(read_descriptor_set(fixture), FIXTURES[fixture])

    return load
