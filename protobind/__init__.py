"""protobind - native model bindings generator for protobuf schemas."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("protobind")
except PackageNotFoundError:
    __version__ = "(local)"
