"""protobind code generator."""

from .parser import SchemaCompilerError as SchemaCompilerError
from .parser import build_schema as build_schema
from .parser import build_schema_file as build_schema_file
from .parser import compile_schema as compile_schema
from .parser import load_descriptor_set as load_descriptor_set
from .types import *
from .writer import Artifact as Artifact
from .writer import cpp_artifacts as cpp_artifacts
from .writer import kotlin_artifacts as kotlin_artifacts
from .writer import write_artifacts as write_artifacts
