"""Type definitions for the descriptor model and code generation."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum, StrEnum, auto

from dataclasses_json import DataClassJsonMixin


class GeneratorError(RuntimeError):
    """Base class for failures that abort a generation run."""


class UnresolvedTypeError(GeneratorError):
    """Raised when a field references a type that is not in the descriptor tree."""

    def __init__(self, type_name: str, field_name: str, reason: str = "is not defined") -> None:
        super().__init__(f"Type '{type_name}' referenced by field '{field_name}' {reason}")
        self.type_name = type_name
        self.field = field_name


class BaseKind(StrEnum):
    """What a field holds."""

    SCALAR = auto()
    ENUM = auto()
    MESSAGE = auto()


class Multiplicity(StrEnum):
    """How many values a field holds, and whether presence is tracked."""

    SINGULAR = auto()
    OPTIONAL = auto()
    REPEATED = auto()


class FieldKind(Enum):
    """Closed set of field classifications, one per base kind and multiplicity."""

    SCALAR_SINGULAR = (BaseKind.SCALAR, Multiplicity.SINGULAR)
    SCALAR_OPTIONAL = (BaseKind.SCALAR, Multiplicity.OPTIONAL)
    SCALAR_REPEATED = (BaseKind.SCALAR, Multiplicity.REPEATED)
    ENUM_SINGULAR = (BaseKind.ENUM, Multiplicity.SINGULAR)
    ENUM_OPTIONAL = (BaseKind.ENUM, Multiplicity.OPTIONAL)
    ENUM_REPEATED = (BaseKind.ENUM, Multiplicity.REPEATED)
    MESSAGE_SINGULAR = (BaseKind.MESSAGE, Multiplicity.SINGULAR)
    MESSAGE_OPTIONAL = (BaseKind.MESSAGE, Multiplicity.OPTIONAL)
    MESSAGE_REPEATED = (BaseKind.MESSAGE, Multiplicity.REPEATED)

    @classmethod
    def of(cls, base: BaseKind, multiplicity: Multiplicity) -> "FieldKind":
        return cls((base, multiplicity))

    @property
    def base(self) -> BaseKind:
        return self.value[0]

    @property
    def multiplicity(self) -> Multiplicity:
        return self.value[1]


@dataclass(frozen=True)
class EnumValue(DataClassJsonMixin):
    """A single enum value, as declared in the schema."""

    name: str
    number: int


@dataclass(frozen=True)
class ProtoEnum(DataClassJsonMixin):
    """An enum definition, top-level or nested in a message."""

    name: str
    full_name: str
    values: tuple[EnumValue, ...] = ()


@dataclass(frozen=True)
class Field(DataClassJsonMixin):
    """A message field.

    declared_type is empty for scalars; otherwise it is the fully-qualified
    name of the referenced message or enum, without protoc's leading dot.
    """

    native_name: str
    wire_name: str
    number: int
    wire_type: str
    multiplicity: Multiplicity = Multiplicity.SINGULAR
    declared_type: str = ""


@dataclass(frozen=True)
class Message(DataClassJsonMixin):
    """A message definition, with its nested messages and enums."""

    name: str
    full_name: str
    fields: tuple[Field, ...] = ()
    nested_messages: tuple["Message", ...] = ()
    nested_enums: tuple[ProtoEnum, ...] = ()


@dataclass(frozen=True)
class SchemaFile(DataClassJsonMixin):
    """One compilation unit: a .proto file and everything it declares.

    dependencies hold the files it imports; they are only used to resolve
    field types and are never emitted.
    """

    name: str
    package: str
    messages: tuple[Message, ...] = ()
    enums: tuple[ProtoEnum, ...] = ()
    syntax: str = "proto3"
    java_package: str = ""
    java_outer_classname: str = ""
    java_multiple_files: bool = False
    service_names: tuple[str, ...] = ()
    dependencies: tuple["SchemaFile", ...] = field(default=(), repr=False)


Node = Message | ProtoEnum


def walk(schema: SchemaFile) -> Iterator[Node]:
    """Yield every message and enum of a file in emission order.

    File-level enums come first, then each message followed by its nested
    enums and, recursively, its nested messages.
    """
    yield from schema.enums
    for message in schema.messages:
        yield from _walk_message(message)


def _walk_message(message: Message) -> Iterator[Node]:
    yield message
    yield from message.nested_enums
    for nested in message.nested_messages:
        yield from _walk_message(nested)


def count_nodes(schema: SchemaFile) -> int:
    """Return the number of messages and enums in a file, nested ones included."""
    return sum(1 for _ in walk(schema))


@dataclass
class Conversion:
    """The pair of conversion functions emitted for one message or enum.

    to_native and to_proto hold the statements (or match arms) of each
    function body, ready for a template to lay out.
    """

    kind: str
    full_name: str
    native_type: str
    proto_type: str
    to_native: list[str] = field(default_factory=list)
    to_proto: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Resolved:
    """A type found in the index, with the file that declares it."""

    node: Node
    owner: SchemaFile


class TypeIndex:
    """Lookup of messages and enums by fully-qualified name.

    Covers the file itself and, transitively, everything it imports.
    """

    def __init__(self, entries: dict[str, Resolved]) -> None:
        self._entries = entries

    @classmethod
    def build(cls, schema: SchemaFile) -> "TypeIndex":
        entries: dict[str, Resolved] = {}
        seen: set[str] = set()

        def add_file(f: SchemaFile) -> None:
            if f.name in seen:
                return
            seen.add(f.name)
            for node in walk(f):
                entries.setdefault(node.full_name, Resolved(node=node, owner=f))
            for dep in f.dependencies:
                add_file(dep)

        add_file(schema)
        return cls(entries)

    def __contains__(self, full_name: str) -> bool:
        return full_name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def resolve(self, type_name: str, field_name: str = "?") -> Resolved:
        try:
            return self._entries[type_name]
        except KeyError:
            raise UnresolvedTypeError(type_name, field_name) from None

    def check(self, schema: SchemaFile) -> None:
        """Resolve every field reference of a file, failing on the first bad one."""
        for node in walk(schema):
            if not isinstance(node, Message):
                continue
            for f in node.fields:
                self.resolve_field(node, f)

    def resolve_field(self, message: Message, f: Field) -> Resolved | None:
        """Resolve the declared type of a field; scalars resolve to None."""
        field_name = f"{message.full_name}.{f.wire_name}"
        if f.wire_type == "enum":
            expected: type = ProtoEnum
        elif f.wire_type == "message":
            expected = Message
        else:
            return None

        resolved = self.resolve(f.declared_type, field_name)
        if not isinstance(resolved.node, expected):
            reason = "is not an enum" if expected is ProtoEnum else "is not a message"
            raise UnresolvedTypeError(f.declared_type, field_name, reason=reason)
        return resolved
