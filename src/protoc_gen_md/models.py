from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

# Position of a declaration inside a FileDescriptorProto, flattened the same
# way SourceCodeInfo.Location.path is.
StructuralPath = Tuple[int, ...]

# Fully qualified type name without the leading dot, e.g. "pkg.Outer.Inner".
TypeRef = str


def to_type_ref(type_name: str) -> TypeRef:
    """Strip the leading dot protoc puts on fully qualified type names."""
    return type_name.lstrip(".")


def join_name(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


@dataclass
class Comment:
    leading: str = ""
    trailing: str = ""


@dataclass
class Field:
    name: str
    number: int
    type_name: str
    type_ref: Optional[TypeRef] = None
    is_optional: bool = False
    is_required: bool = False
    is_repeated: bool = False
    is_map: bool = False
    deprecated: bool = False
    path: StructuralPath = ()
    comment: Comment = field(default_factory=Comment)

    @property
    def label(self) -> str:
        """Modifier keyword shown in front of the type, if any."""
        if self.is_repeated:
            return "repeated"
        if self.is_required:
            return "required"
        if self.is_optional:
            return "optional"
        return ""


@dataclass
class Message:
    type_ref: TypeRef
    name: str
    display_name: str
    file_name: str
    path: StructuralPath
    fields: List[Field] = field(default_factory=list)
    nested_types: List[TypeRef] = field(default_factory=list)
    deprecated: bool = False
    comment: Comment = field(default_factory=Comment)

    kind = "message"


@dataclass
class EnumValue:
    name: str
    number: int
    path: StructuralPath = ()
    comment: Comment = field(default_factory=Comment)


@dataclass
class Enum:
    type_ref: TypeRef
    name: str
    display_name: str
    file_name: str
    path: StructuralPath
    values: List[EnumValue] = field(default_factory=list)
    deprecated: bool = False
    comment: Comment = field(default_factory=Comment)

    kind = "enum"


Declaration = Union[Message, Enum]


class CallType(enum.Enum):
    UNARY = "unary"
    SERVER_STREAMING = "server streaming"
    CLIENT_STREAMING = "client streaming"
    BIDI_STREAMING = "bidi streaming"

    @classmethod
    def from_flags(cls, client_streaming: bool, server_streaming: bool) -> CallType:
        if client_streaming and server_streaming:
            return cls.BIDI_STREAMING
        if server_streaming:
            return cls.SERVER_STREAMING
        if client_streaming:
            return cls.CLIENT_STREAMING
        return cls.UNARY

    def __str__(self) -> str:
        return self.value


@dataclass
class ResolvedTypeSet:
    """Every declaration reachable from ``root``, root first, each type once."""

    root: TypeRef
    types: List[Declaration] = field(default_factory=list)

    @property
    def type_refs(self) -> List[TypeRef]:
        return [t.type_ref for t in self.types]

    def __len__(self) -> int:
        return len(self.types)

    def __iter__(self):
        return iter(self.types)


@dataclass
class MethodDecl:
    """A method as declared in the descriptor, before type resolution."""

    name: str
    input_type: TypeRef
    output_type: TypeRef
    call_type: CallType
    deprecated: bool
    path: StructuralPath


@dataclass
class ServiceDecl:
    """A service as declared in the descriptor, before type resolution."""

    name: str
    deprecated: bool
    path: StructuralPath
    methods: List[MethodDecl] = field(default_factory=list)


@dataclass
class SchemaFile:
    name: str
    package: str
    syntax: str = "proto2"
    services: List[ServiceDecl] = field(default_factory=list)
    declarations: List[Declaration] = field(default_factory=list)


@dataclass
class Method:
    name: str
    call_type: CallType
    description: str
    deprecated: bool
    input_type: TypeRef
    output_type: TypeRef
    input_types: ResolvedTypeSet
    output_types: ResolvedTypeSet


@dataclass
class Service:
    name: str
    package: str
    file_name: str
    description: str
    deprecated: bool
    methods: List[Method] = field(default_factory=list)
    deprecated_methods: List[Method] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return join_name(self.package, self.name)
