"""Transform FileDescriptorProto messages into the application's schema models."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from google.protobuf import descriptor_pb2 as d2

from protoc_gen_md.models import (
    CallType,
    Declaration,
    Enum,
    EnumValue,
    Field,
    Message,
    MethodDecl,
    SchemaFile,
    ServiceDecl,
    StructuralPath,
    TypeRef,
    join_name,
    to_type_ref,
)

FDP = d2.FieldDescriptorProto

# Proto scalar types as written in .proto files.
SCALAR_TYPE_NAMES: Dict[int, str] = {
    FDP.TYPE_DOUBLE: "double",
    FDP.TYPE_FLOAT: "float",
    FDP.TYPE_INT64: "int64",
    FDP.TYPE_UINT64: "uint64",
    FDP.TYPE_INT32: "int32",
    FDP.TYPE_FIXED64: "fixed64",
    FDP.TYPE_FIXED32: "fixed32",
    FDP.TYPE_BOOL: "bool",
    FDP.TYPE_STRING: "string",
    FDP.TYPE_BYTES: "bytes",
    FDP.TYPE_UINT32: "uint32",
    FDP.TYPE_SFIXED32: "sfixed32",
    FDP.TYPE_SFIXED64: "sfixed64",
    FDP.TYPE_SINT32: "sint32",
    FDP.TYPE_SINT64: "sint64",
}

REFERENCE_TYPES = {FDP.TYPE_MESSAGE, FDP.TYPE_ENUM, FDP.TYPE_GROUP}

# Field numbers used to build structural paths.
FILE_MESSAGE = d2.FileDescriptorProto.MESSAGE_TYPE_FIELD_NUMBER
FILE_ENUM = d2.FileDescriptorProto.ENUM_TYPE_FIELD_NUMBER
FILE_SERVICE = d2.FileDescriptorProto.SERVICE_FIELD_NUMBER
MESSAGE_FIELD = d2.DescriptorProto.FIELD_FIELD_NUMBER
MESSAGE_NESTED = d2.DescriptorProto.NESTED_TYPE_FIELD_NUMBER
MESSAGE_ENUM = d2.DescriptorProto.ENUM_TYPE_FIELD_NUMBER
ENUM_VALUE = d2.EnumDescriptorProto.VALUE_FIELD_NUMBER
SERVICE_METHOD = d2.ServiceDescriptorProto.METHOD_FIELD_NUMBER


def transform_file(proto: d2.FileDescriptorProto) -> SchemaFile:
    """Transform one FileDescriptorProto into a SchemaFile.

    Nested declarations are flattened into ``declarations``: every container
    appears before the types declared inside it.
    """
    schema = SchemaFile(
        name=proto.name,
        package=proto.package,
        syntax=proto.syntax or "proto2",
    )
    context = _FileContext(schema)

    for idx, msg in enumerate(proto.message_type):
        schema.declarations.extend(
            _transform_message(msg, context, proto.package, (FILE_MESSAGE, idx))
        )

    for idx, enum in enumerate(proto.enum_type):
        schema.declarations.append(
            _transform_enum(enum, context, proto.package, (FILE_ENUM, idx))
        )

    for idx, service in enumerate(proto.service):
        schema.services.append(_transform_service(service, (FILE_SERVICE, idx)))

    return schema


class _FileContext:
    """Per-file values every nested transform needs."""

    def __init__(self, schema: SchemaFile):
        self.file_name = schema.name
        self.package = schema.package
        self.is_proto2 = schema.syntax == "proto2"

    def display_name(self, type_ref: TypeRef) -> str:
        """Type name relative to this file's package, fully qualified otherwise."""
        prefix = self.package + "." if self.package else ""
        if prefix and type_ref.startswith(prefix):
            return type_ref[len(prefix):]
        return type_ref


def _transform_message(
    desc: d2.DescriptorProto,
    context: _FileContext,
    scope: str,
    path: StructuralPath,
) -> List[Declaration]:
    type_ref = join_name(scope, desc.name)

    map_entries: Dict[TypeRef, d2.DescriptorProto] = {
        join_name(type_ref, n.name): n
        for n in desc.nested_type
        if n.options.map_entry
    }

    fields = [
        _transform_field(f, context, path + (MESSAGE_FIELD, i), map_entries)
        for i, f in enumerate(desc.field)
    ]

    nested: List[Declaration] = []
    nested_refs: List[TypeRef] = []
    for i, n in enumerate(desc.nested_type):
        if n.options.map_entry:
            continue
        decls = _transform_message(n, context, type_ref, path + (MESSAGE_NESTED, i))
        nested_refs.append(decls[0].type_ref)
        nested.extend(decls)
    for i, e in enumerate(desc.enum_type):
        decl = _transform_enum(e, context, type_ref, path + (MESSAGE_ENUM, i))
        nested_refs.append(decl.type_ref)
        nested.append(decl)

    msg = Message(
        type_ref=type_ref,
        name=desc.name,
        display_name=context.display_name(type_ref),
        file_name=context.file_name,
        path=path,
        fields=fields,
        nested_types=nested_refs,
        deprecated=desc.options.deprecated,
    )
    return [msg] + nested


def _transform_enum(
    desc: d2.EnumDescriptorProto,
    context: _FileContext,
    scope: str,
    path: StructuralPath,
) -> Enum:
    type_ref = join_name(scope, desc.name)
    values = [
        EnumValue(name=v.name, number=v.number, path=path + (ENUM_VALUE, i))
        for i, v in enumerate(desc.value)
    ]
    return Enum(
        type_ref=type_ref,
        name=desc.name,
        display_name=context.display_name(type_ref),
        file_name=context.file_name,
        path=path,
        values=values,
        deprecated=desc.options.deprecated,
    )


def _field_type(fd: d2.FieldDescriptorProto, context: _FileContext) -> Tuple[str, Optional[TypeRef]]:
    """Return (display name, referenced TypeRef or None) of a field's type."""
    if fd.type in REFERENCE_TYPES:
        type_ref = to_type_ref(fd.type_name)
        return context.display_name(type_ref), type_ref
    return SCALAR_TYPE_NAMES[fd.type], None


def _transform_field(
    fd: d2.FieldDescriptorProto,
    context: _FileContext,
    path: StructuralPath,
    map_entries: Dict[TypeRef, d2.DescriptorProto],
) -> Field:
    is_repeated = fd.label == FDP.LABEL_REPEATED
    entry: Optional[d2.DescriptorProto] = None
    if is_repeated and fd.type == FDP.TYPE_MESSAGE:
        entry = map_entries.get(to_type_ref(fd.type_name))

    if entry is not None:
        key = next(f for f in entry.field if f.number == 1)
        value = next(f for f in entry.field if f.number == 2)
        key_name, _ = _field_type(key, context)
        value_name, type_ref = _field_type(value, context)
        type_name = f"map<{key_name}, {value_name}>"
        is_repeated = False
    else:
        type_name, type_ref = _field_type(fd, context)

    if fd.proto3_optional:
        is_optional = True
    else:
        is_optional = context.is_proto2 and fd.label == FDP.LABEL_OPTIONAL
    is_required = fd.label == FDP.LABEL_REQUIRED

    return Field(
        name=fd.name,
        number=fd.number,
        type_name=type_name,
        type_ref=type_ref,
        is_optional=is_optional,
        is_required=is_required,
        is_repeated=is_repeated,
        is_map=entry is not None,
        deprecated=fd.options.deprecated,
        path=path,
    )


def _transform_service(
    desc: d2.ServiceDescriptorProto,
    path: StructuralPath,
) -> ServiceDecl:
    methods = [
        MethodDecl(
            name=m.name,
            input_type=to_type_ref(m.input_type),
            output_type=to_type_ref(m.output_type),
            call_type=CallType.from_flags(m.client_streaming, m.server_streaming),
            deprecated=m.options.deprecated,
            path=path + (SERVICE_METHOD, i),
        )
        for i, m in enumerate(desc.method)
    ]
    return ServiceDecl(
        name=desc.name,
        deprecated=desc.options.deprecated,
        path=path,
        methods=methods,
    )
