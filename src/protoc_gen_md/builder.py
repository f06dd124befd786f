"""Assemble the document model handed to the Markdown renderer."""

from __future__ import annotations

import dataclasses
import logging
from typing import Dict, Iterable, List, Mapping, Optional

from google.protobuf.compiler import plugin_pb2

from protoc_gen_md.collector import collect_types
from protoc_gen_md.errors import GeneratorError
from protoc_gen_md.models import (
    Declaration,
    Enum,
    Method,
    MethodDecl,
    ResolvedTypeSet,
    SchemaFile,
    Service,
    ServiceDecl,
    TypeRef,
    join_name,
)
from protoc_gen_md.parser.comments import CommentIndex
from protoc_gen_md.parser.descriptor_transform import transform_file
from protoc_gen_md.registry import TypeRegistry

logger = logging.getLogger(__name__)


class DocumentBuilder:
    """Resolve services of a request into fully documented models.

    The registry and comment indexes are only read after construction, so a
    builder can serve any number of files of the same request.
    """

    def __init__(
        self,
        files: Iterable[SchemaFile],
        comment_indexes: Mapping[str, CommentIndex],
    ):
        self.files: Dict[str, SchemaFile] = {f.name: f for f in files}
        self.registry = TypeRegistry.from_files(self.files.values())
        self.comment_indexes = dict(comment_indexes)

    @classmethod
    def from_request(cls, request: plugin_pb2.CodeGeneratorRequest) -> DocumentBuilder:
        files = [transform_file(proto) for proto in request.proto_file]
        indexes = {proto.name: CommentIndex.from_file(proto) for proto in request.proto_file}
        logger.info("Loaded %d proto file(s) from request", len(files))
        return cls(files, indexes)

    def build_pages(self, names: Iterable[str]) -> Dict[str, List[Service]]:
        """Return the services of each named file, in the given order."""
        return {name: self.build_services(name) for name in names}

    def build_services(self, name: str) -> List[Service]:
        schema_file = self.files.get(name)
        if schema_file is None:
            raise GeneratorError(f"File '{name}' not found in request")
        return [self.build_service(schema_file, s) for s in schema_file.services]

    def build_service(self, schema_file: SchemaFile, decl: ServiceDecl) -> Service:
        comments = self._comments(schema_file.name)
        service = Service(
            name=decl.name,
            package=schema_file.package,
            file_name=schema_file.name,
            description=comments.lookup(decl.path).leading,
            deprecated=decl.deprecated,
        )
        for method_decl in decl.methods:
            method = self.build_method(schema_file, service, method_decl)
            # Method deprecation does not inherit from the service.
            if method.deprecated:
                service.deprecated_methods.append(method)
            else:
                service.methods.append(method)
        logger.debug(
            "Built service %s: %d active, %d deprecated method(s)",
            service.full_name,
            len(service.methods),
            len(service.deprecated_methods),
        )
        return service

    def build_method(
        self,
        schema_file: SchemaFile,
        service: Service,
        decl: MethodDecl,
    ) -> Method:
        referrer = join_name(service.full_name, decl.name)
        return Method(
            name=decl.name,
            call_type=decl.call_type,
            description=self._comments(schema_file.name).lookup(decl.path).leading,
            deprecated=decl.deprecated,
            input_type=decl.input_type,
            output_type=decl.output_type,
            input_types=self.resolve(decl.input_type, referrer),
            output_types=self.resolve(decl.output_type, referrer),
        )

    def resolve(self, root: TypeRef, referrer: Optional[str] = None) -> ResolvedTypeSet:
        """Collect the types reachable from ``root`` with their comments attached."""
        collected = collect_types(self.registry, root, referrer)
        return ResolvedTypeSet(
            root=collected.root,
            types=[self.document(decl) for decl in collected.types],
        )

    def document(self, decl: Declaration) -> Declaration:
        """Return a copy of ``decl`` with comments from its own file attached."""
        comments = self._comments(decl.file_name)
        if isinstance(decl, Enum):
            values = [
                dataclasses.replace(v, comment=comments.lookup(v.path))
                for v in decl.values
            ]
            return dataclasses.replace(decl, comment=comments.lookup(decl.path), values=values)
        fields = [
            dataclasses.replace(f, comment=comments.lookup(f.path))
            for f in decl.fields
        ]
        return dataclasses.replace(decl, comment=comments.lookup(decl.path), fields=fields)

    def _comments(self, file_name: str) -> CommentIndex:
        index = self.comment_indexes.get(file_name)
        if index is None:
            return CommentIndex()
        return index
