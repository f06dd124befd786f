from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, Optional

from protoc_gen_md.errors import DuplicateTypeError, UnknownTypeError
from protoc_gen_md.models import Declaration, SchemaFile, TypeRef

logger = logging.getLogger(__name__)


class TypeRegistry:
    """Every message and enum of a request, keyed by fully qualified name."""

    def __init__(self):
        self._types: Dict[TypeRef, Declaration] = {}

    @classmethod
    def from_files(cls, files: Iterable[SchemaFile]) -> TypeRegistry:
        registry = cls()
        for schema_file in files:
            for decl in schema_file.declarations:
                registry.register(decl)
            logger.debug(
                "Registered %d type(s) from %s",
                len(schema_file.declarations),
                schema_file.name,
            )
        return registry

    def register(self, decl: Declaration) -> None:
        """Register ``decl``. Raises DuplicateTypeError if its name is taken."""
        existing = self._types.get(decl.type_ref)
        if existing is not None:
            raise DuplicateTypeError(decl.type_ref, existing.file_name, decl.file_name)
        self._types[decl.type_ref] = decl

    def lookup(self, type_ref: TypeRef, referrer: Optional[str] = None) -> Declaration:
        """Return the declaration for ``type_ref``. Raises UnknownTypeError if absent."""
        try:
            return self._types[type_ref]
        except KeyError:
            raise UnknownTypeError(type_ref, referrer) from None

    def __contains__(self, type_ref: object) -> bool:
        return type_ref in self._types

    def __len__(self) -> int:
        return len(self._types)

    def __iter__(self) -> Iterator[TypeRef]:
        return iter(self._types)
