from __future__ import annotations

from typing import List, Optional, Set, Tuple

from protoc_gen_md.models import Message, ResolvedTypeSet, TypeRef
from protoc_gen_md.registry import TypeRegistry


def collect_types(
    registry: TypeRegistry,
    root: TypeRef,
    referrer: Optional[str] = None,
) -> ResolvedTypeSet:
    """Collect every message and enum reachable from ``root``.

    Depth-first in declaration order: a type is followed by the types nested
    inside it, then by the types its fields reference. A type already
    collected is neither added nor traversed again, which makes recursive
    and diamond-shaped references safe.

    Raises UnknownTypeError if ``root`` or any referenced type is missing.
    """
    result = ResolvedTypeSet(root=root)
    seen: Set[TypeRef] = set()
    # (type, who referenced it); popped in the order a recursive walk visits.
    stack: List[Tuple[TypeRef, Optional[str]]] = [(root, referrer)]

    while stack:
        type_ref, via = stack.pop()
        if type_ref in seen:
            continue
        decl = registry.lookup(type_ref, via)
        seen.add(type_ref)
        result.types.append(decl)

        if not isinstance(decl, Message):
            continue

        children: List[Tuple[TypeRef, Optional[str]]] = [
            (nested, decl.type_ref) for nested in decl.nested_types
        ]
        children.extend(
            (f.type_ref, f"{decl.type_ref}.{f.name}")
            for f in decl.fields
            if f.type_ref is not None
        )
        stack.extend(reversed(children))

    return result
