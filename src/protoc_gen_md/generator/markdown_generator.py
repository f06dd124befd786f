from __future__ import annotations

import logging
import re
import textwrap
from pathlib import Path
from typing import Dict, List, Mapping

from google.protobuf.compiler import plugin_pb2
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from protoc_gen_md.models import (
    Declaration,
    Enum,
    Field,
    Message,
    Method,
    ResolvedTypeSet,
    Service,
    TypeRef,
)
from protoc_gen_md.options import AnchorStyle, Options

logger = logging.getLogger(__name__)

File = plugin_pb2.CodeGeneratorResponse.File


def proto_comment(text: str, indent: str = "") -> str:
    """Prefix every line of ``text`` with ``//`` so it reads as a proto comment."""
    if not text:
        return ""
    return "\n".join(f"{indent}//{line}" for line in text.rstrip("\n").split("\n"))


def trailing_comment(text: str) -> str:
    """Render a trailing comment as a single `` // ...`` suffix."""
    words = " ".join(line.strip() for line in text.splitlines() if line.strip())
    if not words:
        return ""
    return f" // {words}"


def paragraph(text: str) -> str:
    """Turn a leading comment into Markdown prose."""
    return textwrap.dedent(text).strip()


def anchor(service: Service, method: Method) -> str:
    """Anchor identifier of a method heading, e.g. ``greeter-greeter-sayhello``."""
    full_name = f"{service.full_name}.{method.name}".lower()
    return re.sub(r"[^a-z0-9]+", "-", full_name).strip("-")


def _field_declaration(f: Field) -> str:
    parts = [f.label, f.type_name, f.name, "=", str(f.number)]
    line = " ".join(p for p in parts if p)
    if f.deprecated:
        line += " [deprecated = true]"
    return line + ";"


def _type_context(decl: Declaration, name: str, nested: Mapping[TypeRef, Declaration]) -> Dict:
    """Build the template context of one message or enum block.

    Types found in ``nested`` are rendered inside the block of their container.
    """
    children: List[Dict] = []
    if isinstance(decl, Enum):
        entries = [
            {
                "comment": v.comment.leading,
                "declaration": f"{v.name} = {v.number};",
                "trailing": v.comment.trailing,
            }
            for v in decl.values
        ]
    else:
        entries = [
            {
                "comment": f.comment.leading,
                "declaration": _field_declaration(f),
                "trailing": f.comment.trailing,
            }
            for f in decl.fields
        ]
        children = [
            _type_context(nested[r], nested[r].name, nested)
            for r in decl.nested_types
            if r in nested
        ]
    return {
        "kind": decl.kind,
        "name": name,
        "comment": decl.comment.leading,
        "deprecated": decl.deprecated,
        "entries": entries,
        "nested": children,
    }


def _type_contexts(types: ResolvedTypeSet) -> List[Dict]:
    """Top-level blocks of a type set; the root always gets its own block."""
    by_ref = {t.type_ref: t for t in types}
    nested = {
        r: by_ref[r]
        for t in types
        if isinstance(t, Message)
        for r in t.nested_types
        if r in by_ref and r != types.root
    }
    return [
        _type_context(t, t.display_name, nested)
        for t in types
        if t.type_ref not in nested
    ]


def _method_context(service: Service, method: Method, anchor_style: AnchorStyle) -> Dict:
    heading = method.name
    if anchor_style is AnchorStyle.EXPLICIT:
        heading += f" {{#{anchor(service, method)}}}"
    return {
        "heading": heading,
        "description": method.description,
        "call_type": str(method.call_type),
        "input_name": method.input_types.types[0].display_name,
        "output_name": method.output_types.types[0].display_name,
        "input_types": _type_contexts(method.input_types),
        "output_types": _type_contexts(method.output_types),
    }


def _service_context(service: Service, anchor_style: AnchorStyle) -> Dict:
    return {
        "name": service.name,
        "package": service.package,
        "file_name": service.file_name,
        "description": service.description,
        "deprecated": service.deprecated,
        "methods": [_method_context(service, m, anchor_style) for m in service.methods],
        "deprecated_methods": [
            _method_context(service, m, anchor_style) for m in service.deprecated_methods
        ],
    }


def _get_template_env() -> Environment:
    template_dir = Path(__file__).resolve().parent.parent / "templates"
    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["proto_comment"] = proto_comment
    env.filters["trailing_comment"] = trailing_comment
    env.filters["paragraph"] = paragraph
    return env


def render_page(services: List[Service], anchor_style: AnchorStyle = AnchorStyle.PLAIN) -> str:
    """Render the Markdown page documenting ``services``."""
    template = _get_template_env().get_template("page.md.j2")
    return template.render(services=[_service_context(s, anchor_style) for s in services])


def page_name(proto_name: str) -> str:
    """Output document name of a proto file, e.g. ``foo/bar.proto`` -> ``foo.bar.proto.md``."""
    return f"{proto_name.replace('/', '.')}.md"


def generate_single_page(
    pages: Mapping[str, List[Service]],
    name: str,
    anchor_style: AnchorStyle = AnchorStyle.PLAIN,
) -> List[File]:
    """Generate one document named ``name`` with the services of every page."""
    rendered = [render_page(services, anchor_style) for services in pages.values()]
    content = "\n".join(page for page in rendered if page)
    logger.info("Generated %s from %d proto file(s)", name, len(pages))
    return [File(name=name, content=content)]


def generate_multiple_pages(
    pages: Mapping[str, List[Service]],
    anchor_style: AnchorStyle = AnchorStyle.PLAIN,
) -> List[File]:
    """Generate one document per proto file."""
    files: List[File] = []
    for proto_name, services in pages.items():
        name = page_name(proto_name)
        files.append(File(name=name, content=render_page(services, anchor_style)))
        logger.info("Generated %s (%d service(s))", name, len(services))
    return files


def generate(pages: Mapping[str, List[Service]], options: Options) -> List[File]:
    if options.single_page:
        return generate_single_page(pages, options.output, options.anchor_style)
    return generate_multiple_pages(pages, options.anchor_style)
