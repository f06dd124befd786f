from protoc_gen_md.builder import DocumentBuilder
from protoc_gen_md.generator.markdown_generator import (
    anchor,
    generate,
    generate_multiple_pages,
    generate_single_page,
    page_name,
    paragraph,
    proto_comment,
    render_page,
    trailing_comment,
)
from protoc_gen_md.options import AnchorStyle, Options

from proto_fixtures import (
    FDP,
    enum,
    greeter_file,
    map_entry,
    message,
    method,
    proto_file,
    ref,
    request,
    scalar,
    service,
)

GREETER_PAGE = """\
# Greeter

Package: `helloworld`, defined in `helloworld.proto`.

## SayHello

Call type: unary

Request: `HelloRequest`

```proto
message HelloRequest {
  string name = 1;
}
```

Response: `HelloReply`

```proto
message HelloReply {
  string message = 1;
}
```
"""


def _pages(*protos, names=None):
    req = request(protos)
    builder = DocumentBuilder.from_request(req)
    return builder.build_pages(names or req.file_to_generate)


def _services(*protos):
    pages = _pages(*protos)
    return pages[protos[-1].name]


class TestFilters:
    def test_proto_comment(self):
        assert proto_comment(" foo\n bar\n") == "// foo\n// bar"
        assert proto_comment("foo\nbar") == "//foo\n//bar"

    def test_proto_comment_keeps_blank_lines(self):
        assert proto_comment(" a\n\n b\n") == "// a\n//\n// b"

    def test_proto_comment_indent(self):
        assert proto_comment(" x\n", "  ") == "  // x"

    def test_proto_comment_empty(self):
        assert proto_comment("") == ""

    def test_trailing_comment(self):
        assert trailing_comment(" in seconds\n") == " // in seconds"
        assert trailing_comment(" one\n two\n") == " // one two"
        assert trailing_comment("") == ""
        assert trailing_comment("  \n") == ""

    def test_paragraph(self):
        assert paragraph(" Says hello.\n\n Twice.\n") == "Says hello.\n\nTwice."

    def test_page_name(self):
        assert page_name("helloworld.proto") == "helloworld.proto.md"
        assert page_name("acme/api/v1/users.proto") == "acme.api.v1.users.proto.md"

    def test_anchor(self):
        greeter = _services(greeter_file())[0]
        assert anchor(greeter, greeter.methods[0]) == "helloworld-greeter-sayhello"


class TestRenderPage:
    def test_greeter_page(self):
        assert render_page(_services(greeter_file())) == GREETER_PAGE

    def test_no_deprecated_section_without_deprecated_methods(self):
        assert "Deprecated" not in render_page(_services(greeter_file()))

    def test_explicit_anchor(self):
        page = render_page(_services(greeter_file()), AnchorStyle.EXPLICIT)
        assert "## SayHello {#helloworld-greeter-sayhello}\n" in page

    def test_descriptions(self):
        proto = greeter_file(comments={
            (6, 0): " The greeting service.\n",
            (6, 0, 2, 0): " Sends a greeting.\n\n Politely.\n",
            (4, 0): " The request message.\n",
            (4, 0, 2, 0): (" Who to greet.\n", " required\n"),
        })
        page = render_page(_services(proto))
        assert "# Greeter\n\nThe greeting service.\n\nPackage:" in page
        assert "## SayHello\n\nSends a greeting.\n\nPolitely.\n\nCall type: unary" in page
        assert (
            "// The request message.\n"
            "message HelloRequest {\n"
            "  // Who to greet.\n"
            "  string name = 1; // required\n"
            "}\n"
        ) in page

    def test_deprecated_section(self):
        proto = proto_file("svc.proto", "svc", messages=[message("Req"), message("Rep")], services=[
            service("Api", [
                method("Current", ".svc.Req", ".svc.Rep"),
                method("Legacy", ".svc.Req", ".svc.Rep", deprecated=True),
            ], deprecated=True),
        ])
        page = render_page(_services(proto))
        assert page.startswith("# Api (deprecated)\n")
        assert "\n## Current\n" in page
        assert "\n## Deprecated methods\n\n### Legacy\n" in page
        assert page.index("## Current") < page.index("## Deprecated methods")

    def test_empty_message(self):
        proto = proto_file("e.proto", "e", messages=[message("Empty")], services=[
            service("S", [method("Ping", ".e.Empty", ".e.Empty")]),
        ])
        page = render_page(_services(proto))
        assert "```proto\nmessage Empty {}\n```\n" in page

    def test_field_labels_and_maps(self):
        proto = proto_file("f.proto", "f", messages=[
            message(
                "Req",
                [
                    scalar("tags", 1, repeated=True),
                    scalar("nick", 2, proto3_optional=True),
                    scalar("old", 3, FDP.TYPE_INT32, deprecated=True),
                    ref("items", 4, ".f.Req.ItemsEntry", repeated=True),
                    ref("color", 5, ".f.Color", is_enum=True),
                ],
                nested=[map_entry("ItemsEntry", scalar("key", 1), ref("value", 2, ".f.Item"))],
            ),
            message("Item", [scalar("name", 1)]),
        ], enums=[enum("Color", [("RED", 0), ("BLUE", 1)])], services=[
            service("S", [method("Put", ".f.Req", ".f.Item")]),
        ])
        page = render_page(_services(proto))
        assert "  repeated string tags = 1;\n" in page
        assert "  optional string nick = 2;\n" in page
        assert "  int32 old = 3 [deprecated = true];\n" in page
        assert "  map<string, Item> items = 4;\n" in page
        assert "  Color color = 5;\n" in page
        assert "enum Color {\n  RED = 0;\n  BLUE = 1;\n}\n" in page
        assert "ItemsEntry" not in page

    def test_types_in_resolution_order(self):
        proto = proto_file("o.proto", "o", messages=[
            message("Req", [ref("b", 1, ".o.B"), ref("a", 2, ".o.A")]),
            message("A"),
            message("B", [ref("self", 1, ".o.B")]),
        ], services=[service("S", [method("Go", ".o.Req", ".o.A")])])
        page = render_page(_services(proto))
        request_block = page[page.index("Request:"):page.index("Response:")]
        assert request_block.index("message Req {") < request_block.index("message B {")
        assert request_block.index("message B {") < request_block.index("message A {}")
        assert request_block.count("message B {") == 1

    def test_deprecated_type(self):
        proto = proto_file("d.proto", "d", messages=[message("Old", deprecated=True)], services=[
            service("S", [method("Go", ".d.Old", ".d.Old")]),
        ])
        assert "message Old {\n  option deprecated = true;\n}\n" in render_page(_services(proto))

    def test_nested_types_render_inside_container(self):
        proto = proto_file("n.proto", "n", messages=[
            message(
                "Outer",
                [ref("inner", 1, ".n.Outer.Inner")],
                nested=[message("Inner", [ref("kind", 1, ".n.Outer.Inner.Kind", is_enum=True)],
                                enums=[enum("Kind", [("A", 0)])])],
            ),
        ], services=[service("S", [method("Go", ".n.Outer", ".n.Outer")])])
        page = render_page(_services(proto))
        assert (
            "message Outer {\n"
            "  message Inner {\n"
            "    enum Kind {\n"
            "      A = 0;\n"
            "    }\n"
            "    Outer.Inner.Kind kind = 1;\n"
            "  }\n"
            "  Outer.Inner inner = 1;\n"
            "}\n"
        ) in page
        assert "message Outer.Inner" not in page

    def test_nested_root_keeps_qualified_name(self):
        proto = proto_file("n.proto", "n", messages=[
            message("Outer", [scalar("id", 1)], nested=[message("Inner")]),
        ], services=[service("S", [method("Go", ".n.Outer.Inner", ".n.Outer")])])
        page = render_page(_services(proto))
        assert "Request: `Outer.Inner`\n\n```proto\nmessage Outer.Inner {}\n```\n" in page
        assert "message Outer {\n  message Inner {}\n  string id = 1;\n}\n" in page

    def test_proto2_required_label(self):
        proto = proto_file("p.proto", "p", syntax="proto2", messages=[
            message("M", [scalar("id", 1, required=True), scalar("note", 2)]),
        ], services=[service("S", [method("Go", ".p.M", ".p.M")])])
        page = render_page(_services(proto))
        assert "message M {\n  required string id = 1;\n  optional string note = 2;\n}\n" in page

    def test_streaming_call_type(self):
        proto = proto_file("s.proto", "s", messages=[message("M")], services=[
            service("S", [method("Watch", ".s.M", ".s.M", server_streaming=True)]),
        ])
        assert "Call type: server streaming\n" in render_page(_services(proto))

    def test_rendering_is_deterministic(self):
        first = render_page(_services(greeter_file()))
        second = render_page(_services(greeter_file()))
        assert first == second


class TestOutputModes:
    def _protos(self):
        other = proto_file(
            "acme/echo.proto",
            "acme",
            messages=[message("Msg", [scalar("text", 1)])],
            services=[service("Echo", [method("Echo", ".acme.Msg", ".acme.Msg")])],
        )
        return greeter_file(), other

    def test_multiple_pages(self):
        files = generate_multiple_pages(_pages(*self._protos()))
        assert [f.name for f in files] == ["helloworld.proto.md", "acme.echo.proto.md"]
        assert files[0].content == GREETER_PAGE
        assert files[1].content.startswith("# Echo\n")

    def test_single_page(self):
        files = generate_single_page(_pages(*self._protos()), "api.md")
        assert len(files) == 1
        assert files[0].name == "api.md"
        content = files[0].content
        assert content.startswith(GREETER_PAGE + "\n# Echo\n")
        assert content.count("# Greeter") == 1

    def test_single_page_skips_files_without_services(self):
        common = proto_file("common.proto", "common", messages=[message("Unused")])
        pages = _pages(common, greeter_file())
        files = generate_single_page(pages, "api.md")
        assert files[0].content == GREETER_PAGE

    def test_generate_dispatches_on_options(self):
        pages = _pages(*self._protos())
        assert len(generate(pages, Options())) == 2
        single = generate(pages, Options(output="all.md", anchor_style=AnchorStyle.EXPLICIT))
        assert [f.name for f in single] == ["all.md"]
        assert "{#acme-echo-echo}" in single[0].content

    def test_only_requested_files(self):
        pages = _pages(*self._protos(), names=["acme/echo.proto"])
        files = generate_multiple_pages(pages)
        assert [f.name for f in files] == ["acme.echo.proto.md"]
