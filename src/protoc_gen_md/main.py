from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import BinaryIO, List, Optional

from google.protobuf.compiler import plugin_pb2
from google.protobuf.message import DecodeError

from protoc_gen_md import __version__
from protoc_gen_md.builder import DocumentBuilder
from protoc_gen_md.errors import GeneratorError
from protoc_gen_md.generator.markdown_generator import generate
from protoc_gen_md.options import parse_options

logger = logging.getLogger("protoc_gen_md")

LOG_LEVEL_ENV = "PROTOC_GEN_MD_LOG_LEVEL"


def run(request: plugin_pb2.CodeGeneratorRequest) -> plugin_pb2.CodeGeneratorResponse:
    """Main pipeline: validate options, resolve services, render documents.

    Raises GeneratorError on invalid options or a malformed request; no
    files are produced in that case.
    """
    # Options are validated before any resolution starts.
    options = parse_options(request.parameter)

    builder = DocumentBuilder.from_request(request)
    pages = builder.build_pages(request.file_to_generate)
    files = generate(pages, options)

    response = plugin_pb2.CodeGeneratorResponse(
        supported_features=plugin_pb2.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL,
    )
    response.file.extend(files)
    return response


def error_response(message: str) -> plugin_pb2.CodeGeneratorResponse:
    return plugin_pb2.CodeGeneratorResponse(
        error=message,
        supported_features=plugin_pb2.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL,
    )


def process(stdin: BinaryIO, stdout: BinaryIO) -> int:
    """Read a request from ``stdin``, write the response to ``stdout``.

    Returns the process exit status.
    """
    status = 0
    try:
        request = plugin_pb2.CodeGeneratorRequest.FromString(stdin.read())
        response = run(request)
    except DecodeError as e:
        logger.error("FATAL: could not decode CodeGeneratorRequest: %s", e)
        response = error_response(f"could not decode CodeGeneratorRequest: {e}")
        status = 1
    except GeneratorError as e:
        logger.error("FATAL: %s", e)
        response = error_response(str(e))
        status = 1

    stdout.write(response.SerializeToString())
    stdout.flush()
    return status


def log_level() -> int:
    """Level named by the environment; unknown names fall back to WARNING."""
    level = logging.getLevelName(os.environ.get(LOG_LEVEL_ENV, "WARNING").strip().upper())
    if not isinstance(level, int):
        return logging.WARNING
    return level


def _configure_logging() -> None:
    # stdout carries the binary response; everything else goes to stderr.
    logging.basicConfig(
        stream=sys.stderr,
        level=log_level(),
        format="protoc-gen-md: %(levelname)s %(name)s: %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="protoc-gen-md",
        description=(
            "protoc plugin generating Markdown documentation for gRPC services. "
            "Reads a CodeGeneratorRequest on stdin and writes a "
            "CodeGeneratorResponse on stdout. Options are passed through "
            "--md_opt=output=<name>,anchor_style=plain|explicit."
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.parse_args(argv)

    _configure_logging()
    return process(sys.stdin.buffer, sys.stdout.buffer)


if __name__ == "__main__":
    sys.exit(main())
