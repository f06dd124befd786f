"""protoc plugin generating Markdown documentation for gRPC services."""

__version__ = "0.1.0"
