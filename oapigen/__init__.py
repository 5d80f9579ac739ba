"""Configuration, command-line handling, extension parsing and type-definition rules for an OpenAPI-to-Go generator, plus an in-memory pet store."""

__version__ = "0.1.0"