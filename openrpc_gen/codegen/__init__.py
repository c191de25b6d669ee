"""Rust Code Generator - Renders the type graph as serde-annotated Rust code."""

from .main import (
    GeneratorContext,
    TEMPLATE_DIR,
    generate,
    render,
    render_header,
    render_method,
    render_type,
)

__all__ = [
    "GeneratorContext",
    "TEMPLATE_DIR",
    "generate",
    "render",
    "render_header",
    "render_method",
    "render_type",
]
