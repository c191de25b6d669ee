"""openrpc-gen - Generates serde-annotated Rust types from OpenRPC documents."""

from .config import Config, load_config
from .model import File
from .parse import parse_openrpc
from .codegen import generate, render

__version__ = "0.1.0"

__all__ = [
    "Config",
    "File",
    "generate",
    "load_config",
    "parse_openrpc",
    "render",
]
