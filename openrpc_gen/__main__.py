"""CLI entry point: ``python -m openrpc_gen -c config.yaml -d openrpc.json -o src/generated.rs``."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .codegen import render
from .config import Config, load_config
from .parse import parse_openrpc
from .shared import SchemaError, load_document


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="openrpc-gen",
        description="Generate serde-annotated Rust types from an OpenRPC document",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to the generator configuration (YAML or JSON)",
    )
    parser.add_argument(
        "-d",
        "--document",
        type=Path,
        required=True,
        help="Path to the OpenRPC document (JSON or YAML)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        required=True,
        help="Output path for the generated Rust file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug messages",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config) if args.config is not None else Config()
        document = load_document(args.document)
        file = parse_openrpc(document, config)

        # Render fully before touching the output file
        code = render(file, config)

        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(code, encoding="utf-8")

        print(
            f"Generated {len(file.types)} type(s) and {len(file.methods)} "
            f"method(s) into {args.output}"
        )
    except (SchemaError, FileNotFoundError) as e:
        raise SystemExit(f"Error: {e}") from e


if __name__ == "__main__":
    main()
