"""Command line interface for rendering API descriptions."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .config import Settings
from .description import ApiDescription
from .exceptions import (
    ApiConfigurationError,
    ApiValidationError,
    MetadataLoadError,
    UnknownReferenceError,
)
from .module_loading import load_handler_target
from .scanner import register_service
from .serialize import describe_api, dumps


class CLIError(RuntimeError):
    """Raised when CLI execution fails."""


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    parser = argparse.ArgumentParser(
        prog="api-descriptor",
        description="Scan annotated request handlers into a JSON API description",
    )
    parser.add_argument("--id", required=True, help="Identifier of the API description")
    parser.add_argument("--version", dest="api_version", help="Version of the API description")
    parser.add_argument(
        "--service",
        action="append",
        default=[],
        metavar="NAME=TARGET",
        help="Service to publish; TARGET is module:Class, file.py:Class or a YAML metadata file",
    )
    parser.add_argument("--locale", help="Locale to render translatable text in")
    parser.add_argument("--dictionary-dir", help="Directory of <bundle>.yaml translation files")
    parser.add_argument("--verbose", action="store_true", help="Log debug output to stderr")
    return parser


def parse_service(value: str) -> tuple[str, str]:
    """Split a ``NAME=TARGET`` option value."""
    name, separator, target = value.partition("=")
    if not separator or not name.strip() or not target.strip():
        raise CLIError(f"Service must be given as NAME=TARGET: {value!r}")
    return name.strip(), target.strip()


def main(argv: Optional[list[str]] = None) -> int:
    """Run CLI and return process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as exc:
        parser.error(f"Invalid configuration: {exc}")
        return 2
    if args.dictionary_dir:
        settings = settings.model_copy(update={"dictionary_dir": Path(args.dictionary_dir)})

    logging.basicConfig(level=logging.DEBUG if args.verbose else settings.log_level)
    locale = args.locale or settings.default_locale

    try:
        builder = ApiDescription.builder().id(args.id)
        if args.api_version:
            builder.version(args.api_version)
        descriptor = builder.build()
        for value in args.service:
            name, target = parse_service(value)
            register_service(descriptor, name, load_handler_target(target))
        document = describe_api(descriptor, locale=locale, translator=settings.translator())
    except (
        ApiValidationError,
        ApiConfigurationError,
        MetadataLoadError,
        UnknownReferenceError,
        CLIError,
    ) as exc:
        parser.error(str(exc))
        return 2

    print(dumps(document))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
