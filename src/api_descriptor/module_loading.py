"""Helpers for locating handler classes named on the command line."""

from __future__ import annotations

import importlib
import importlib.util
from pathlib import Path
import sys
from types import ModuleType
from typing import Union

from .exceptions import ApiConfigurationError
from .metadata import HandlerMetadata, load_handler_metadata

_METADATA_SUFFIXES = (".yaml", ".yml")


def load_module_from_path(*, module_name: str, module_path: Path) -> ModuleType:
    """Load a module from file path and register it in ``sys.modules``.

    Args:
        module_name (str): Temporary import name for the module.
        module_path (Path): File system path to the Python module.

    Returns:
        ModuleType: Imported Python module object.
    """
    spec = importlib.util.spec_from_file_location(module_name, module_path)
    if spec is None or spec.loader is None:
        raise ApiConfigurationError(f"Unable to import module from: {module_path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        sys.modules.pop(module_name, None)
        raise
    return module


def load_handler_target(target: str) -> Union[type, HandlerMetadata]:
    """Resolve a handler target.

    Targets are ``package.module:Class``, ``path/to/file.py:Class`` or the
    path of a YAML metadata table.

    Args:
        target (str): Target string as given on the command line.

    Returns:
        Union[type, HandlerMetadata]: Handler class or loaded metadata.
    """
    if target.endswith(_METADATA_SUFFIXES):
        return load_handler_metadata(Path(target))

    location, separator, attribute = target.rpartition(":")
    if not separator or not location or not attribute:
        raise ApiConfigurationError(
            f"Handler target must be 'module:Class', 'file.py:Class' or a YAML file: {target!r}"
        )

    if location.endswith(".py"):
        path = Path(location)
        if not path.is_file():
            raise ApiConfigurationError(f"Handler module not found: {path}")
        module = load_module_from_path(module_name=f"_api_handler_{path.stem}", module_path=path)
    else:
        try:
            module = importlib.import_module(location)
        except ImportError as exc:
            raise ApiConfigurationError(f"Unable to import handler module {location!r}: {exc}") from exc

    handler = getattr(module, attribute, None)
    if not isinstance(handler, type):
        raise ApiConfigurationError(f"{attribute!r} in {location!r} is not a class")
    return handler
