from __future__ import annotations

import importlib
from typing import Any

from ..errors import ConfigurationError


def load_symbol(dotted: str, kind: str = "symbol") -> Any:
    """
    Load a class or function from a dotted path, e.g. the configured engine or exporter.
    Supports both "package.module:ClassName" and "package.module.ClassName".
    """
    if ":" in dotted:
        module_name, symbol_name = dotted.split(":", 1)
    elif "." in dotted:
        module_name, symbol_name = dotted.rsplit(".", 1)
    else:
        raise ConfigurationError(f"Invalid {kind} path {dotted!r}; expected 'module:Name'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f"Cannot import {kind} module {module_name!r}: {exc}") from exc
    try:
        return getattr(module, symbol_name)
    except AttributeError:
        raise ConfigurationError(f"{kind.capitalize()} {symbol_name!r} not found in {module_name!r}") from None
