"""
Schema guard for scenario configs.

Sits on top of bizloan.analytics.config_schema and:
  * lazily imports the modules that register field specs, so their
    registration side-effects run; and
  * validates a raw config dict against the registered specs.

Usage::

    from bizloan.analytics.schema_guard import validate_config

    validate_config(config, config_path="scenarios/kedai_kopi.yaml")
"""

from __future__ import annotations

import importlib
import logging
from typing import Any, Dict, List, Mapping, Sequence

from bizloan.analytics.config_schema import get_field, get_fields

logger = logging.getLogger(__name__)


class ConfigValidationError(RuntimeError):
    """Raised when a YAML / JSON config is missing required fields."""


# Logical module name -> import path that registers its specs
_MODULE_IMPORTS: Dict[str, str] = {
    "scenario": "bizloan.analytics.scenario_loader",
    "loan": "bizloan.analytics.scenario_loader",
}

DEFAULT_MODULES = ("scenario", "loan")


def _ensure_module_registered(name: str) -> None:
    module_path = _MODULE_IMPORTS.get(name)
    if not module_path:
        return
    importlib.import_module(module_path)


def resolve_field(raw_config: Mapping[str, Any], module: str, name: str) -> Any:
    """Raw (uncoerced) value of one registered field, or None if absent."""
    _ensure_module_registered(module)
    return get_field(module, name).lookup(raw_config)


def validate_config(
    raw_config: Dict[str, Any],
    config_path: str = "<in-memory>",
    modules: Sequence[str] = DEFAULT_MODULES,
) -> List[str]:
    """
    Validate a raw config against the registered field specs.

    Error-severity failures raise ConfigValidationError with every problem
    listed; warning-severity failures are logged and returned.
    """
    for m in modules:
        _ensure_module_registered(m)

    missing: List[str] = []
    warnings: List[str] = []

    for m in modules:
        for spec in get_fields(m):
            val = spec.lookup(raw_config)
            ok = not (spec.required and val is None)

            if ok and val is not None and spec.validator is not None:
                try:
                    ok = bool(spec.validator(val))
                except (TypeError, ValueError):
                    ok = False

            if ok:
                continue

            labels = spec.path_labels or ["<no paths registered>"]
            problem = f"{spec.name} (paths: {', '.join(labels)})"
            if spec.severity.lower() == "error":
                missing.append(problem)
            else:
                warnings.append(problem)

    for w in warnings:
        logger.warning("Config '%s': questionable field %s", config_path, w)

    if missing:
        details = "; ".join(sorted(missing))
        raise ConfigValidationError(
            f"Config '{config_path}' is missing or has invalid required fields: {details}"
        )
    return warnings


__all__ = [
    "ConfigValidationError",
    "validate_config",
    "resolve_field",
]
