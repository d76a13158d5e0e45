"""
Field registry for scenario configs.

Every scenario and loan input is described once by a FieldSpec: the YAML
paths it may live under, whether it must be present, how the raw value is
coerced and what it defaults to. The loader reads values through these specs
and schema_guard validates configs against the same specs, so a path alias
added here is honoured by both.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

ValidatorFn = Callable[[Any], bool]
CoerceFn = Callable[[Any], Any]
PathSpec = Tuple[str, ...]


def resolve_path(raw_config: Mapping[str, Any], path: PathSpec) -> Any:
    """Value at ``path`` in a nested mapping; None if any segment is missing."""
    current: Any = raw_config
    for seg in path:
        if not isinstance(current, Mapping) or seg not in current:
            return None
        current = current[seg]
    return current


@dataclass(frozen=True)
class FieldSpec:
    """One scenario input and how to read it.

    ``paths`` are tried in order; the first one present wins. ``default`` is
    used when none is present, then ``coerce`` turns the raw value into the
    engine type (money -> float, months -> int, ...).
    """

    module: str
    name: str
    paths: Sequence[PathSpec]
    required: bool = True
    severity: str = "error"
    default: Any = None
    coerce: Optional[CoerceFn] = None
    validator: Optional[ValidatorFn] = field(default=None)
    description: str = ""

    def lookup(self, raw_config: Mapping[str, Any]) -> Any:
        for path in self.paths:
            value = resolve_path(raw_config, path)
            if value is not None:
                return value
        return None

    def read(self, raw_config: Mapping[str, Any]) -> Any:
        raw = self.lookup(raw_config)
        if raw is None:
            raw = self.default
        return self.coerce(raw) if self.coerce is not None else raw

    @property
    def path_labels(self) -> List[str]:
        return [".".join(p) for p in self.paths]


# module -> field name -> spec
_REGISTRY: Dict[str, Dict[str, FieldSpec]] = {}


def register_fields(module: str, specs: Iterable[FieldSpec]) -> None:
    """Register specs for ``module``; a spec with an existing name replaces it."""
    bucket = _REGISTRY.setdefault(module, {})
    for spec in specs:
        bucket[spec.name] = spec


def get_fields(module: Optional[str] = None) -> List[FieldSpec]:
    if module is None:
        return [spec for bucket in _REGISTRY.values() for spec in bucket.values()]
    return list(_REGISTRY.get(module, {}).values())


def get_field(module: str, name: str) -> FieldSpec:
    try:
        return _REGISTRY[module][name]
    except KeyError:
        raise KeyError(f"No field {name!r} registered for module {module!r}") from None


def schema_frame() -> pd.DataFrame:
    """Registered fields as a table, for ``scenario_runner --list-fields``."""
    columns = ["module", "name", "paths", "required", "default", "description"]
    rows = [
        {
            "module": spec.module,
            "name": spec.name,
            "paths": ", ".join(spec.path_labels),
            "required": spec.required,
            "default": spec.default,
            "description": spec.description,
        }
        for spec in get_fields()
    ]
    return pd.DataFrame(rows, columns=columns)


__all__ = [
    "FieldSpec",
    "PathSpec",
    "resolve_path",
    "register_fields",
    "get_fields",
    "get_field",
    "schema_frame",
]
