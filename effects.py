"""
Effect catalog.

Lists the effect kinds the editor offers, their slider ranges and the
Pillow-backed transform each one delegates to.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from PIL import Image

import processors
from errors import UnknownKindError

TransformFn = Callable[[Image.Image, float], Image.Image]


@dataclass(frozen=True)
class EffectKind:
    """A named, parameterized transform with a fixed valid range."""
    name: str
    min: float
    max: float
    transform: TransformFn

    def clamp(self, value: float) -> float:
        if value != value:
            raise ValueError(f"{self.name}: value must be a number, got NaN")
        return float(min(self.max, max(self.min, value)))

    def describe(self) -> Dict[str, float]:
        return {'name': self.name, 'min': self.min, 'max': self.max}


BUILTIN_KINDS = (
    EffectKind('contrast', -2, 2, processors.contrast),
    EffectKind('brightness', -2, 2, processors.brightness),
    EffectKind('edge-detection', -2, 2, processors.edge_detection),
)


class EffectCatalog:
    """Ordered, read-only registry of effect kinds."""

    def __init__(self, kinds: Optional[Iterable[EffectKind]] = None):
        self._kinds: Dict[str, EffectKind] = {}
        for kind in (BUILTIN_KINDS if kinds is None else kinds):
            if kind.min > kind.max:
                raise ValueError(f"{kind.name}: min {kind.min} exceeds max {kind.max}")
            if not kind.name or kind.name[-1].isdigit():
                raise ValueError(f"effect name {kind.name!r} must not be empty or end in a digit")
            self._kinds[kind.name] = kind

    def list_available(self) -> List[EffectKind]:
        return list(self._kinds.values())

    def get_kind(self, name: str) -> EffectKind:
        try:
            return self._kinds[name]
        except (KeyError, TypeError):
            raise UnknownKindError(name) from None

    def describe(self, name: str) -> Dict[str, float]:
        return self.get_kind(name).describe()

    def __contains__(self, name) -> bool:
        return name in self._kinds

    def __len__(self) -> int:
        return len(self._kinds)


default_catalog = EffectCatalog()


def list_available() -> List[EffectKind]:
    """Built-in effect kinds in display order."""
    return default_catalog.list_available()


def describe(name: str) -> Dict[str, float]:
    return default_catalog.describe(name)
