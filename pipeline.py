"""
Effect pipeline.

An ordered, append-only chain of effect instances. Rendering folds the
chain left to right over a base image; nothing is cached between renders.
"""

import logging
from dataclasses import dataclass
from itertools import count
from typing import Dict, Iterator, List, Optional, Tuple, Union

from PIL import Image

from effects import EffectCatalog, EffectKind, default_catalog
from errors import NotFoundError

logger = logging.getLogger(__name__)

SLIDER_STEP = 0.1


@dataclass(frozen=True)
class EffectInstance:
    """One user-added occurrence of an effect kind."""
    id: str
    kind: EffectKind
    value: float

    def transform(self, img: Image.Image) -> Image.Image:
        return self.kind.transform(img, self.value)


@dataclass(frozen=True)
class ControlDescriptor:
    """What the UI needs to draw a slider for one effect instance."""
    id: str
    label: str
    min: float
    max: float
    value: float
    step: float = SLIDER_STEP

    def to_dict(self) -> Dict[str, Union[str, float]]:
        return {
            'id': self.id,
            'label': self.label,
            'min': self.min,
            'max': self.max,
            'value': self.value,
            'step': self.step,
        }


def render_control_descriptor(instance: EffectInstance) -> ControlDescriptor:
    return ControlDescriptor(
        id=instance.id,
        label=instance.kind.name,
        min=instance.kind.min,
        max=instance.kind.max,
        value=instance.value,
    )


class Pipeline:
    """
    Ordered sequence of effect instances keyed by id.

    Instances are immutable; ``update`` swaps in a new instance at the
    same position so snapshots taken earlier stay valid.
    """

    def __init__(self, catalog: Optional[EffectCatalog] = None, strict: bool = False):
        self.catalog = default_catalog if catalog is None else catalog
        self.strict = strict
        self._instances: List[EffectInstance] = []
        self._index: Dict[str, int] = {}
        self._counter = count(1)

    def append(self, kind: Union[str, EffectKind], initial_value: float = 0) -> EffectInstance:
        """
        Add a new effect at the end of the chain.

        Args:
            kind: Effect kind or the name of a registered one
            initial_value: Starting value, clamped into the kind's range

        Returns:
            The created instance; its id binds the UI control to it
        """
        if not isinstance(kind, EffectKind):
            kind = self.catalog.get_kind(kind)
        value = kind.clamp(initial_value)

        effect_id = f"{kind.name}{next(self._counter)}"
        # Kinds passed in directly bypass the catalog name check
        while effect_id in self._index:
            effect_id = f"{kind.name}{next(self._counter)}"
        instance = EffectInstance(id=effect_id, kind=kind, value=value)
        self._index[effect_id] = len(self._instances)
        self._instances.append(instance)

        logger.info(f"Added effect {effect_id} (value={value}), pipeline length {len(self._instances)}")
        return instance

    def update(self, effect_id: str, new_value: float) -> None:
        """Set a new clamped value; unknown ids are ignored unless strict."""
        position = self._index.get(effect_id)
        if position is None:
            if self.strict:
                raise NotFoundError(effect_id)
            logger.warning(f"Ignoring update for unknown effect {effect_id!r}")
            return

        current = self._instances[position]
        value = current.kind.clamp(new_value)
        if value != new_value:
            logger.debug(f"Clamped {effect_id} value {new_value} to {value}")
        self._instances[position] = EffectInstance(id=effect_id, kind=current.kind, value=value)

    def get(self, effect_id: str) -> Optional[EffectInstance]:
        position = self._index.get(effect_id)
        return None if position is None else self._instances[position]

    def snapshot(self) -> Tuple[EffectInstance, ...]:
        return tuple(self._instances)

    def apply(self, base_image: Image.Image, snapshot: Optional[Tuple[EffectInstance, ...]] = None) -> Image.Image:
        """Run every effect in order over ``base_image``."""
        img = base_image
        for instance in (self.snapshot() if snapshot is None else snapshot):
            img = instance.transform(img)
        return img

    def controls(self) -> List[ControlDescriptor]:
        return [render_control_descriptor(instance) for instance in self._instances]

    def __iter__(self) -> Iterator[EffectInstance]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        return len(self._instances)
