"""
Editor session and event dispatcher.

One EditorSession exists per mounted UI. The binding layer turns user
actions into typed events and hands them to ``dispatch``, which mutates
the session and returns what should be displayed next.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from effects import EffectCatalog, default_catalog
from errors import SessionClosedError
from image_source import DEFAULT_PREVIEW_WIDTH, ImageSource, ImageSourceManager
from pipeline import ControlDescriptor, EffectInstance, Pipeline
from render import DEFAULT_FORMAT, DEFAULT_QUALITY, RenderCoordinator

logger = logging.getLogger(__name__)


class SessionState(Enum):
    EMPTY = "empty"
    LOADED = "loaded"
    CLOSED = "closed"


@dataclass(frozen=True)
class Upload:
    """Raw image bytes, or a data-URL string from a FileReader."""
    data: Union[bytes, str]
    mime_hint: Optional[str] = None


@dataclass(frozen=True)
class AddEffect:
    kind: str
    value: float = 0


@dataclass(frozen=True)
class SetValue:
    id: str
    value: float


@dataclass(frozen=True)
class Shutdown:
    pass


Event = Union[Upload, AddEffect, SetValue, Shutdown]


@dataclass
class RenderState:
    """Snapshot of everything the UI shows after an event."""
    state: SessionState
    preview: Optional[bytes] = None
    output: Optional[bytes] = None
    controls: List[ControlDescriptor] = field(default_factory=list)
    added: Optional[EffectInstance] = None


class EditorSession:
    """Owns the current image source and effect pipeline."""

    def __init__(self, catalog: Optional[EffectCatalog] = None,
                 preview_width: int = DEFAULT_PREVIEW_WIDTH, resample: str = 'bilinear',
                 output_format: str = DEFAULT_FORMAT, quality: int = DEFAULT_QUALITY,
                 strict_updates: bool = False):
        self.catalog = default_catalog if catalog is None else catalog
        self.loader = ImageSourceManager(target_width=preview_width, resample=resample)
        self.pipeline = Pipeline(self.catalog, strict=strict_updates)
        self.renderer = RenderCoordinator(lambda: self.source, self.pipeline,
                                          fmt=output_format, quality=quality)
        self.source: Optional[ImageSource] = None
        self.state = SessionState.EMPTY
        self._close_callbacks: List[Callable[[], Any]] = []

    @classmethod
    def from_config(cls, config: Dict[str, Any], catalog: Optional[EffectCatalog] = None) -> 'EditorSession':
        return cls(
            catalog=catalog,
            preview_width=config['preview']['width'],
            resample=config['preview']['resample'],
            output_format=config['output']['format'],
            quality=config['output']['quality'],
            strict_updates=config['pipeline']['strict_updates'],
        )

    @property
    def closed(self) -> bool:
        return self.state is SessionState.CLOSED

    def _check_open(self):
        if self.closed:
            raise SessionClosedError("session is closed")

    def load(self, data: Union[bytes, str], mime_hint: Optional[str] = None) -> ImageSource:
        """Replace the image source; on failure the previous one is kept."""
        self._check_open()
        if isinstance(data, str):
            source = self.loader.load_data_url(data)
        else:
            source = self.loader.load(data, mime_hint)
        self.source = source
        self.state = SessionState.LOADED
        return source

    def add_effect(self, kind: str, value: float = 0) -> EffectInstance:
        self._check_open()
        return self.pipeline.append(kind, value)

    def set_value(self, effect_id: str, value: float) -> None:
        self._check_open()
        self.pipeline.update(effect_id, value)

    def on_close(self, callback: Callable[[], Any]) -> None:
        """Register a listener to release when the session shuts down."""
        self._close_callbacks.append(callback)

    def shutdown(self) -> None:
        self._check_open()
        self.state = SessionState.CLOSED
        callbacks, self._close_callbacks = self._close_callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception(f"Close callback {callback!r} failed")
        logger.info("Editor session closed")

    def render_state(self, added: Optional[EffectInstance] = None) -> RenderState:
        if self.closed:
            return RenderState(state=self.state)
        return RenderState(
            state=self.state,
            preview=self.renderer.encoded_preview(),
            output=self.renderer.encoded_output(),
            controls=self.pipeline.controls(),
            added=added,
        )

    def dispatch(self, event: Event) -> RenderState:
        """Apply one UI event and return the new render state."""
        logger.debug(f"Dispatching {event.__class__.__name__}")
        added = None
        if isinstance(event, Upload):
            self.load(event.data, event.mime_hint)
        elif isinstance(event, AddEffect):
            added = self.add_effect(event.kind, event.value)
        elif isinstance(event, SetValue):
            self.set_value(event.id, event.value)
        elif isinstance(event, Shutdown):
            self.shutdown()
        else:
            raise TypeError(f"unsupported event: {event!r}")
        return self.render_state(added)
