"""
Interactive drawing session: image acquisition, painting, resize and confirm
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Tuple, Union

from .config import EditorConfig
from .errors import (
    DecodeFailure,
    EmptyMask,
    InvalidTransition,
    MaskEditorError,
    NoImageLoaded,
    StorageUnavailable,
)
from ..algorithms.rasterizer import MaskRasterizer
from ..algorithms.remapper import MaskRemapper, RemapRequest
from ..algorithms.strokes import StrokeAccumulator
from ..models.display import EMPTY_RECT, DisplayRect, compute_display_rect
from ..models.image import ImageAsset, NativeMask
from ..utils.codec import b64_to_bytes
from ..utils.io import ImageCache


logger = logging.getLogger(__name__)


class StrokeState(Enum):
    IDLE = 'idle'
    STROKING = 'stroking'


class ImageState(Enum):
    UNLOADED = 'unloaded'
    LOADING = 'loading'
    LOADED = 'loaded'


STROKE_TRANSITIONS: Dict[Tuple[StrokeState, str], StrokeState] = {
    (StrokeState.IDLE, 'pointer_down'): StrokeState.STROKING,
    (StrokeState.STROKING, 'pointer_down'): StrokeState.STROKING,
    (StrokeState.STROKING, 'pointer_move'): StrokeState.STROKING,
    (StrokeState.STROKING, 'pointer_up'): StrokeState.IDLE,
    (StrokeState.IDLE, 'reset'): StrokeState.IDLE,
    (StrokeState.STROKING, 'reset'): StrokeState.IDLE,
}

IMAGE_TRANSITIONS: Dict[Tuple[ImageState, str], ImageState] = {
    (ImageState.UNLOADED, 'load'): ImageState.LOADING,
    (ImageState.LOADED, 'load'): ImageState.LOADING,
    (ImageState.LOADING, 'loaded'): ImageState.LOADED,
    # Failed load falls back to whatever was there before
    (ImageState.LOADING, 'failed'): ImageState.UNLOADED,
    (ImageState.LOADING, 'restored'): ImageState.LOADED,
}


def transition(table: Dict, state: Enum, event: str) -> Enum:
    """Next state, or InvalidTransition when the event is illegal"""
    try:
        return table[(state, event)]
    except KeyError:
        raise InvalidTransition(state, event) from None


@dataclass(frozen=True)
class StatusMessage:
    """Last user-facing status; kind is '', 'success' or 'error'"""
    text: str = ''
    kind: str = ''
    error: Optional[Exception] = None


class DrawingSession:
    """
    Holds everything one editing session mutates.

    Pointer events mutate the paint surface synchronously. Viewport resizes
    return a RemapRequest that must be passed back to `complete_remap` once
    the caller is ready; only the most recent request is honoured.
    """

    def __init__(
        self,
        viewport: Tuple[int, int],
        config: Optional[EditorConfig] = None,
        rasterizer: Optional[MaskRasterizer] = None,
        remapper: Optional[MaskRemapper] = None
    ):
        self.config = config or EditorConfig()
        self.rasterizer = rasterizer or MaskRasterizer()
        self.remapper = remapper or MaskRemapper()
        self.cache = ImageCache(self.config.cache_dir) if self.config.cache_dir else None

        self.viewport_w, self.viewport_h = viewport
        self.brush_size = self.config.brush_size
        self.surface = StrokeAccumulator(
            self.viewport_w, self.viewport_h,
            opacity=self.config.stroke_opacity
        )

        self.image: Optional[ImageAsset] = None
        self.original_file_name = 'image'
        self.image_state = ImageState.UNLOADED
        self.stroke_state = StrokeState.IDLE
        self.rect: DisplayRect = EMPTY_RECT
        self.status = StatusMessage()

        self._remap_sequence = 0
        self._pending_remap: Optional[RemapRequest] = None

    @property
    def has_mask_content(self) -> bool:
        return self.surface.has_paint

    @property
    def pending_remap(self) -> Optional[RemapRequest]:
        return self._pending_remap

    def set_status(self, text: str, kind: str = '', error: Optional[Exception] = None):
        self.status = StatusMessage(text, kind, error)
        if kind == 'error':
            logger.warning(text)
        else:
            logger.info(text)

    # Image acquisition

    def load_image(
        self,
        src: Union[str, bytes],
        file_name: Optional[str] = None,
        persist: bool = True
    ) -> bool:
        """
        Decode and show an image given as data URL, base64 or raw bytes
        """
        self.image_state = transition(IMAGE_TRANSITIONS, self.image_state, 'load')

        try:
            data = b64_to_bytes(src) if isinstance(src, str) else bytes(src)
            asset = ImageAsset.from_bytes(data, file_name=file_name)
        except DecodeFailure as e:
            self._abort_load()
            self.set_status("Failed to load image", 'error', e)
            return False
        except Exception:
            self._abort_load()
            raise

        self.image = asset
        if file_name:
            self.original_file_name = file_name
        self.rect = EMPTY_RECT
        self._clear()
        self._resize_surface()
        self.image_state = transition(IMAGE_TRANSITIONS, self.image_state, 'loaded')
        self.set_status(f"Image loaded: {asset.width}x{asset.height}")

        if persist and self.cache is not None and isinstance(src, str):
            try:
                self.cache.save(src, file_name or 'image')
            except StorageUnavailable as e:
                logger.debug(f"Skipping image persistence: {e}")

        return True

    def _abort_load(self):
        """Leave LOADING, falling back to the previous image if there is one"""
        event = 'restored' if self.image is not None else 'failed'
        self.image_state = transition(IMAGE_TRANSITIONS, self.image_state, event)

    def connect(self):
        """
        Restore the last persisted image when nothing is loaded yet
        """
        if self.cache is None or self.image is not None:
            return
        try:
            cached = self.cache.load()
        except StorageUnavailable as e:
            logger.debug(f"Ignoring storage error: {e}")
            return
        if cached:
            image_src, file_name = cached
            self.load_image(image_src, file_name, persist=False)

    def handle_tool_input(self, arguments: Optional[dict]):
        image = (arguments or {}).get('image')
        if image:
            logger.info("Image received from host")
            self.load_image(image, 'provided-image')

    def handle_tool_result(self, structured_content: Optional[dict]):
        message = (structured_content or {}).get('message')
        if message:
            self.set_status(message)

    # Viewport

    def resize_viewport(self, width: int, height: int) -> Optional[RemapRequest]:
        """
        Resize the viewport; silently ignored for the image until one is loaded
        """
        self.viewport_w, self.viewport_h = width, height
        if self.image is None:
            return None
        return self._resize_surface()

    def complete_remap(self, request: RemapRequest) -> bool:
        """
        Blit a remap onto the surface unless a newer one has been issued
        """
        if request is not self._pending_remap or request.sequence != self._remap_sequence:
            logger.debug(f"Discarding stale remap #{request.sequence}")
            return False
        if request.viewport != (self.surface.width, self.surface.height):
            logger.debug(f"Discarding remap #{request.sequence} for old surface size")
            return False

        self.surface.composite(self.remapper.complete(request))
        self._pending_remap = None
        return True

    def _resize_surface(self) -> Optional[RemapRequest]:
        new_rect = compute_display_rect(
            self.image.width, self.image.height,
            self.viewport_w, self.viewport_h
        )

        # Snapshot before the surface is reallocated; an unfinished remap
        # still holds the only copy of the paint
        pending = self._pending_remap
        snapshot, old_rect = None, self.rect
        if pending is not None:
            snapshot, old_rect = pending.snapshot, pending.old_rect
        elif self.remapper.should_remap(self.has_mask_content, old_rect):
            snapshot = self.remapper.snapshot(self.surface.buffer)

        self.surface.resize(self.viewport_w, self.viewport_h)
        self.stroke_state = transition(STROKE_TRANSITIONS, self.stroke_state, 'reset')
        self.rect = new_rect

        if snapshot is None:
            self._pending_remap = None
            return None

        self._remap_sequence += 1
        self._pending_remap = RemapRequest(
            sequence=self._remap_sequence,
            snapshot=snapshot,
            old_rect=old_rect,
            new_rect=new_rect,
            viewport=(self.viewport_w, self.viewport_h)
        )
        return self._pending_remap

    # Brush

    def set_brush_size(self, size: int):
        if int(size) <= 0:
            raise ValueError(f"Brush size must be positive: {size}")
        self.brush_size = int(size)

    def pointer_down(self, x: float, y: float) -> bool:
        if self.image is None or self.rect.is_empty:
            return False
        self.stroke_state = transition(STROKE_TRANSITIONS, self.stroke_state, 'pointer_down')
        self.surface.end_stroke()
        self.surface.begin_stroke((x, y), self.brush_size / 2)
        return True

    def pointer_move(self, x: float, y: float) -> bool:
        if self.stroke_state is not StrokeState.STROKING:
            return False
        self.stroke_state = transition(STROKE_TRANSITIONS, self.stroke_state, 'pointer_move')
        return self.surface.extend_stroke((x, y))

    def pointer_up(self):
        if self.stroke_state is not StrokeState.STROKING:
            return
        self.stroke_state = transition(STROKE_TRANSITIONS, self.stroke_state, 'pointer_up')
        self.surface.end_stroke()

    def clear_mask(self):
        self._clear()
        self.set_status("Mask cleared")

    def _clear(self):
        self.surface.clear()
        self.stroke_state = transition(STROKE_TRANSITIONS, self.stroke_state, 'reset')
        self._pending_remap = None

    # Confirm

    def generate_mask(self) -> NativeMask:
        """
        Rasterize the painted selection at native resolution
        """
        if self.image is None:
            raise NoImageLoaded("No image loaded")
        if not self.has_mask_content:
            raise EmptyMask("Nothing has been painted")
        return self.rasterizer.rasterize(self.image, self.surface.buffer, self.rect)

    def confirm(self, saver: Callable[[str, Optional[str]], 'ToolResult']) -> Optional['ToolResult']:
        """
        Generate the mask and hand it to `saver` (normally
        MaskEditorService.save_mask). Local validation failures never
        reach the saver.
        """
        try:
            mask = self.generate_mask()
        except (NoImageLoaded, EmptyMask) as e:
            self.set_status("Paint a selection on the image first", 'error', e)
            return None

        self.set_status("Sending mask to server...")
        try:
            result = saver(mask.to_data_url(), self.original_file_name)
        except (MaskEditorError, OSError) as e:
            logger.error(f"Failed to send mask: {e}")
            self.set_status(f"Error: {e}", 'error', e)
            return None

        if result.is_error:
            self.set_status("Server error saving mask", 'error')
        else:
            self.set_status(f"Mask saved: {result.structured_content['file_path']}", 'success')
        return result
