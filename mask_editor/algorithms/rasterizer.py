"""
Display-space paint to native-resolution mask
"""

import logging
from typing import Optional, Union

import numpy as np

from ..core.errors import NoImageLoaded
from ..models.display import DisplayRect, compute_display_rect
from ..models.image import ImageAsset, NativeMask


logger = logging.getLogger(__name__)


class MaskRasterizer:
    """
    Builds a binary NativeMask by scanning every native pixel and looking up
    the display pixel it is drawn to.

    Scanning from native space assigns each native pixel exactly once; several
    native pixels may share one display pixel since the display never upscales.
    """

    def rasterize(
        self,
        image: Optional[Union[ImageAsset, tuple]],
        painted: np.ndarray,
        rect: Optional[DisplayRect] = None
    ) -> NativeMask:
        """
        Rasterize display coverage `painted` (Vh, Vw) onto the image grid.

        `image` is an ImageAsset or a (width, height) tuple. The rect is
        recomputed from the painted surface size when not given.
        """
        if image is None:
            raise NoImageLoaded("No image loaded")

        if isinstance(image, ImageAsset):
            width, height = image.width, image.height
        else:
            width, height = image

        viewport_h, viewport_w = painted.shape[:2]
        if rect is None:
            rect = compute_display_rect(width, height, viewport_w, viewport_h)

        if rect.is_empty:
            logger.debug("Empty display rect, returning blank mask")
            return NativeMask(np.zeros((height, width), dtype=np.uint8))

        # Forward-map native columns and rows to display space
        display_x = rect.map_x(np.arange(width))
        display_y = rect.map_y(np.arange(height))

        valid_x = (display_x >= 0) & (display_x < viewport_w)
        valid_y = (display_y >= 0) & (display_y < viewport_h)

        lookup_x = np.clip(display_x, 0, max(0, viewport_w - 1))
        lookup_y = np.clip(display_y, 0, max(0, viewport_h - 1))

        coverage = painted[np.ix_(lookup_y, lookup_x)]
        selected = (coverage > 0) & valid_y[:, None] & valid_x[None, :]

        mask = np.where(selected, 255, 0).astype(np.uint8)
        logger.debug(
            f"Rasterized {width}x{height} mask from {viewport_w}x{viewport_h} "
            f"surface: {int(np.count_nonzero(mask))} pixels selected"
        )
        return NativeMask(mask)
