"""
Image loading, mask saving and last-image persistence
"""

import json
import logging
import time
from pathlib import Path
from typing import Callable, Optional, Tuple

import numpy as np
import cv2
import tifffile

from ..core.errors import DecodeFailure, StorageUnavailable
from ..models.image import ImageAsset


logger = logging.getLogger(__name__)


class ImageLoader:
    """
    Loads source images from disk as RGBA assets
    """

    def __init__(self):
        self.supported_formats = {
            '.tif', '.tiff', '.jpg', '.jpeg', '.png', '.bmp', '.webp'
        }

    def load_asset(self, path: Path) -> ImageAsset:
        """
        Load image as an 8-bit RGBA ImageAsset
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Image not found: {path}")

        suffix = path.suffix.lower()
        if suffix not in self.supported_formats:
            raise DecodeFailure(f"Unsupported image format: {path.name}")

        try:
            if suffix in {'.tif', '.tiff'}:
                image = self._load_tiff(path)
            else:
                image = self._load_standard(path)
        except DecodeFailure:
            raise
        except (ValueError, OSError, cv2.error) as e:
            logger.error(f"Failed to load {path.name}: {str(e)}")
            raise DecodeFailure(f"Failed to load {path.name}: {str(e)}") from e

        return ImageAsset(self._to_rgba8(image), file_name=path.name)

    def _load_tiff(self, path: Path) -> np.ndarray:
        """
        Load TIFF image
        """
        image = tifffile.imread(str(path))

        # Channels first
        if image.ndim == 3 and image.shape[0] in [3, 4] and image.shape[2] not in [3, 4]:
            image = np.transpose(image, (1, 2, 0))
        if image.ndim not in (2, 3):
            raise DecodeFailure(f"Unsupported image shape: {image.shape}")

        return image

    def _load_standard(self, path: Path) -> np.ndarray:
        """
        Load standard image formats (JPEG, PNG)
        """
        image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)

        if image is None:
            raise DecodeFailure(f"Failed to load image: {path}")

        # Convert BGR to RGB
        if image.ndim == 3 and image.shape[2] == 3:
            image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        elif image.ndim == 3 and image.shape[2] == 4:
            image = cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)

        return image

    @staticmethod
    def _to_rgba8(image: np.ndarray) -> np.ndarray:
        # Bit depth
        if image.dtype == np.uint16:
            image = (image >> 8).astype(np.uint8)
        elif image.dtype in (np.float32, np.float64):
            image = (np.clip(image, 0.0, 1.0) * 255).astype(np.uint8)
        elif image.dtype != np.uint8:
            image = image.astype(np.uint8)

        if image.ndim == 2:
            return cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
        if image.shape[2] == 1:
            return cv2.cvtColor(np.ascontiguousarray(image[..., 0]), cv2.COLOR_GRAY2RGBA)
        if image.shape[2] == 3:
            return cv2.cvtColor(image, cv2.COLOR_RGB2RGBA)
        return np.ascontiguousarray(image[..., :4])


class MaskStore:
    """
    Writes confirmed masks to the output directory
    """

    def __init__(
        self,
        output_dir: Path,
        clock: Callable[[], float] = time.time
    ):
        self.output_dir = Path(output_dir)
        self.clock = clock

    def file_name_for(self, original_file_name: Optional[str], ext: str) -> str:
        """`<base>_mask_<unix millis>.<ext>`"""
        base_name = Path(original_file_name).stem if original_file_name else 'mask'
        timestamp = int(self.clock() * 1000)
        return f"{base_name}_mask_{timestamp}.{ext}"

    def save(
        self,
        data: bytes,
        ext: str,
        original_file_name: Optional[str] = None
    ) -> Path:
        # Created on demand
        self.output_dir.mkdir(parents=True, exist_ok=True)

        output_path = self.output_dir / self.file_name_for(original_file_name, ext)
        output_path.write_bytes(data)

        logger.info(f"Mask saved to: {output_path}")
        return output_path


class ImageCache:
    """
    Best-effort persistence of the last loaded image source
    """

    FILE_NAME = 'last_image.json'

    def __init__(self, cache_dir: Path):
        self.cache_dir = Path(cache_dir)

    @property
    def path(self) -> Path:
        return self.cache_dir / self.FILE_NAME

    def save(self, image_src: str, file_name: str):
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w') as f:
                json.dump({'image_src': image_src, 'file_name': file_name}, f)
        except (OSError, TypeError) as e:
            raise StorageUnavailable(f"Could not persist image: {e}") from e

    def load(self) -> Optional[Tuple[str, str]]:
        """Return (image_src, file_name) or None when nothing is cached"""
        if not self.path.exists():
            return None
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageUnavailable(f"Could not read cached image: {e}") from e

        image_src = data.get('image_src') if isinstance(data, dict) else None
        if not image_src:
            return None
        return image_src, data.get('file_name') or 'image'
