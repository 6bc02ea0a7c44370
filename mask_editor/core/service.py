"""
Server-side tools: open editor, save mask, apply mask
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .errors import DecodeFailure, InvalidEncoding, InvalidMaskEncoding
from ..algorithms.compositor import AlphaCompositor
from ..utils.codec import parse_data_url
from ..utils.io import MaskStore


logger = logging.getLogger(__name__)


@dataclass
class ToolResult:
    """Structured tool outcome; failures are values, not exceptions"""
    text: str
    structured_content: Dict[str, Any] = field(default_factory=dict)
    is_error: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'content': [{'type': 'text', 'text': self.text}],
            'structuredContent': self.structured_content,
            'isError': self.is_error
        }


class MaskEditorService:
    """
    Receives masks from the editor and composites images with them
    """

    def __init__(
        self,
        output_dir: Path,
        compositor: Optional[AlphaCompositor] = None,
        clock: Callable[[], float] = time.time
    ):
        self.store = MaskStore(output_dir, clock=clock)
        self.compositor = compositor or AlphaCompositor()

    @property
    def output_dir(self) -> Path:
        return self.store.output_dir

    def open_editor(
        self,
        image: Optional[str] = None,
        session_id: Optional[str] = None
    ) -> ToolResult:
        """
        Open the editor, optionally with an initial image
        """
        if image:
            message = "Mask editor opened with image. Paint a selection and click Confirm."
        else:
            message = "Mask editor opened. Drop an image onto the canvas to begin."

        logger.info(f"Editor opened (session {session_id or '-'}, image: {bool(image)})")
        return ToolResult(message, {'status': 'ready', 'message': message})

    def save_mask(
        self,
        mask_data_url: str,
        original_file_name: Optional[str] = None
    ) -> ToolResult:
        """
        Persist a mask sent as `data:image/<ext>;base64,<payload>`
        """
        try:
            ext, data = parse_data_url(mask_data_url)
        except InvalidMaskEncoding as e:
            logger.warning(f"Rejected mask: {e}")
            return ToolResult(
                "Invalid mask data URL format",
                {'status': 'error', 'file_path': ''},
                is_error=True
            )

        file_path = self.store.save(data, ext, original_file_name)
        return ToolResult(
            f"Mask saved to {file_path}",
            {'status': 'saved', 'file_path': str(file_path)}
        )

    def apply_mask(self, image: str, mask: str) -> ToolResult:
        """
        White mask areas keep the image, black areas become transparent
        """
        try:
            result = self.compositor.apply(image, mask)
        except (DecodeFailure, InvalidEncoding) as e:
            logger.error(f"Failed to apply mask: {e}")
            return ToolResult(
                f"Failed to apply mask: {e}",
                {'status': 'error', 'message': str(e)},
                is_error=True
            )

        return ToolResult(result, {'result': result})
