"""
Error types raised by the mask editor
"""


class MaskEditorError(Exception):
    """Base class for all mask editor errors"""


class NoImageLoaded(MaskEditorError):
    """Operation needs an image but none has been loaded"""


class EmptyMask(MaskEditorError):
    """Confirm attempted with no painted coverage"""


class InvalidMaskEncoding(MaskEditorError, ValueError):
    """Mask payload is not a well-formed base64 image data URL"""


class DecodeFailure(MaskEditorError, ValueError):
    """Image bytes could not be decoded"""


class DimensionMismatch(DecodeFailure):
    """Image or mask could not be decoded to usable dimensions"""


class InvalidEncoding(MaskEditorError):
    """Pixel buffer size does not match width * height * channels"""


class StorageUnavailable(MaskEditorError):
    """Best-effort persistence failed"""


class InvalidTransition(MaskEditorError):
    """State machine received an event that is illegal in its current state"""

    def __init__(self, state, event: str):
        super().__init__(f"Event '{event}' not allowed in state {state.name}")
        self.state = state
        self.event = event
