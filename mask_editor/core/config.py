"""
Editor configuration
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class EditorConfig:
    """Options shared by the drawing session, service and CLI"""
    brush_size: int = 30
    stroke_opacity: float = 0.4
    output_dir: Path = field(default_factory=lambda: Path("./output"))
    cache_dir: Optional[Path] = field(default_factory=lambda: Path("./cache"))
    log_level: int = logging.INFO

    def __post_init__(self):
        if self.brush_size <= 0:
            raise ValueError(f"Brush size must be positive: {self.brush_size}")
        if not 0.0 < self.stroke_opacity <= 1.0:
            raise ValueError(f"Stroke opacity must be in (0, 1]: {self.stroke_opacity}")
        self.output_dir = Path(self.output_dir)
        if self.cache_dir is not None:
            self.cache_dir = Path(self.cache_dir)

    @classmethod
    def from_args(cls, args) -> 'EditorConfig':
        """Build from parsed argparse options"""
        return cls(
            brush_size=getattr(args, 'brush_size', None) or cls.brush_size,
            output_dir=args.output_dir,
            cache_dir=None if getattr(args, 'no_cache', False) else args.cache_dir,
            log_level=logging.DEBUG if getattr(args, 'debug', False) else logging.INFO
        )
