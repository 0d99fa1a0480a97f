"""
High-level renderer implementations.
"""

from .base_renderer import BaseRenderer
from .interactive_renderer import CubeWindow
from .offline_renderer import OfflineRenderer, encode_video

__all__ = [
    'BaseRenderer',
    'CubeWindow',
    'OfflineRenderer',
    'encode_video',
]
