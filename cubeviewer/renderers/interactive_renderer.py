"""
Interactive cube viewer window.

moderngl-window owns the loop: it calls on_render once per displayed frame
(vsync) and delivers mouse and resize events on the same thread.
"""

import argparse
import logging
import sys
from typing import List, Optional

import moderngl_window as mglw

from .base_renderer import BaseRenderer
from ..config import ViewerConfig, load_config
from ..core.controls import MouseDragSource
from ..core.errors import CubeViewerError
from ..logging_config import setup_logging

logger = logging.getLogger(__name__)


class CubeWindow(BaseRenderer, mglw.WindowConfig):
    """
    Window showing the colored cube, rotated by dragging with the left button.
    """

    title = "Cube Viewer"
    gl_version = (3, 3)
    aspect_ratio = None
    vsync = True
    resizable = True

    # Set by main() before the window is created
    viewer_config: Optional[ViewerConfig] = None

    @classmethod
    def add_arguments(cls, parser):
        parser.add_argument('--config', default=None, help='YAML configuration file')
        parser.add_argument('--rotation-speed', type=float, default=None,
                            help='Radians of rotation per dragged pixel (default: 0.005)')
        parser.add_argument('--log-level', default='INFO', help='Logging level')

    def __init__(self, **kwargs):
        mglw.WindowConfig.__init__(self, **kwargs)

        config = self.viewer_config
        if config is None:
            config = load_config(getattr(self.argv, 'config', None))
        config = config.with_overrides(rotation_speed=getattr(self.argv, 'rotation_speed', None))

        width, height = self.wnd.buffer_size
        BaseRenderer.__init__(self, self.ctx, config, width=width, height=height)

        self.mouse = MouseDragSource(self.session.controller)

        print("=== CONTROLS ===")
        print("Left mouse drag: Rotate | R: Reset rotation | ESC: Quit")

    def on_render(self, time: float, frame_time: float):
        """Render frame (called by moderngl-window)"""
        if self.session.stopped:
            self.wnd.close()
            return
        self.render_frame()

    def on_resize(self, width: int, height: int):
        """Window resized, may race with a frame at the old size"""
        self.resize(width, height)

    def on_mouse_press_event(self, x, y, button):
        self.mouse.press(x, y, button)

    def on_mouse_drag_event(self, x, y, dx, dy):
        """Rotate from the absolute position, dx/dy are not used"""
        self.mouse.move(x, y)

    def on_mouse_release_event(self, x, y, button):
        self.mouse.release(x, y, button)

    def on_key_event(self, key, action, modifiers):
        """Handle keyboard input"""
        if action == self.wnd.keys.ACTION_PRESS:
            if key == self.wnd.keys.R:
                self.session.rotation.reset()
                logger.info("Rotation reset")

    def on_close(self):
        self.session.stop()
        self.cleanup()


def _pre_parse(argv: List[str]) -> argparse.Namespace:
    """Read the options needed before the window exists"""
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument('--config', default=None)
    parser.add_argument('--log-level', default='INFO')
    args, _ = parser.parse_known_args(argv)
    return args


def main(argv: Optional[List[str]] = None):
    """Run the interactive viewer"""
    if argv is None:
        argv = sys.argv[1:]

    early = _pre_parse(argv)
    setup_logging(early.log_level)

    try:
        config = load_config(early.config)
        CubeWindow.viewer_config = config
        CubeWindow.window_size = config.window_size
        mglw.run_window_config(CubeWindow, args=argv)
    except CubeViewerError as e:
        logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
