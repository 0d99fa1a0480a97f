"""
Offline renderer for writing cube frames to disk without a window.
"""

import argparse
import logging
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Optional, Sequence, Tuple

import moderngl as mgl
import numpy as np
from PIL import Image
from tqdm import tqdm

from .base_renderer import BaseRenderer
from ..config import ViewerConfig, load_config
from ..core.controls import ScriptedDragSource
from ..core.errors import CubeViewerError
from ..core.render_engine import RenderSession, create_standalone_context, run
from ..logging_config import setup_logging

logger = logging.getLogger(__name__)


class OfflineRenderer(BaseRenderer):
    """
    Headless renderer.

    Renders into an offscreen framebuffer and turns the cube by replaying a
    horizontal drag between frames, as if a user were dragging the mouse.
    """

    def __init__(self, config: Optional[ViewerConfig] = None,
                 width: int = 800,
                 height: int = 600,
                 ctx: Optional[mgl.Context] = None):
        """
        Initialize offline renderer.

        Args:
            config: Viewer settings
            width: Frame width
            height: Frame height
            ctx: ModernGL context (if None, creates standalone context)

        Raises:
            CapabilityUnavailable: No headless OpenGL context is available
        """
        if ctx is None:
            ctx = create_standalone_context()
        super().__init__(ctx, config, width=width, height=height)
        self.ctx = ctx

        self.fbo = self.ctx.framebuffer(
            color_attachments=[self.ctx.texture((width, height), 4)],
            depth_attachment=self.ctx.depth_texture((width, height))
        )
        self.drag = ScriptedDragSource(self.session.controller)

    def snapshot(self) -> np.ndarray:
        """
        Render the current rotation and read it back.

        Returns:
            Image as numpy array (height, width, 4) uint8, top row first
        """
        self.fbo.use()
        self.render_frame()
        return self.read_pixels()

    def read_pixels(self) -> np.ndarray:
        """Read the framebuffer as (height, width, 4) uint8, top row first"""
        pixels = self.fbo.read(components=4)
        pixels = np.frombuffer(pixels, dtype=np.uint8).reshape((self.height, self.width, 4))
        # OpenGL rows start at the bottom
        return np.flipud(pixels)

    def render_frames(self, output_dir: str, frame_count: int = 60,
                      drag_step: float = 10.0,
                      gestures: Optional[Sequence[Sequence[Tuple[float, float]]]] = None) -> int:
        """
        Render frames to PNG files.

        One queued drag gesture is replayed after each frame.

        Args:
            output_dir: Directory for frame_%06d.png files
            frame_count: Number of frames to render
            drag_step: Horizontal pixels dragged between consecutive frames
            gestures: Gestures to replay instead of the fixed horizontal drag

        Returns:
            Number of frames written
        """
        if frame_count <= 0:
            raise ValueError(f"frame_count must be positive, got {frame_count}")

        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        if gestures is None:
            gestures = [[(0.0, 0.0), (drag_step, 0.0)]] * frame_count
        self.drag.gestures.extend(gestures)

        self.fbo.use()
        remaining = frame_count
        progress = tqdm(total=frame_count, desc="Rendering frames", unit="frame")

        def next_frame() -> bool:
            nonlocal remaining
            if remaining <= 0:
                return False
            remaining -= 1
            return True

        def after_frame(session: RenderSession):
            index = session.frame_count - 1
            img = Image.fromarray(self.read_pixels())
            img.save(output_path / f"frame_{index:06d}.png")
            progress.update(1)
            # Turn the cube for the next frame
            self.drag.play_next()

        try:
            drawn = run(self.session, self.frame_renderer, next_frame, after_frame)
        finally:
            progress.close()
            # Gestures left over from an early stop
            self.drag.gestures.clear()

        logger.info("Wrote %d frames to %s", drawn, output_path)
        return drawn

    def cleanup(self):
        self.fbo.release()
        super().cleanup()


def encode_video(frames_dir: str, output_path: str, fps: int = 30):
    """
    Encode frame_%06d.png files into a video with FFmpeg.

    Args:
        frames_dir: Directory containing the frames
        output_path: Output video file path
        fps: Frame rate
    """
    ffmpeg_path = shutil.which("ffmpeg")
    if ffmpeg_path is None:
        raise RuntimeError(
            "FFmpeg is not installed or not in PATH. "
            "Please install FFmpeg to encode videos.\n"
            "Installation: https://ffmpeg.org/download.html"
        )

    cmd = [
        ffmpeg_path, "-y",
        "-framerate", str(fps),
        "-i", str(Path(frames_dir) / "frame_%06d.png"),
        "-c:v", "libx264",
        "-pix_fmt", "yuv420p",
        str(output_path)
    ]

    logger.info("Encoding video to %s", output_path)
    result = subprocess.run(cmd, capture_output=True, text=True)
    if result.returncode != 0:
        logger.error("FFmpeg error: %s", result.stderr)
        raise RuntimeError("Video encoding failed")


def main(argv=None):
    """Command-line interface for offline rendering"""
    parser = argparse.ArgumentParser(description="Render the rotating cube to PNG frames")
    parser.add_argument("--output", required=True, help="Output directory for frames")
    parser.add_argument("--frames", type=int, default=60, help="Number of frames")
    parser.add_argument("--drag-step", type=float, default=10.0,
                        help="Horizontal pixels dragged between frames")
    parser.add_argument("--width", type=int, default=800, help="Frame width")
    parser.add_argument("--height", type=int, default=600, help="Frame height")
    parser.add_argument("--config", default=None, help="YAML configuration file")
    parser.add_argument("--rotation-speed", type=float, default=None,
                        help="Radians of rotation per dragged pixel")
    parser.add_argument("--video", default=None, help="Also encode the frames to this video file")
    parser.add_argument("--fps", type=int, default=30, help="Video frame rate")
    parser.add_argument("--log-level", default="INFO", help="Logging level")

    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = load_config(args.config).with_overrides(rotation_speed=args.rotation_speed)
        renderer = OfflineRenderer(config, width=args.width, height=args.height)
    except CubeViewerError as e:
        logger.error("%s", e)
        sys.exit(1)

    try:
        renderer.render_frames(args.output, frame_count=args.frames, drag_step=args.drag_step)
    finally:
        renderer.cleanup()

    if args.video:
        encode_video(args.output, args.video, fps=args.fps)
        print(f"Video saved to: {args.video}")


if __name__ == "__main__":
    main()
