"""
Base renderer class with common functionality for interactive and offline renderers.
"""

import logging
import moderngl as mgl
from pathlib import Path
from typing import Optional

from ..config import ViewerConfig
from ..core.camera import TransformState
from ..core.geometry import GeometryBuffer
from ..core.render_engine import FrameRenderer, RenderSession, require_capability
from ..core.shader_manager import ShaderManager

logger = logging.getLogger(__name__)


class BaseRenderer:
    """
    Builds the shader program, cube buffers and render session on a context.
    """

    def __init__(self, ctx: mgl.Context,
                 config: Optional[ViewerConfig] = None,
                 shader_dir: Optional[Path] = None,
                 width: int = 1280,
                 height: int = 720):
        """
        Initialize base renderer.

        Args:
            ctx: ModernGL context to render with
            config: Viewer settings (defaults if None)
            shader_dir: Directory containing shaders (packaged shaders if None)
            width: Viewport width
            height: Viewport height

        Raises:
            CapabilityUnavailable: The context is too old for the shaders
            ShaderCompileError, ShaderLinkError: The cube program failed to build
        """
        self.viewer_config = config if config is not None else ViewerConfig()
        self.width = width
        self.height = height

        require_capability(ctx)
        logger.info("OpenGL context version %s", ctx.version_code)

        self.shader_manager = ShaderManager(shader_dir, ctx)
        program = self.shader_manager.load_shader(self.viewer_config.shader)

        geometry = GeometryBuffer.upload(ctx)
        logger.debug("Uploaded %d vertices, %d indices",
                     geometry.vertex_count, geometry.index_count)

        transform = TransformState(
            fov=self.viewer_config.fov,
            near=self.viewer_config.near,
            far=self.viewer_config.far,
            distance=self.viewer_config.distance,
        )
        transform.set_viewport(width, height)

        self.session = RenderSession(
            ctx,
            program,
            geometry,
            transform=transform,
            rotation_speed=self.viewer_config.rotation_speed,
            background=self.viewer_config.background,
        )
        self.frame_renderer = FrameRenderer()

    @property
    def rotation(self):
        return self.session.rotation

    def render_frame(self):
        """Draw one frame into the currently bound framebuffer"""
        self.frame_renderer.render_frame(self.session)

    def resize(self, width: int, height: int):
        """Resize viewport"""
        self.width = width
        self.height = height
        self.session.resize(width, height)

    def cleanup(self):
        """Clean up resources"""
        self.session.release()
        self.shader_manager.clear_cache()
