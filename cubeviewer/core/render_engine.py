"""
Core rendering engine for the cube viewer.

A RenderSession owns everything one rendered view needs: the linked program,
static geometry, rotation and transform state, and a stop token. The
FrameRenderer draws one frame of a session; `run` is the explicit frame loop
for hosts that do not drive rendering themselves.
"""

import logging
import threading
import moderngl as mgl
import numpy as np
from typing import Callable, Optional, Tuple

from .camera import TransformState
from .controls import DragRotationController, RotationState
from .errors import CapabilityUnavailable
from .geometry import GeometryBuffer

logger = logging.getLogger(__name__)

MIN_GL_VERSION = 330

MODEL_VIEW_UNIFORM = 'uModelViewMatrix'
PROJECTION_UNIFORM = 'uProjectionMatrix'


def _matrix_bytes(m: np.ndarray) -> bytes:
    """Row-major numpy matrix to the column-major layout GLSL expects"""
    return np.ascontiguousarray(m.T, dtype=np.float32).tobytes()


def require_capability(ctx: mgl.Context) -> mgl.Context:
    """Raise CapabilityUnavailable if ctx cannot run the GLSL 330 shaders"""
    version = getattr(ctx, 'version_code', 0)
    if version < MIN_GL_VERSION:
        raise CapabilityUnavailable(
            f"OpenGL {MIN_GL_VERSION // 100}.{MIN_GL_VERSION % 100 // 10} is required, "
            f"context provides version code {version}"
        )
    return ctx


def create_standalone_context() -> mgl.Context:
    """
    Create a headless OpenGL context.

    Raises:
        CapabilityUnavailable: No headless context could be created
    """
    try:
        # Try standard standalone context
        ctx = mgl.create_standalone_context()
    except Exception as e1:
        try:
            # Try with explicit version
            ctx = mgl.create_standalone_context(require=MIN_GL_VERSION)
        except Exception as e2:
            try:
                # No X display: fall back to EGL
                ctx = mgl.create_standalone_context(require=MIN_GL_VERSION, backend='egl')
            except Exception as e3:
                raise CapabilityUnavailable(
                    f"Cannot create a headless OpenGL context ({e1}; {e2}; {e3}). "
                    f"Use the interactive viewer instead: cubeviewer"
                ) from e3

    return require_capability(ctx)


class RenderSession:
    """
    State of one rendered view.

    Built once at startup. Only the rotation (from input events) and the
    projection (from resizes) change afterwards.
    """

    def __init__(self, ctx: mgl.Context, program: mgl.Program,
                 geometry: GeometryBuffer,
                 transform: Optional[TransformState] = None,
                 rotation: Optional[RotationState] = None,
                 rotation_speed: float = 0.005,
                 background: Tuple[float, float, float, float] = (0.1, 0.1, 0.2, 1.0)):
        """
        Initialize render session.

        Args:
            ctx: ModernGL context
            program: Linked shader program with aPosition/aColor inputs
            geometry: Uploaded mesh buffers
            transform: Projection/model-view state
            rotation: Initial rotation angles
            rotation_speed: Radians of rotation per dragged pixel
            background: Clear color (RGBA)
        """
        self.ctx = ctx
        self.program = program
        self.geometry = geometry
        self.vao = geometry.vertex_array(ctx, program)

        self.transform = transform if transform is not None else TransformState()
        self.rotation = rotation if rotation is not None else RotationState()
        self.controller = DragRotationController(self.rotation, rotation_speed)
        self.background = background

        self.stop_token = threading.Event()
        self.frame_count = 0
        self.uploaded_projection_version: Optional[int] = None

        self.ctx.enable(mgl.DEPTH_TEST)

    def resize(self, width: int, height: int) -> bool:
        """Viewport size changed, returns True if the projection changed"""
        changed = self.transform.set_viewport(width, height)
        if changed:
            logger.debug("Viewport %dx%d, aspect %.3f", width, height, self.transform.aspect)
        return changed

    def stop(self):
        """Ask the frame loop to stop before its next frame"""
        self.stop_token.set()

    @property
    def stopped(self) -> bool:
        return self.stop_token.is_set()

    def release(self):
        """Free GPU resources"""
        self.vao.release()
        self.geometry.release()
        self.program.release()


class FrameRenderer:
    """Draws one frame of a RenderSession"""

    def render_frame(self, session: RenderSession):
        """
        Clear, update uniforms from the current rotation, and draw.

        The projection is only re-uploaded when it changed since the last
        upload for this session.
        """
        session.ctx.clear(*session.background, depth=1.0)

        rotation = session.rotation
        model_view = session.transform.get_model_view_matrix(rotation.about_x, rotation.about_y)
        session.program[MODEL_VIEW_UNIFORM].write(_matrix_bytes(model_view))

        version = session.transform.projection_version
        if version != session.uploaded_projection_version:
            projection = session.transform.get_projection_matrix()
            session.program[PROJECTION_UNIFORM].write(_matrix_bytes(projection))
            session.uploaded_projection_version = version

        session.vao.render(mgl.TRIANGLES, vertices=session.geometry.index_count)
        session.frame_count += 1


def run(session: RenderSession, renderer: FrameRenderer,
        next_frame: Callable[[], bool],
        after_frame: Optional[Callable[[RenderSession], None]] = None) -> int:
    """
    Render frames until the session is stopped or the host goes away.

    Args:
        session: Session to render
        renderer: Frame renderer
        next_frame: Blocks until the next frame is due; returns False once
            the host can no longer present frames
        after_frame: Called after every drawn frame

    Returns:
        Number of frames drawn
    """
    drawn = 0
    while not session.stopped:
        if not next_frame():
            break
        if session.stopped:
            break
        renderer.render_frame(session)
        drawn += 1
        if after_frame is not None:
            after_frame(session)

    logger.debug("Frame loop finished after %d frames", drawn)
    return drawn
