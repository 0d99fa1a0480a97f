"""
Core rendering components for the cube viewer.

Shader building, static geometry, transforms, drag rotation and the frame
renderer. Nothing here depends on a particular window system.
"""

from .errors import (
    CubeViewerError,
    CapabilityUnavailable,
    ShaderCompileError,
    ShaderLinkError,
    ConfigError,
)
from .shader_manager import ShaderManager, build_program
from .geometry import GeometryBuffer, cube_vertices, cube_indices
from .camera import TransformState, perspective_projection, model_view_matrix
from .controls import (
    RotationState,
    DragState,
    DragRotationController,
    DragInputSource,
    MouseDragSource,
    TouchDragSource,
    ScriptedDragSource,
)
from .render_engine import RenderSession, FrameRenderer, run, create_standalone_context

__all__ = [
    'CubeViewerError',
    'CapabilityUnavailable',
    'ShaderCompileError',
    'ShaderLinkError',
    'ConfigError',
    'ShaderManager',
    'build_program',
    'GeometryBuffer',
    'cube_vertices',
    'cube_indices',
    'TransformState',
    'perspective_projection',
    'model_view_matrix',
    'RotationState',
    'DragState',
    'DragRotationController',
    'DragInputSource',
    'MouseDragSource',
    'TouchDragSource',
    'ScriptedDragSource',
    'RenderSession',
    'FrameRenderer',
    'run',
    'create_standalone_context',
]
