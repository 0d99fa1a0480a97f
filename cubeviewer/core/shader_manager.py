"""
Shader Manager for loading, compiling, and linking GLSL programs.

Compile and link failures are reported as ShaderCompileError and
ShaderLinkError carrying the driver's diagnostic text.
"""

import logging
import moderngl as mgl
from pathlib import Path
from typing import Dict, List, Optional, Union

from .errors import ShaderCompileError, ShaderLinkError

logger = logging.getLogger(__name__)

DEFAULT_SHADER_DIR = Path(__file__).parent.parent / "shaders"

# Section headers moderngl uses in its compiler error text
_STAGE_HEADERS = {
    'vertex_shader': 'vertex',
    'fragment_shader': 'fragment',
}


def _failed_stage(message: str) -> str:
    """Find which stage a moderngl compiler error refers to"""
    for line in message.splitlines():
        stage = _STAGE_HEADERS.get(line.strip())
        if stage is not None:
            return stage
    return 'unknown'


def build_program(ctx: mgl.Context, vertex_source: str, fragment_source: str,
                  name: Optional[str] = None) -> mgl.Program:
    """
    Compile a vertex/fragment source pair and link them into a program.

    Args:
        ctx: ModernGL context
        vertex_source: GLSL source of the vertex stage
        fragment_source: GLSL source of the fragment stage
        name: Program name used in log messages

    Returns:
        Linked shader program

    Raises:
        ShaderCompileError: A stage failed to compile
        ShaderLinkError: The stages compiled but did not link
    """
    label = name or "program"
    try:
        program = ctx.program(
            vertex_shader=vertex_source,
            fragment_shader=fragment_source
        )
    except mgl.Error as e:
        message = str(e)
        if 'Linker' in message:
            logger.error("Failed to link shader program %s:\n%s", label, message)
            raise ShaderLinkError(message, name) from e

        stage = _failed_stage(message)
        logger.error("Failed to compile %s shader of %s:\n%s", stage, label, message)
        raise ShaderCompileError(stage, message) from e

    logger.debug("Linked shader program %s", label)
    return program


class ShaderManager:
    """
    Loads shader sources from a directory and caches linked programs.
    """

    def __init__(self, shader_dir: Union[str, Path, None] = None,
                 ctx: Optional[mgl.Context] = None):
        """
        Initialize ShaderManager.

        Args:
            shader_dir: Directory containing <name>.vert / <name>.frag files
                (defaults to the packaged shaders)
            ctx: ModernGL context (if None, set it before loading programs)
        """
        self.shader_dir = Path(shader_dir) if shader_dir is not None else DEFAULT_SHADER_DIR
        if not self.shader_dir.exists():
            raise FileNotFoundError(f"Shader directory does not exist: {self.shader_dir}")

        self.ctx = ctx
        self._shader_cache: Dict[str, str] = {}
        self._program_cache: Dict[str, mgl.Program] = {}

    def set_context(self, ctx: mgl.Context):
        """Set OpenGL context (required before loading shaders)"""
        self.ctx = ctx

    def load_shader_source(self, shader_name: str, shader_type: str = 'frag') -> str:
        """
        Load shader source code.

        Args:
            shader_name: Name of shader (without extension)
            shader_type: 'vert' or 'frag'

        Returns:
            Shader source code
        """
        if shader_type not in ('vert', 'frag'):
            raise ValueError(f"Unknown shader type: {shader_type}")

        shader_path = self.shader_dir / f"{shader_name}.{shader_type}"
        cache_key = str(shader_path)
        if cache_key in self._shader_cache:
            return self._shader_cache[cache_key]

        if not shader_path.exists():
            raise FileNotFoundError(f"Shader not found: {shader_path}")

        source = shader_path.read_text()
        self._shader_cache[cache_key] = source
        return source

    def load_shader(self, vertex_shader: str, fragment_shader: Optional[str] = None) -> mgl.Program:
        """
        Load, compile and link a shader program.

        Args:
            vertex_shader: Name of vertex shader (without extension)
            fragment_shader: Name of fragment shader (defaults to vertex_shader)

        Returns:
            Linked shader program
        """
        if self.ctx is None:
            raise RuntimeError("OpenGL context not set. Call set_context() first.")

        if fragment_shader is None:
            fragment_shader = vertex_shader

        cache_key = f"{vertex_shader}:{fragment_shader}"
        if cache_key in self._program_cache:
            return self._program_cache[cache_key]

        vert_source = self.load_shader_source(vertex_shader, 'vert')
        frag_source = self.load_shader_source(fragment_shader, 'frag')

        program = build_program(self.ctx, vert_source, frag_source, name=cache_key)

        self._program_cache[cache_key] = program
        return program

    def clear_cache(self):
        """Clear shader and program caches"""
        self._shader_cache.clear()
        self._program_cache.clear()

    def list_available_shaders(self) -> Dict[str, List[str]]:
        """
        List available shaders in the shader directory.

        Returns:
            Dictionary with 'vert' and 'frag' keys containing sorted shader names
        """
        return {
            'vert': sorted(p.stem for p in self.shader_dir.glob("*.vert")),
            'frag': sorted(p.stem for p in self.shader_dir.glob("*.frag")),
        }
