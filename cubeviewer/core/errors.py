"""
Exception types raised while setting up a render session.

Every failure here happens once, during setup. Nothing is retried.
"""

from typing import Optional


class CubeViewerError(Exception):
    """Base class for all cubeviewer errors"""


class CapabilityUnavailable(CubeViewerError):
    """No usable OpenGL context could be obtained"""


class ShaderCompileError(CubeViewerError):
    """
    A single shader stage failed to compile.

    Attributes:
        stage: 'vertex' or 'fragment'
        log: Compiler diagnostic text
    """

    def __init__(self, stage: str, log: str):
        self.stage = stage
        self.log = log
        super().__init__(f"{stage} shader failed to compile:\n{log}")


class ShaderLinkError(CubeViewerError):
    """Both stages compiled but the program failed to link"""

    def __init__(self, log: str, program_name: Optional[str] = None):
        self.log = log
        self.program_name = program_name
        name = f" '{program_name}'" if program_name else ""
        super().__init__(f"Shader program{name} failed to link:\n{log}")


class ConfigError(CubeViewerError):
    """Invalid viewer configuration"""
