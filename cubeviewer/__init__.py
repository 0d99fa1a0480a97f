"""
cubeviewer: a rotating colored cube drawn with raw OpenGL calls.
"""

__version__ = "0.1.0"
