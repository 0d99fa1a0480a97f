"""
Static cube geometry uploaded once to GPU buffers.
"""

import moderngl as mgl
import numpy as np
from typing import Optional, Tuple

FLOATS_PER_VERTEX = 6  # position xyz + color rgb
FLOAT_SIZE = 4

# Face corners, counter-clockwise seen from outside the cube
_FACES = [
    # Front face
    ((-1, -1,  1), ( 1, -1,  1), ( 1,  1,  1), (-1,  1,  1)),
    # Back face
    ((-1, -1, -1), (-1,  1, -1), ( 1,  1, -1), ( 1, -1, -1)),
    # Top face
    ((-1,  1, -1), (-1,  1,  1), ( 1,  1,  1), ( 1,  1, -1)),
    # Bottom face
    ((-1, -1, -1), ( 1, -1, -1), ( 1, -1,  1), (-1, -1,  1)),
    # Right face
    (( 1, -1, -1), ( 1,  1, -1), ( 1,  1,  1), ( 1, -1,  1)),
    # Left face
    ((-1, -1, -1), (-1, -1,  1), (-1,  1,  1), (-1,  1, -1)),
]

FACE_COLORS = [
    (1.0, 0.0, 0.0),  # front: red
    (0.0, 1.0, 0.0),  # back: green
    (0.0, 0.0, 1.0),  # top: blue
    (1.0, 1.0, 0.0),  # bottom: yellow
    (1.0, 0.0, 1.0),  # right: magenta
    (0.0, 1.0, 1.0),  # left: cyan
]


def cube_vertices() -> np.ndarray:
    """Interleaved (x, y, z, r, g, b) records, 4 per face, shape (24, 6)"""
    records = [
        corner + color
        for corners, color in zip(_FACES, FACE_COLORS)
        for corner in corners
    ]
    return np.array(records, dtype=np.float32)


def cube_indices() -> np.ndarray:
    """Two triangles per face, 36 uint16 indices"""
    indices = []
    for face in range(len(_FACES)):
        base = face * 4
        indices.extend([base, base + 1, base + 2, base, base + 2, base + 3])
    return np.array(indices, dtype=np.uint16)


class GeometryBuffer:
    """
    Immutable vertex and index buffers for an indexed triangle mesh.

    Vertex records are interleaved position and color floats. Attribute
    layout is fixed so a renderer can bind `aPosition` and `aColor` without
    recomputing offsets.
    """

    stride = FLOATS_PER_VERTEX * FLOAT_SIZE  # 24 bytes
    position_offset = 0
    color_offset = 3 * FLOAT_SIZE  # 12 bytes
    attribute_format = '3f 3f'
    attribute_names = ('aPosition', 'aColor')
    index_element_size = 2

    def __init__(self, vbo: mgl.Buffer, ibo: mgl.Buffer,
                 vertex_count: int, index_count: int):
        self.vbo = vbo
        self.ibo = ibo
        self.vertex_count = vertex_count
        self.index_count = index_count

    @staticmethod
    def validate(vertices: np.ndarray, indices: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Check mesh data and normalize dtypes.

        Returns:
            (vertices as float32 (n, 6), indices as flat uint16)
        """
        vertices = np.asarray(vertices, dtype=np.float32)
        if vertices.ndim == 1:
            if vertices.size % FLOATS_PER_VERTEX != 0:
                raise ValueError(
                    f"Vertex data length {vertices.size} is not a multiple of {FLOATS_PER_VERTEX}"
                )
            vertices = vertices.reshape(-1, FLOATS_PER_VERTEX)
        if vertices.ndim != 2 or vertices.shape[1] != FLOATS_PER_VERTEX:
            raise ValueError(f"Expected vertex records of {FLOATS_PER_VERTEX} floats, got shape {vertices.shape}")
        if len(vertices) == 0:
            raise ValueError("Mesh has no vertices")

        indices = np.asarray(indices).ravel()
        if indices.size == 0 or indices.size % 3 != 0:
            raise ValueError(f"Index count must be a positive multiple of 3, got {indices.size}")
        if indices.min() < 0 or indices.max() >= len(vertices):
            raise ValueError(
                f"Index out of range [0, {len(vertices)}): min={indices.min()}, max={indices.max()}"
            )
        if len(vertices) > np.iinfo(np.uint16).max + 1:
            raise ValueError(f"Too many vertices for 16-bit indices: {len(vertices)}")

        return vertices, indices.astype(np.uint16)

    @classmethod
    def upload(cls, ctx: mgl.Context, vertices: Optional[np.ndarray] = None,
               indices: Optional[np.ndarray] = None) -> "GeometryBuffer":
        """
        Upload mesh data to static GPU buffers.

        Args:
            ctx: ModernGL context
            vertices: Interleaved vertex data (defaults to the colored cube)
            indices: Triangle indices (defaults to the cube's 36 indices)
        """
        if vertices is None:
            vertices = cube_vertices()
        if indices is None:
            indices = cube_indices()
        vertices, indices = cls.validate(vertices, indices)

        vbo = ctx.buffer(vertices.tobytes(), dynamic=False)
        ibo = ctx.buffer(indices.tobytes(), dynamic=False)
        return cls(vbo, ibo, len(vertices), indices.size)

    def vertex_array(self, ctx: mgl.Context, program: mgl.Program) -> mgl.VertexArray:
        """Bind the buffers to a program's aPosition/aColor inputs"""
        return ctx.vertex_array(
            program,
            [(self.vbo, self.attribute_format, *self.attribute_names)],
            index_buffer=self.ibo,
            index_element_size=self.index_element_size,
        )

    def release(self):
        """Free GPU buffers"""
        self.vbo.release()
        self.ibo.release()
