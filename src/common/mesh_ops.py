"""
Mesh operation utilities.

Common mesh operations: UV-sphere tessellation, normal recompute, statistics.
"""

import numpy as np
from typing import Dict, Any, Tuple
import logging

import trimesh

logger = logging.getLogger(__name__)


def uv_sphere(
    width_segments: int,
    height_segments: int
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Tessellate a unit latitude/longitude sphere.

    Rows run from the north pole (row 0, v = 1) to the south pole
    (last row, v = 0). Each row has width_segments + 1 vertices so the
    seam column is duplicated and carries u = 1. Pole rows shift u by
    half a segment so every pole triangle gets its own texel column.

    Args:
        width_segments: Segments around the equator
        height_segments: Segments from pole to pole

    Returns:
        directions: ((ws+1)*(hs+1), 3) unit vectors
        uvs: ((ws+1)*(hs+1), 2) texture coordinates
        faces: (M, 3) triangle indices, counter-clockwise seen from outside
    """
    ws = int(width_segments)
    hs = int(height_segments)
    if ws < 3 or hs < 2:
        raise ValueError(f"Sphere needs at least 3x2 segments, got {ws}x{hs}")

    u = np.arange(ws + 1, dtype=np.float64) / ws
    v = np.arange(hs + 1, dtype=np.float64) / hs
    uu, vv = np.meshgrid(u, v)  # (hs+1, ws+1)

    phi = uu * 2.0 * np.pi
    theta = vv * np.pi
    directions = np.stack([
        -np.cos(phi) * np.sin(theta),
        np.cos(theta),
        np.sin(phi) * np.sin(theta)
    ], axis=-1).reshape(-1, 3)

    u_offset = np.zeros(hs + 1)
    u_offset[0] = 0.5 / ws
    u_offset[-1] = -0.5 / ws
    uvs = np.stack([uu + u_offset[:, None], 1.0 - vv], axis=-1).reshape(-1, 2)

    grid = np.arange((hs + 1) * (ws + 1)).reshape(hs + 1, ws + 1)
    a = grid[:-1, 1:]
    b = grid[:-1, :-1]
    c = grid[1:, :-1]
    d = grid[1:, 1:]

    # Pole rows only get the triangle that is not collapsed
    upper = np.stack([a, b, d], axis=-1)[1:].reshape(-1, 3)
    lower = np.stack([b, c, d], axis=-1)[:-1].reshape(-1, 3)
    faces = np.concatenate([upper, lower], axis=0)

    return directions, uvs, faces


def recompute_vertex_normals(vertices: np.ndarray, faces: np.ndarray) -> np.ndarray:
    """
    Smooth per-vertex normals from final (displaced) positions.

    Vertices are not merged, so seam duplicates keep their own normal.
    Pole vertices that no triangle references point straight out.

    Args:
        vertices: (N, 3) vertex positions
        faces: (M, 3) triangle indices

    Returns:
        (N, 3) unit normals
    """
    mesh = trimesh.Trimesh(vertices=vertices, faces=faces, process=False)
    normals = np.array(mesh.vertex_normals, dtype=np.float64)

    unused = np.ones(len(vertices), dtype=bool)
    unused[np.asarray(faces).ravel()] = False
    if np.any(unused):
        outward = np.asarray(vertices, dtype=np.float64)[unused]
        normals[unused] = outward / np.linalg.norm(outward, axis=1, keepdims=True)
    return normals


def compute_mesh_stats(mesh: "trimesh.Trimesh") -> Dict[str, Any]:
    """
    Compute mesh statistics.

    Args:
        mesh: Trimesh mesh object

    Returns:
        Dictionary of mesh statistics
    """
    bounds = mesh.bounds
    extents = mesh.extents
    radii = np.linalg.norm(mesh.vertices, axis=1)

    return {
        "n_vertices": len(mesh.vertices),
        "n_faces": len(mesh.faces),
        "bounds": {
            "min": bounds[0].tolist(),
            "max": bounds[1].tolist()
        },
        "extents": extents.tolist(),
        "max_extent": float(max(extents)),
        "min_radius": float(radii.min()),
        "max_radius": float(radii.max()),
        "surface_area": float(mesh.area),
        "is_winding_consistent": bool(mesh.is_winding_consistent)
    }
