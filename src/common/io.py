"""
Mesh I/O utilities.

Saves globe meshes as GLB with a JSON metadata sidecar, and loads them back.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Tuple

import trimesh

from .config import GlobeMetadata

logger = logging.getLogger(__name__)


def save_globe(
    mesh: "trimesh.Trimesh",
    path: Path,
    metadata: GlobeMetadata
) -> Path:
    """
    Save globe mesh to GLB file with metadata sidecar.

    Args:
        mesh: Trimesh mesh object
        path: Output path (should end in .glb)
        metadata: GlobeMetadata object (will be saved as .json sidecar)

    Returns:
        Path of the written mesh
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    mesh.export(str(path))
    logger.info(f"Saved globe: {path} ({metadata.n_vertices} verts, {metadata.n_triangles} tris)")

    meta_path = path.with_suffix('.json')
    metadata.save(meta_path)
    logger.info(f"Saved metadata: {meta_path}")

    return path


def load_globe(path: Path) -> Tuple["trimesh.Trimesh", Optional[GlobeMetadata]]:
    """
    Load globe mesh and its metadata sidecar.

    Args:
        path: Path to mesh file

    Returns:
        Tuple of (mesh, metadata) - metadata may be None if not found
    """
    path = Path(path)
    mesh = trimesh.load(str(path), force='mesh', process=False)

    meta_path = path.with_suffix('.json')
    metadata = None
    if meta_path.exists():
        with open(meta_path) as f:
            metadata = GlobeMetadata.from_dict(json.load(f))

    return mesh, metadata
