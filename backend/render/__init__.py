from .grid import cluster_box, grid_shape
from .scene import build_scene

__all__ = ["build_scene", "cluster_box", "grid_shape"]
