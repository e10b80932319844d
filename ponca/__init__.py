"""Local plane, sphere and Monge patch fitting, kd-tree queries and helpers for point clouds."""

__version__ = "0.1.0"

__all__ = [
    "colormap",
    "containers",
    "kdtree",
    "monge_patch",
    "plane",
    "plane_fits",
    "unoriented_sphere",
]