"""Preview module for rendered image output.

Components:
    export: PNG export and image comparison utilities

Example:
    >>> from whitted.preview import save_png
    >>> save_png(scene.render(512, 512), "output.png")
"""

from whitted.preview.export import (
    compute_rmse,
    load_png,
    save_png,
    save_png_from_array,
)

__all__ = [
    "save_png",
    "save_png_from_array",
    "load_png",
    "compute_rmse",
]
