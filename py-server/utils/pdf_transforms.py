"""PDF coordinate transformation utilities.

User space is the page's native system (origin bottom-left, unaffected by
zoom). Viewport space is pixel space for on-screen rendering (origin
top-left, scaled by the zoom factor). Text baselines, annotation rectangles
and form-field rectangles all go through `to_viewport`.
"""

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

MATRIX_EPSILON = 1e-9
IDENTITY_MATRIX = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)

@dataclass
class Transformation:
    """Holds decomposed transformation matrix values."""
    rotation: float
    scaleX: float
    scaleY: float
    skewX: float
    skewY: float
    translateX: float
    translateY: float

# --- Core Transformation Functions ---
def decompose_ctm(ctm: Sequence[float]) -> Transformation:
    """Decompose CTM matrix into transformation components.

    Args:
        ctm: 6-element CTM matrix [a, b, c, d, e, f]

    Returns:
        Transformation with rotation, scale, skew, and translation.
    """
    a, b, c, d, e, f = ctm

    rotation_radians = np.arctan2(b, a)
    rotation_degrees = float(np.degrees(rotation_radians))

    scaleX = float(np.sqrt(a * a + b * b))
    scaleY = float(np.sqrt(c * c + d * d))

    if abs(scaleX) > MATRIX_EPSILON:
        skewX_radians = np.arctan((a * c + b * d) / (a * a + b * b))
        skewX_degrees = float(np.degrees(skewX_radians))
    else:
        skewX_degrees = 0.0

    if abs(scaleY) > MATRIX_EPSILON:
        skewY_radians = np.arctan((a * c + b * d) / (c * c + d * d))
        skewY_degrees = float(np.degrees(skewY_radians))
    else:
        skewY_degrees = 0.0

    # Handle reflection (negative determinant) by flipping one of the scales
    determinant = a * d - b * c
    if determinant < 0:
        scaleX = -scaleX

    return Transformation(
        rotation=rotation_degrees,
        scaleX=scaleX,
        scaleY=scaleY,
        skewX=skewX_degrees,
        skewY=skewY_degrees,
        translateX=e,
        translateY=f
    )

def apply_matrix_transform(x: float, y: float, ctm: Sequence[float]) -> Tuple[float, float]:
    """Apply CTM transformation to a point.

    Args:
        x, y: Point coordinates
        ctm: 6-element CTM matrix [a, b, c, d, e, f]

    Returns:
        Transformed (x, y) coordinates
    """
    a, b, c, d, e, f = ctm
    tx = a * x + c * y + e
    ty = b * x + d * y + f
    return tx, ty

def to_viewport(user_x: float, user_y: float, page_height: float, scale: float) -> Tuple[float, float]:
    """Convert a user-space point to viewport pixel space.

    Pure arithmetic: NaN and infinite inputs propagate.

    Args:
        user_x, user_y: Point in user space (origin bottom-left)
        page_height: Unscaled page height in user space
        scale: Zoom factor

    Returns:
        (pixel_x, pixel_y) with origin top-left
    """
    pixel_x = user_x * scale
    pixel_y = page_height * scale - user_y * scale
    return pixel_x, pixel_y

def rect_to_viewport(
    rect: Sequence[float], page_height: float, scale: float
) -> Tuple[float, float, float, float]:
    """Convert a normalized user-space rectangle to viewport (x, y, width, height).

    The viewport top-left corner comes from the rectangle's top edge (y1).
    Results are not clamped.
    """
    x0, y0, x1, y1 = rect
    x, y = to_viewport(x0, y1, page_height, scale)
    return x, y, (x1 - x0) * scale, (y1 - y0) * scale

def normalize_rect(rect: Sequence[float]) -> Tuple[float, float, float, float]:
    """Order rectangle corners so that x0 <= x1 and y0 <= y1."""
    x0, y0, x1, y1 = (float(v) for v in rect)
    return min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1)

def page_matrix(mediabox: Sequence[float], rotate: int = 0) -> Tuple[float, ...]:
    """Matrix mapping raw PDF coordinates into page user space.

    Mirrors the base CTM pdfminer applies before interpreting a page: the
    MediaBox origin moves to (0, 0) and /Rotate is applied, so text runs and
    annotation rectangles end up in the same space.
    """
    x0, y0, x1, y1 = (float(v) for v in mediabox)
    rotate = rotate % 360
    if rotate == 90:
        return (0.0, -1.0, 1.0, 0.0, -y0, x1)
    if rotate == 180:
        return (-1.0, 0.0, 0.0, -1.0, x1, y1)
    if rotate == 270:
        return (0.0, 1.0, -1.0, 0.0, y1, -x0)
    return (1.0, 0.0, 0.0, 1.0, -x0, -y0)

def page_size(mediabox: Sequence[float], rotate: int = 0) -> Tuple[float, float]:
    """Unscaled (width, height) of a page after /Rotate."""
    x0, y0, x1, y1 = (float(v) for v in mediabox)
    width, height = abs(x1 - x0), abs(y1 - y0)
    if rotate % 180 == 90:
        return height, width
    return width, height

def transform_rect(rect: Sequence[float], ctm: Sequence[float]) -> Tuple[float, float, float, float]:
    """Transform a rectangle by a matrix and return its normalized bounding box."""
    x0, y0, x1, y1 = rect
    corners: List[Tuple[float, float]] = [
        apply_matrix_transform(x, y, ctm)
        for x, y in ((x0, y0), (x1, y0), (x1, y1), (x0, y1))
    ]
    xs = [c[0] for c in corners]
    ys = [c[1] for c in corners]
    return min(xs), min(ys), max(xs), max(ys)

def glyph_height(transform: Sequence[float]) -> float:
    """Glyph height in user space encoded by a text-run transform."""
    return abs(decompose_ctm(transform).scaleY)

def run_extent(start: Tuple[float, float], end: Tuple[float, float]) -> float:
    """Distance between a run's first origin and the end of its last glyph."""
    return math.hypot(end[0] - start[0], end[1] - start[1])
