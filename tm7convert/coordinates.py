"""Coordinate conventions between the .tm7 canvas and the internal graph.

The tool's vertical axis grows downward; the internal graph's grows upward.
"""

from .schemas import BoundaryShape, Position, Size


NODE_WIDTH = 160
NODE_HEIGHT = 80

DEFAULT_BOUNDARY_SIZES: dict[str, tuple[float, float]] = {
    'rectangle': (100.0, 50.0),
    'line': (200.0, 5.0),
}


def to_internal(left: float, top: float) -> Position:
    return Position(x=left, y=-top)


def to_external(position: Position) -> tuple[float, float]:
    """Return ``(left, top)`` for an internal position."""
    return position.x, -position.y


def default_bounds(shape: BoundaryShape) -> Size:
    width, height = DEFAULT_BOUNDARY_SIZES.get(shape, DEFAULT_BOUNDARY_SIZES['rectangle'])
    return Size(width=width, height=height)


def resolve_bounds(shape: BoundaryShape, width: float, height: float) -> Size:
    """Use the source size where present, the shape's default otherwise."""
    default = default_bounds(shape)
    return Size(
        width=width if width > 0 else default.width,
        height=height if height > 0 else default.height,
    )
