"""Exceptions raised by tilerender."""


class TileRenderError(Exception):
    """Base class for errors raised while producing a tile."""


class InvalidTileError(TileRenderError, ValueError):
    """Raised when a (zoom, x, y) address does not exist in the XYZ scheme."""
