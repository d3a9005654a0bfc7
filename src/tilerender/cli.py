"""Command-line interface for tilerender.

This module provides CLI commands for rendering single tiles from GeoJSON
files and inspecting tile bounds, using the Typer framework.
"""
import logging
import pathlib
from typing import Optional

import typer

from . import config
from .errors import InvalidTileError
from .objects import StaticObjectProvider
from .service import TileService
from .styles import FixedStyleStyler, ObjectStyle
from .tilemath import TileAddress

app = typer.Typer(help="Render vector geometry into XYZ raster map tiles.")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug messages."),
         env: str = typer.Option("DEFAULT", help="Settings environment to use.")):
    """Render vector geometry into XYZ raster map tiles."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING,
                        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    if env != "DEFAULT":
        config.change_env(env)


@app.command()
def render(geojson: pathlib.Path = typer.Argument(..., exists=True, dir_okay=False,
                                                  help="GeoJSON file with WGS84 features."),
           zoom: int = typer.Argument(...),
           x: int = typer.Argument(...),
           y: int = typer.Argument(...),
           output: pathlib.Path = typer.Option("tile.png", "--output", "-o",
                                               help="PNG file to write."),
           color: str = typer.Option("red", help="Outline color."),
           fill: Optional[str] = typer.Option(None, help="Fill color, no fill if omitted."),
           width: float = typer.Option(2.0, help="Outline width in pixels."),
           crop: bool = typer.Option(False, help="Crop geometries to the tile before drawing."),
           padding: float = typer.Option(0.1, help="Crop padding as a share of the tile size.")):
    """Render one tile of a GeoJSON file with a fixed style."""
    if fill is None:
        style = ObjectStyle.border_only(color, width)
    else:
        style = ObjectStyle.border_and_fill(color, fill, width)
    provider = StaticObjectProvider.from_geojson(geojson)
    try:
        with TileService(provider, FixedStyleStyler(style),
                         crop_geometries=crop, padding_share=padding) as service:
            data = service.get_tile(zoom, x, y)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    output.write_bytes(data)
    typer.echo(f"Wrote {len(data)} bytes to {output}")


@app.command()
def bbox(zoom: int, x: int, y: int):
    """Print the WGS84 bounding box of a tile as west south east north."""
    try:
        tile = TileAddress.checked(zoom, x, y)
    except InvalidTileError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    env = tile.bounds_lnglat
    typer.echo(f"{env.min_x:.8f} {env.min_y:.8f} {env.max_x:.8f} {env.max_y:.8f}")
