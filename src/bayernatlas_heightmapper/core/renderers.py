"""
Output renderers.

Each output mode is one renderer over a finished HeightGrid. The manager
picks one from RENDERERS by the configured mode and never branches on the
mode itself, so a new output kind only needs a new entry here.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

from ..constants import COLOR_ANCHORS, CONTOUR_LINE_COLOR, OutputMode
from ..models.config import RunConfig
from . import raster_io
from .grid import HeightGrid

logger = logging.getLogger(__name__)


@dataclass
class RenderedOutput:
    """Encoded output of one renderer."""

    data: bytes
    media_type: str
    size: tuple[int, int]  # (width, height) in pixels or columns x rows

    @property
    def is_text(self) -> bool:
        return self.media_type.startswith("text/")


class Renderer(Protocol):
    mode: str

    def render(self, grid: HeightGrid, config: RunConfig) -> RenderedOutput: ...


class RawTextRenderer:
    """Whitespace-separated height values, one line per row."""

    mode = OutputMode.RAW

    def __init__(self, formatter: raster_io.HeightFormatter = raster_io.format_height) -> None:
        self.formatter = formatter

    def render(self, grid: HeightGrid, config: RunConfig) -> RenderedOutput:
        text = raster_io.grid_to_raw_text(grid, self.formatter)
        return RenderedOutput(text.encode("utf-8"), "text/plain", grid.shape)


class GrayscaleRenderer:
    """Heightmap PNG normalised to the grid's valid height range.

    The scale factor resizes the finished image rather than the grid.

    Raises:
        NoValidDataError: when the grid has no sample above the no-data threshold
    """

    mode = OutputMode.IMAGE

    def render(self, grid: HeightGrid, config: RunConfig) -> RenderedOutput:
        vmin, vmax = grid.height_range()

        size = (grid.width, grid.height)
        if config.scale != 1:
            size = (config.output_width, config.output_height)

        png = raster_io.grid_to_grayscale_png(grid, vmin, vmax, size)
        return RenderedOutput(png, "image/png", size)


class TopographicRenderer:
    """Coloured contour map; the grid is resampled before contours are traced."""

    mode = OutputMode.TOPOGRAPHIC

    def __init__(
        self,
        anchors: raster_io.ColorAnchors | None = None,
        line_color: raster_io.RGB | None = None,
    ) -> None:
        self.anchors = anchors if anchors is not None else COLOR_ANCHORS
        self.line_color = line_color if line_color is not None else CONTOUR_LINE_COLOR

    def render(self, grid: HeightGrid, config: RunConfig) -> RenderedOutput:
        if config.topo_line_spacing is None:
            raise ValueError("Topographic rendering requires a line spacing")

        scaled = raster_io.resample_bilinear(grid, config.scale)
        logger.debug(f"Resampled {grid!r} -> {scaled!r}")

        png = raster_io.grid_to_topographic_png(
            scaled, config.topo_line_spacing, self.anchors, self.line_color
        )
        return RenderedOutput(png, "image/png", scaled.shape)


RENDERERS: dict[str, Renderer] = {
    OutputMode.RAW: RawTextRenderer(),
    OutputMode.IMAGE: GrayscaleRenderer(),
    OutputMode.TOPOGRAPHIC: TopographicRenderer(),
}


def get_renderer(mode: str) -> Renderer:
    """Renderer for an output mode."""
    if mode not in RENDERERS:
        raise ValueError(f"No renderer for output mode '{mode}'")
    return RENDERERS[mode]
