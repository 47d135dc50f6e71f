"""
Run configuration for bayernatlas-heightmapper.

RunConfig is the validated form of the command line. Every check here runs
before any network activity, so an invalid combination never produces
partial output.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_SCALE,
    DEFAULT_SERVICE_URL,
    DEFAULT_SIZE_M,
    DEFAULT_STEP_M,
    DEFAULT_TIMEOUT_S,
    MAX_OUTPUT_PIXELS,
    OUTPUT_MODES,
    TRAVERSALS,
    ErrorMessages,
    OutputMode,
    Traversal,
)


def scaled_dimension(value: int, scale: float) -> int:
    """Size of one axis after scaling, never below one pixel."""
    return max(1, int(round(value * scale)))


class RunConfig(BaseModel):
    """Validated configuration consumed by the acquisition/rendering core."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    center_x: int = Field(..., description="GK4 easting of the grid center")
    center_y: int = Field(..., description="GK4 northing of the grid center")
    size_x: int = Field(DEFAULT_SIZE_M, gt=0, description="Half-extent east-west in metres")
    size_y: int = Field(DEFAULT_SIZE_M, gt=0, description="Half-extent north-south in metres")
    step_m: int = Field(DEFAULT_STEP_M, gt=0, description="Grid spacing in metres")
    scale: float = Field(
        DEFAULT_SCALE, gt=0, allow_inf_nan=False, description="Post-processing scale factor"
    )
    mode: str = Field(OutputMode.IMAGE, description="image, raw, or topographic")
    topo_line_spacing: float | None = Field(
        None,
        gt=0,
        allow_inf_nan=False,
        description="Contour line spacing in metres (topographic only)",
    )
    traversal: str = Field(Traversal.BOUSTROPHEDON, description="boustrophedon or per-column")
    output_path: str | None = Field(None, description="Output file (raw may use stdout)")
    verbose: bool = Field(False, description="Print underlying errors of failed batches")
    service_url: str = Field(DEFAULT_SERVICE_URL, description="Profile endpoint URL")
    batch_size: int = Field(DEFAULT_BATCH_SIZE, gt=0, description="Max points per request")
    timeout_s: float = Field(
        DEFAULT_TIMEOUT_S, gt=0, allow_inf_nan=False, description="HTTP timeout in seconds"
    )

    @model_validator(mode="after")
    def _check_combinations(self) -> "RunConfig":
        if self.mode not in OUTPUT_MODES:
            raise ValueError(ErrorMessages.UNKNOWN_MODE.format(self.mode, ", ".join(OUTPUT_MODES)))
        if self.traversal not in TRAVERSALS:
            raise ValueError(
                ErrorMessages.UNKNOWN_TRAVERSAL.format(self.traversal, ", ".join(TRAVERSALS))
            )

        if self.mode == OutputMode.RAW and self.topo_line_spacing is not None:
            raise ValueError(ErrorMessages.RAW_WITH_TOPO)
        if self.mode == OutputMode.TOPOGRAPHIC and self.topo_line_spacing is None:
            raise ValueError(ErrorMessages.TOPO_SPACING_REQUIRED)
        if self.mode == OutputMode.IMAGE and self.topo_line_spacing is not None:
            raise ValueError(
                ErrorMessages.SPACING_WITHOUT_TOPO.format(self.topo_line_spacing, self.mode)
            )
        if self.mode != OutputMode.RAW and not self.output_path:
            raise ValueError(ErrorMessages.OUTPUT_REQUIRED)

        if self.grid_width < 1 or self.grid_height < 1:
            raise ValueError(
                ErrorMessages.EMPTY_GRID.format(
                    self.size_x, self.size_y, self.step_m, self.grid_width, self.grid_height
                )
            )

        # Checked in floats so absurd scales never reach int conversion.
        pixels = self.grid_width * self.scale * self.grid_height * self.scale
        if self.scale > 1 and pixels > MAX_OUTPUT_PIXELS:
            raise ValueError(ErrorMessages.OUTPUT_TOO_LARGE.format(self.scale, MAX_OUTPUT_PIXELS))
        return self

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def grid_width(self) -> int:
        return self.size_x * 2 // self.step_m

    @property
    def grid_height(self) -> int:
        return self.size_y * 2 // self.step_m

    @property
    def output_width(self) -> int:
        return scaled_dimension(self.grid_width, self.scale)

    @property
    def output_height(self) -> int:
        return scaled_dimension(self.grid_height, self.scale)

    @property
    def units_per_pixel(self) -> float:
        return self.step_m / self.scale

    def describe_output(self) -> str:
        """Human-readable description of the requested output kind."""
        if self.mode == OutputMode.RAW:
            return "a list of raw height values"
        if self.mode == OutputMode.TOPOGRAPHIC:
            return f"a topographical map with steps of {self.topo_line_spacing:g}"
        return "an image"
