"""
Report models for bayernatlas-heightmapper runs.

Plans and summaries are Pydantic models so the CLI can print them either as
operator-facing text or as JSON for scripts.
"""

from pydantic import BaseModel, ConfigDict, Field


def format_response(model: BaseModel, output_mode: str = "json") -> str:
    """Format a report model as JSON or human-readable text.

    Args:
        model: Pydantic report model instance
        output_mode: "json" (default) or "text"

    Returns:
        Formatted string
    """
    if output_mode == "text" and hasattr(model, "to_text"):
        return str(model.to_text())
    return str(model.model_dump_json())


class ErrorResponse(BaseModel):
    """Error report for a failed or rejected run."""

    model_config = ConfigDict(extra="forbid")

    error: str = Field(..., description="Error message describing what went wrong")

    def to_text(self) -> str:
        return f"Error: {self.error}"


class PlanResponse(BaseModel):
    """What a run is about to do, printed before any request is sent."""

    model_config = ConfigDict(extra="forbid")

    traversal: str = Field(..., description="Request traversal (boustrophedon or per-column)")
    output: str = Field(..., description="Output destination, or stdout")
    output_kind: str = Field(..., description="Description of the output")
    size: list[int] = Field(..., description="Half-extent [x, y] in metres")
    scale: float = Field(..., description="Post-processing scale factor", gt=0)
    step_m: int = Field(..., description="Metres per height point", gt=0)
    grid: list[int] = Field(..., description="Grid dimensions [width, height]")
    batch_count: int = Field(..., description="Number of requests to send", ge=0)

    def to_text(self) -> str:
        algorithm = "simple" if self.traversal == "per-column" else "complex"
        lines = [
            f"Using {algorithm} request algorithm",
            f"Output will be saved to {self.output}",
            f"Output is {self.output_kind}",
            f"Size: {self.size[0]}, {self.size[1]}",
            f"Additional scaling afterwards: {self.scale:g}",
            f"Units per height-point: {self.step_m}",
            f"Grid: {self.grid[0]}x{self.grid[1]} points in {self.batch_count} requests",
        ]
        return "\n".join(lines)


class RunSummary(BaseModel):
    """Final parameters of a run; dry runs report the same fields."""

    model_config = ConfigDict(extra="forbid")

    min_height_m: float | None = Field(None, description="Lowest valid height in metres")
    max_height_m: float | None = Field(None, description="Highest valid height in metres")
    size_x: int = Field(..., description="Half-extent east-west in metres")
    size_y: int = Field(..., description="Half-extent north-south in metres")
    center_x: int = Field(..., description="GK4 easting of the center")
    center_y: int = Field(..., description="GK4 northing of the center")
    units_per_pixel: float = Field(..., description="Metres per output pixel")
    grid_size: list[int] = Field(..., description="Sample grid [width, height]")
    image_size: list[int] = Field(..., description="Final output [width, height] in pixels")
    batch_count: int = Field(..., description="Requests sent (or planned)", ge=0)
    failed_batches: int = Field(0, description="Requests that returned no usable data", ge=0)
    nodata_cells: int | None = Field(None, description="Cells at or below the no-data threshold")
    output: str = Field(..., description="Output destination, or stdout")
    dry_run: bool = Field(False, description="True when nothing was downloaded")

    def to_text(self) -> str:
        def height(value: float | None) -> str:
            return "n/a" if value is None else f"{value:g}"

        lines = [
            "Final Parameters:",
            f"Minimum Height: {height(self.min_height_m)}",
            f"Maximum Height: {height(self.max_height_m)}",
            f"Size-X: {self.size_x}",
            f"Size-Y: {self.size_y}",
            f"Center-X: {self.center_x}",
            f"Center-Y: {self.center_y}",
            f"Units per pixel: {self.units_per_pixel:g}",
            f"Grid size: {self.grid_size[0]}x{self.grid_size[1]} points",
            f"Final image size: {self.image_size[0]}x{self.image_size[1]} pixels",
            f"Batches: {self.batch_count} ({self.failed_batches} failed)",
            f"No-data cells: {'n/a' if self.nodata_cells is None else self.nodata_cells}",
            f"Output: {self.output}",
            f"Dry run: {'yes' if self.dry_run else 'no'}",
        ]
        return "\n".join(lines)
