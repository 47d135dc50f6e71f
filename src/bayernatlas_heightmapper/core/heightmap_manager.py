"""
Heightmap Manager -- central orchestrator for a heightmap run.

Owns the sequential batch loop, the height grid, rendering, and output
writing. All public async methods wrap synchronous network and image work
via asyncio.to_thread(), awaiting one call at a time: batch N+1 is not built
before batch N has been written into the grid.
"""

import asyncio
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, TextIO

import requests

from ..constants import ErrorMessages, SuccessMessages
from ..models.config import RunConfig
from ..models.responses import PlanResponse, RunSummary
from .batching import (
    Batch,
    build_batches,
    build_request,
    count_batches,
    reconcile,
    try_parse_response,
)
from .grid import HeightGrid
from .profile_client import ProfileClient
from .renderers import RenderedOutput, get_renderer

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


@dataclass
class FetchResult:
    """Result of downloading a full height grid."""

    grid: HeightGrid
    batch_count: int
    failed_batches: list[int] = field(default_factory=list)
    cells_written: int = 0


@dataclass
class RunResult:
    """Result of a complete run."""

    summary: RunSummary
    output: RenderedOutput | None


class HeightmapManager:
    """Central manager for heightmap acquisition and rendering."""

    def __init__(
        self,
        client: ProfileClient | None = None,
        progress_callback: ProgressCallback | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        self.client = client
        self.progress_callback = progress_callback
        self.stdout = stdout

    # ------------------------------------------------------------------
    # Planning (sync, no I/O)
    # ------------------------------------------------------------------

    def plan(self, config: RunConfig) -> PlanResponse:
        """Describe the run without sending anything."""
        return PlanResponse(
            traversal=config.traversal,
            output=config.output_path or "stdout",
            output_kind=config.describe_output(),
            size=[config.size_x, config.size_y],
            scale=config.scale,
            step_m=config.step_m,
            grid=[config.grid_width, config.grid_height],
            batch_count=count_batches(
                config.grid_width, config.grid_height, config.traversal, config.batch_size
            ),
        )

    def make_batches(self, config: RunConfig) -> list[Batch]:
        return build_batches(
            config.grid_width,
            config.grid_height,
            config.traversal,
            config.batch_size,
            center=(config.center_x, config.center_y),
            half_extent=(config.size_x, config.size_y),
            step=config.step_m,
        )

    # ------------------------------------------------------------------
    # Download (async)
    # ------------------------------------------------------------------

    async def fetch_grid(self, config: RunConfig) -> FetchResult:
        """Request every batch in order and reconcile it into a new grid."""
        grid = HeightGrid(config.grid_width, config.grid_height)
        batches = self.make_batches(config)
        total = len(batches)

        client = self.client or ProfileClient(config.service_url, config.timeout_s)
        result = FetchResult(grid=grid, batch_count=total)
        try:
            for batch in batches:
                altitudes = await self._fetch_batch(client, batch, total, config.verbose)
                if altitudes is None:
                    result.failed_batches.append(batch.number)
                else:
                    result.cells_written += grid.apply(reconcile(batch, altitudes))

                self._report_progress(batch.number, total, config.traversal)
        finally:
            if self.client is None:
                client.close()

        logger.info(SuccessMessages.FETCH_COMPLETE.format(total, len(result.failed_batches)))
        return result

    async def _fetch_batch(
        self,
        client: ProfileClient,
        batch: Batch,
        total: int,
        verbose: bool,
    ) -> list[float] | None:
        """Altitudes for one batch, or None when the batch failed."""
        request = build_request(batch)
        try:
            body = await asyncio.to_thread(client.post_request, request)
        except requests.RequestException as e:
            self._warn_batch_failed(batch.number, total, e, verbose)
            return None

        response, error = try_parse_response(body)
        if response is None:
            self._warn_batch_failed(batch.number, total, error, verbose)
            return None

        altitudes = response.altitudes()
        if len(altitudes) != len(batch):
            logger.debug(
                f"Batch {batch.number}: {len(altitudes)} records for {len(batch)} points"
            )
        return altitudes

    def _warn_batch_failed(
        self, number: int, total: int, error: Exception | None, verbose: bool
    ) -> None:
        message = ErrorMessages.BATCH_FAILED.format(number, total)
        if verbose and error is not None:
            message = f"{message}: {error}"
        logger.warning(message)

    def _report_progress(self, number: int, total: int, traversal: str) -> None:
        if self.progress_callback is not None:
            self.progress_callback(number, total, traversal)

    # ------------------------------------------------------------------
    # Rendering & output (async)
    # ------------------------------------------------------------------

    async def render(self, grid: HeightGrid, config: RunConfig) -> RenderedOutput:
        """Render the grid with the renderer registered for the configured mode."""
        renderer = get_renderer(config.mode)
        return await asyncio.to_thread(renderer.render, grid, config)

    async def write_output(self, output: RenderedOutput, path: str | None) -> str:
        """Write the rendered output; text without a path goes to stdout.

        Returns:
            Where the output went
        """
        if path is None:
            if not output.is_text:
                raise ValueError(ErrorMessages.OUTPUT_REQUIRED)
            stream = self.stdout or sys.stdout
            stream.write(output.data.decode("utf-8"))
            stream.flush()
            return "stdout"

        await asyncio.to_thread(Path(path).write_bytes, output.data)
        logger.info(SuccessMessages.SAVED.format(path))
        return path

    async def run(self, config: RunConfig, dry_run: bool = False) -> RunResult:
        """Download, render, and write one heightmap.

        Raises:
            NoValidDataError: if the grayscale path finds no valid heights
        """
        if dry_run:
            summary = self.summarize(config, fetch=None, output=None)
            return RunResult(summary=summary, output=None)

        fetched = await self.fetch_grid(config)
        output = await self.render(fetched.grid, config)
        await self.write_output(output, config.output_path)

        return RunResult(summary=self.summarize(config, fetched, output), output=output)

    def summarize(
        self,
        config: RunConfig,
        fetch: FetchResult | None,
        output: RenderedOutput | None,
    ) -> RunSummary:
        """Final parameters of a run; fields are the same for dry runs."""
        height_range = fetch.grid.try_height_range() if fetch is not None else None
        if output is not None:
            image_size = list(output.size)
        else:
            image_size = [config.output_width, config.output_height]

        return RunSummary(
            min_height_m=height_range[0] if height_range else None,
            max_height_m=height_range[1] if height_range else None,
            size_x=config.size_x,
            size_y=config.size_y,
            center_x=config.center_x,
            center_y=config.center_y,
            units_per_pixel=config.units_per_pixel,
            grid_size=[config.grid_width, config.grid_height],
            image_size=image_size,
            batch_count=(
                fetch.batch_count if fetch is not None else self.plan(config).batch_count
            ),
            failed_batches=len(fetch.failed_batches) if fetch is not None else 0,
            nodata_cells=fetch.grid.nodata_count() if fetch is not None else None,
            output=config.output_path or "stdout",
            dry_run=fetch is None,
        )
