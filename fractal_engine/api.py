"""
Main API classes for fractal generation.

This module provides the high-level interface: a single-request render
entrypoint, a renderer that also writes the finished bitmap, and a batch
renderer that isolates failures per request.
"""

import numpy as np
from typing import Optional, Dict, Any, List, Mapping, Callable
from dataclasses import dataclass
from pathlib import Path
import logging
import time

from . import __version__
from .core.exceptions import FractalError, InvalidParameterError, UnknownVariantError
from .core.fractal_types import FractalRequest, FractalRegistry
from .core.pixel_grid import PixelGrid
from .rendering.image_output import ImageExporter, RenderMetadata, output_filename
from .acceleration.multiprocessing import MultiprocessingAccelerator, RequestResult

logger = logging.getLogger(__name__)


def make_rng(seed: Optional[int]) -> np.random.Generator:
    """
    Create the private random source for one request.

    None draws fresh OS entropy. Negative seeds are folded into the unsigned
    64-bit range, so distinct 64-bit seeds stay distinct.
    """
    if seed is None:
        return np.random.default_rng()
    return np.random.default_rng(int(seed) % (1 << 64))


def render_request(request: FractalRequest, seeded: bool = True) -> PixelGrid:
    """
    Render one request into a finished, read-only PixelGrid.

    Args:
        request: Render description
        seeded: Seed the stochastic variants from request.seed; when False
            their output is not reproducible

    Raises:
        InvalidParameterError: The request cannot be rendered
    """
    rng = make_rng(request.seed if seeded else None)
    grid = FractalRegistry.generate(request, rng)
    return grid.freeze()


@dataclass
class RenderConfig:
    """Configuration for rendering and writing images."""

    output_dir: Path = Path('.')
    image_format: str = 'bmp'

    # Thread each request's Seed into its random source
    seeded: bool = True

    # Worker processes for batches; None picks one per spare core
    processes: Optional[int] = 1

    save_metadata: bool = False

    def validate(self):
        """Validate configuration parameters."""
        try:
            self.output_dir = Path(self.output_dir)
        except TypeError:
            raise InvalidParameterError(f"Invalid output directory {self.output_dir!r}") from None

        if not isinstance(self.image_format, str):
            raise InvalidParameterError(f"Unsupported image format {self.image_format!r}")
        self.image_format = self.image_format.lower().lstrip('.')

        if self.image_format not in ('bmp', 'png', 'tiff', 'tif'):
            raise InvalidParameterError(f"Unsupported image format '{self.image_format}'")

        if self.processes is not None:
            # Config files may carry the count as a string
            try:
                self.processes = int(self.processes)
            except (TypeError, ValueError):
                raise InvalidParameterError(
                    f"processes must be an integer, got {self.processes!r}") from None
            if self.processes < 1:
                raise InvalidParameterError("processes must be >= 1")


class FractalRenderer:
    """Renders requests and writes them to the image sink."""

    def __init__(self, config: Optional[RenderConfig] = None):
        """
        Initialize fractal renderer.

        Args:
            config: Rendering configuration (uses defaults if None)
        """
        self.config = config or RenderConfig()
        self.config.validate()
        self.image_exporter = ImageExporter()

    def render(self, request: FractalRequest) -> PixelGrid:
        """
        Render a request to a pixel grid.

        Args:
            request: Render description

        Returns:
            Finished, read-only PixelGrid
        """
        start_time = time.time()
        logger.info(f"Starting render {request.request_id}: {request.variant.slug} "
                    f"{request.width}x{request.height}")

        grid = render_request(request, seeded=self.config.seeded)

        logger.info(f"Render {request.request_id} complete: {time.time() - start_time:.2f}s")
        return grid

    def output_path(self, request: FractalRequest) -> Path:
        suffix = f".{self.config.image_format}"
        return self.config.output_dir / output_filename(request.request_id, request.seed, suffix)

    def save(self, grid: PixelGrid, request: FractalRequest, render_time: float = 0.0,
             output_path: Optional[Path] = None) -> Path:
        """
        Write a finished grid to disk.

        Raises:
            OSError: The image could not be written
        """
        output_path = Path(output_path) if output_path else self.output_path(request)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        metadata = None
        if self.config.save_metadata:
            metadata = RenderMetadata(
                fractal_type=request.variant.slug,
                resolution=(request.width, request.height),
                max_iterations=request.resolved_iterations(),
                seed=request.seed,
                seeded=self.config.seeded,
                render_time_seconds=render_time,
                software_version=__version__,
                fractal_parameters=request.to_dict(),
            )

        return self.image_exporter.save_grid(grid, output_path, metadata)

    def render_to_file(self, request: FractalRequest, output_path: Optional[Path] = None) -> Path:
        """Render a request and save it; returns the written path."""
        start_time = time.time()
        grid = self.render(request)
        return self.save(grid, request, time.time() - start_time, output_path)


class BatchRenderer:
    """Batch rendering of configuration records with per-job isolation."""

    def __init__(self, config: Optional[RenderConfig] = None):
        """Initialize batch renderer."""
        self.config = config or RenderConfig()
        self.renderer = FractalRenderer(self.config)
        self.jobs: List[Dict[str, Any]] = []
        self.results: List[Dict[str, Any]] = []

    def add_request(self, request: FractalRequest, job_name: Optional[str] = None):
        """Add an already-built request to the batch."""
        self.jobs.append({
            'job_name': job_name or f"fractal_{request.request_id}",
            'request': request,
            'status': 'pending',
            'error': None,
        })

    def add_record(self, record: Mapping[str, Any]):
        """
        Add a configuration record to the batch.

        The record's position becomes its request id. A record naming an
        unknown variant is kept as a skipped job; other invalid values make a
        failed job. Neither stops the rest of the batch.
        """
        request_id = len(self.jobs)
        job_name = f"fractal_{request_id}"

        try:
            request = FractalRequest.from_record(record, request_id=request_id)
        except UnknownVariantError as e:
            logger.warning(f"Skipping {job_name}: {e}")
            self.jobs.append({'job_name': job_name, 'request': None,
                              'status': 'skipped', 'error': e})
            return
        except InvalidParameterError as e:
            logger.error(f"Invalid record for {job_name}: {e}")
            self.jobs.append({'job_name': job_name, 'request': None,
                              'status': 'failed', 'error': e})
            return

        self.add_request(request, job_name)

    def run_batch(self, progress_callback: Optional[Callable[[int, int, Dict[str, Any]], None]] = None
                  ) -> List[Dict[str, Any]]:
        """
        Execute all pending jobs in the batch.

        Args:
            progress_callback: Optional callback called as (completed, total, result)

        Returns:
            List of job results, one per job in insertion order
        """
        pending = [job for job in self.jobs if job['status'] == 'pending']
        total = len(self.jobs)

        # Keyed by id() of the job dict; results come back in request order
        rendered: Dict[int, RequestResult] = {}
        if pending and self.config.processes != 1:
            accelerator = MultiprocessingAccelerator(self.config.processes)
            parallel_results = accelerator.render_requests([job['request'] for job in pending],
                                                           seeded=self.config.seeded)
            rendered = {id(job): result for job, result in zip(pending, parallel_results)}

        results = []
        for i, job in enumerate(self.jobs):
            if job['status'] == 'pending':
                logger.info(f"Processing job {i+1}/{total}: {job['job_name']}")
                result = self._run_job(job, rendered.get(id(job)))
            else:
                result = {
                    'job_name': job['job_name'],
                    'status': job['status'],
                    'error': str(job['error']),
                }

            results.append(result)
            if progress_callback:
                progress_callback(i + 1, total, result)

        self.results = results
        return results

    def _run_job(self, job: Dict[str, Any], precomputed: Optional[RequestResult]) -> Dict[str, Any]:
        request = job['request']
        if precomputed is not None and precomputed.error is not None:
            return self._fail_job(job, precomputed.error)

        try:
            start_time = time.time()
            if precomputed is not None:
                grid = precomputed.grid
                render_time = precomputed.processing_time
            else:
                grid = self.renderer.render(request)
                render_time = time.time() - start_time

            output_path = self.renderer.save(grid, request, render_time)

            job['status'] = 'completed'
            return {
                'job_name': job['job_name'],
                'status': 'completed',
                'render_time': render_time,
                'output_path': str(output_path),
                'request': request.to_dict(),
            }

        except (FractalError, OSError) as e:
            return self._fail_job(job, e)

    def _fail_job(self, job: Dict[str, Any], error: BaseException) -> Dict[str, Any]:
        logger.error(f"Job {job['job_name']} failed: {error}")
        job['status'] = 'failed'
        job['error'] = error
        return {
            'job_name': job['job_name'],
            'status': 'failed',
            'error': str(error),
        }

    def get_summary(self) -> Dict[str, Any]:
        """Get batch processing summary."""
        if not self.results:
            return {'status': 'not_run'}

        completed = sum(1 for r in self.results if r['status'] == 'completed')
        failed = sum(1 for r in self.results if r['status'] == 'failed')
        skipped = sum(1 for r in self.results if r['status'] == 'skipped')
        total_time = sum(r.get('render_time', 0) for r in self.results)

        return {
            'total_jobs': len(self.results),
            'completed': completed,
            'failed': failed,
            'skipped': skipped,
            'success_rate': completed / len(self.results),
            'total_render_time': total_time,
            'average_render_time': total_time / completed if completed > 0 else 0
        }
