"""
Multiprocessing backend for batch rendering.

Independent render requests are distributed across worker processes. Each
worker builds its own PixelGrid and random generator; only the finished
grid (or the error) is sent back to the parent.
"""

from typing import List, Optional, Callable, Sequence
import multiprocessing as mp
import logging
import time
from dataclasses import dataclass
from concurrent.futures import ProcessPoolExecutor, as_completed

from ..core.fractal_types import FractalRequest
from ..core.pixel_grid import PixelGrid

logger = logging.getLogger(__name__)


@dataclass
class RequestResult:
    """Result from rendering a single request in a worker."""
    request: FractalRequest
    grid: Optional[PixelGrid]
    error: Optional[BaseException]
    processing_time: float


def process_request(args) -> RequestResult:
    """
    Render one request in a worker process.

    Args:
        args: Tuple of (request, seeded)

    Returns:
        RequestResult carrying either the grid or the raised error
    """
    request, seeded = args
    from ..api import render_request

    start_time = time.time()
    try:
        grid = render_request(request, seeded=seeded)
        return RequestResult(request, grid, None, time.time() - start_time)
    except Exception as e:
        logger.error(f"Error rendering request {request.request_id}: {e}")
        return RequestResult(request, None, e, time.time() - start_time)


class MultiprocessingAccelerator:
    """Process-pool rendering of independent requests."""

    def __init__(self, num_processes: Optional[int] = None):
        """
        Initialize multiprocessing accelerator.

        Args:
            num_processes: Number of worker processes (None for optimal count)
        """
        if num_processes is None:
            self.num_processes = get_optimal_process_count()
        else:
            self.num_processes = max(1, num_processes)

        logger.info(f"Multiprocessing accelerator: {self.num_processes} processes")

    def render_requests(self, requests: Sequence[FractalRequest], seeded: bool = True,
                        progress_callback: Optional[Callable[[int, int, RequestResult], None]] = None
                        ) -> List[RequestResult]:
        """
        Render requests in parallel.

        Args:
            requests: Requests to render
            seeded: Seed each request's random source from its Seed
            progress_callback: Called as (completed, total, result) per finished request

        Returns:
            Results in the same order as requests
        """
        start_time = time.time()
        results: List[Optional[RequestResult]] = [None] * len(requests)

        with ProcessPoolExecutor(max_workers=self.num_processes) as executor:
            future_to_index = {executor.submit(process_request, (request, seeded)): i
                               for i, request in enumerate(requests)}

            completed = 0
            for future in as_completed(future_to_index):
                index = future_to_index[future]
                try:
                    result = future.result()
                except Exception as e:
                    # The worker itself died or the result could not be pickled
                    logger.error(f"Request {requests[index].request_id} failed in worker: {e}")
                    result = RequestResult(requests[index], None, e, 0.0)

                if result.grid is not None:
                    result.grid.freeze()
                results[index] = result
                completed += 1

                if progress_callback:
                    progress_callback(completed, len(requests), result)

        total_time = time.time() - start_time
        total_processing_time = sum(r.processing_time for r in results)
        logger.info(f"Parallel rendering complete: {total_time:.2f}s total, "
                    f"{total_processing_time:.2f}s processing time")

        return results


def get_optimal_process_count() -> int:
    """Get optimal number of processes, leaving one core for the system."""
    return max(1, mp.cpu_count() - 1)
