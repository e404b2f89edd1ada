# amazonia_esn/parallel.py
import logging
import os
from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import Callable, List, Sequence

logger = logging.getLogger(__name__)


def resolve_n_jobs(n_jobs: int) -> int:
    if n_jobs is None or n_jobs == 0:
        return 1
    if n_jobs < 0:
        return max(1, (os.cpu_count() or 1) + 1 + n_jobs)
    return n_jobs


def map_tasks(fn: Callable, tasks: Sequence[tuple], n_jobs: int = 1) -> List:
    """Run fn(*task) for every task and return results in task order.

    With more than one job the tasks run in a process pool; fn and its
    arguments must be picklable. Results are only returned once every task
    has finished.
    """
    n_workers = min(resolve_n_jobs(n_jobs), max(1, len(tasks)))
    if n_workers == 1:
        return [fn(*task) for task in tasks]

    logger.info("Running %d tasks on %d workers", len(tasks), n_workers)
    results = [None] * len(tasks)
    with ProcessPoolExecutor(max_workers=n_workers) as executor:
        futures = {executor.submit(fn, *task): i for i, task in enumerate(tasks)}
        for future in as_completed(futures):
            results[futures[future]] = future.result()
    return results
