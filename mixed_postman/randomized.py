'''
Randomized covering walks, run on a pool of worker threads.

Every trial wanders from start, picking a uniformly random admissible
edge at each step, until all edges were walked and it stands at end.
Workers share nothing; their candidates are merged after all of them
finished and the lightest walk wins.
'''
import logging
import math
import queue
import random
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Sequence, Tuple

from tqdm import tqdm

from .exceptions import SolveCancelled, SolveExhausted
from .graph import Edge, Path, travel_options

log = logging.getLogger(__name__)

DEFAULT_ITERATIONS = 10000
DEFAULT_WORKERS = 4
DEFAULT_STEPS_PER_EDGE = 1000  # per-trial step cap = this * number of edges
PROGRESS_POLL_SEC = 0.1

ProgressCallback = Callable[[int, float], None]


class RandomizedSolver:
    ''' Best-of-N random covering walks.

    Parameters
    ----------
    max_steps : int, optional
        Steps after which a trial is abandoned
        (default DEFAULT_STEPS_PER_EDGE * number of edges).
    seed : int, optional
        Worker w draws from random.Random(f"{seed}:{w}"); None seeds from
        the operating system.
    stop_event : threading.Event, optional
        Checked between trials; set it to stop early.
    '''

    def __init__(self, start: int, end: int, edges: Sequence[Edge], max_steps: Optional[int] = None,
                 seed: Optional[int] = None, stop_event: Optional[threading.Event] = None):
        self.start, self.end = start, end
        self.edges = list(edges)
        self.seed = seed
        self.stop_event = stop_event
        self.max_steps = max_steps or DEFAULT_STEPS_PER_EDGE * max(1, len(self.edges))
        self._options = travel_options(self.edges)
        self.discarded = 0

    def _stopped(self) -> bool:
        return self.stop_event is not None and self.stop_event.is_set()

    def walk(self, rng: random.Random) -> Optional[Path]:
        '''
        One random covering walk, or None if it dead-ends or exceeds
        max_steps.
        '''
        uncovered = {e.id for e in self.edges}
        current, walked = self.start, []
        while uncovered or current != self.end:
            if len(walked) >= self.max_steps:
                return None
            moves = self._options.get(current)
            if not moves:
                return None
            e, current = rng.choice(moves)
            walked.append(e)
            uncovered.discard(e.id)
        return Path(self.start, tuple(walked))

    def _run_worker(self, worker: int, trials: int, messages: queue.Queue) -> Tuple[List[Path], int]:
        rng = random.Random(None if self.seed is None else f"{self.seed}:{worker}")
        chunk = max(1, trials // 100)
        found, discarded = [], 0
        for i in range(trials):
            if self._stopped():
                log.debug(f"Worker {worker} stopped after {i} trials")
                break
            path = self.walk(rng)
            if path is None:
                discarded += 1
            else:
                found.append(path)
            if (i + 1) % chunk == 0 or i + 1 == trials:
                messages.put((worker, (i + 1) / trials))
        found.sort(key=lambda p: p.weight)
        return found, discarded

    @staticmethod
    def _drain(messages: queue.Queue, on_progress: Optional[ProgressCallback], bars: List[tqdm]):
        while True:
            try:
                worker, fraction = messages.get_nowait()
            except queue.Empty:
                return
            if on_progress is not None:
                on_progress(worker, fraction)
            if bars:
                bars[worker].n = int(round(fraction * 100))
                bars[worker].refresh()

    def solve(self, total_iterations: int, worker_count: int, on_progress: Optional[ProgressCallback] = None,
              show_progress: bool = False) -> List[Path]:
        '''
        Run ceil(total_iterations / worker_count) trials on each of
        worker_count threads. Returns every successful walk, lightest first.
        on_progress(worker, fraction) is called from the calling thread,
        in no particular order across workers.
        '''
        if worker_count < 1:
            raise ValueError("worker_count must be at least 1")
        if total_iterations < 1:
            raise ValueError("total_iterations must be at least 1")
        trials = math.ceil(total_iterations / worker_count)
        messages: queue.Queue = queue.Queue()
        bars = [tqdm(total=100, desc=f"worker {w}", position=w, unit="%", leave=False)
                for w in range(worker_count)] if show_progress else []

        try:
            with ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="postman-walk") as pool:
                futures = [pool.submit(self._run_worker, w, trials, messages) for w in range(worker_count)]
                pending = set(futures)
                while pending:
                    _, pending = wait(pending, timeout=PROGRESS_POLL_SEC)
                    self._drain(messages, on_progress, bars)
            self._drain(messages, on_progress, bars)
        finally:
            for bar in bars:
                bar.close()

        candidates: List[Path] = []
        self.discarded = 0
        for future in futures:
            found, discarded = future.result()
            candidates.extend(found)
            self.discarded += discarded
        candidates.sort(key=lambda p: p.weight)
        if self.discarded:
            log.warning(f"{self.discarded} random trials discarded (dead end or over {self.max_steps} steps)")

        if not candidates:
            if self._stopped():
                raise SolveCancelled("randomized search stopped before finding a covering walk")
            raise SolveExhausted(f"none of {trials * worker_count} random trials covered every edge")
        log.info(f"{len(candidates)} random covering walks, best weight {round(candidates[0].weight, 3)}")
        return candidates


def solve_random(start: int, end: int, edges: Sequence[Edge], total_iterations: int, worker_count: int,
                 on_progress: Optional[ProgressCallback] = None, **options) -> Path:
    '''Lightest of the random covering walks.'''
    return RandomizedSolver(start, end, edges, **options).solve(total_iterations, worker_count, on_progress)[0]
