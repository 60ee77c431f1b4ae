# Mazegen Generator: top-level controller for maze generation passes
#
# Pipeline (one pass): validate config -> clear previous scene -> create groups
# -> carve grid -> plan layout in batches -> build each batch.
# The pass is a cooperative task: it suspends after every carving unwind and
# after every built batch (ground, roof, outer-wall pair, obstacle row, probe).
#
# Public API:
# - MazeGenerator.generate(cancel=None) -> GenerationResult       (synchronous)
# - MazeGenerator.start_generate(on_complete=None, ...) -> GenerationTask (timers)
# - MazeGenerator.generate_steps(cancel=None) -> generator           (custom drivers)
# - MazeGenerator.clear() / set_static(flag) / set_visible(flag)

from __future__ import annotations

import inspect
import logging
import random
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generator, List, Optional

from ..generation.layout_planner import estimate_object_count, plan_layout_batches
from ..generation.scene_builder import SceneBuilder
from ..utils import blender_host
from ..utils.scene_host import DryRunSceneHost, SceneHost
from ..utils.traversability import MazeStats, analyze_grid
from .carver import carve
from .config import MazeConfig, assert_valid_maze_config, config_advisories
from .grid import Grid
from .scheduler import (
    CancellationToken,
    GenerationInProgressError,
    GenerationTask,
    checkpoint,
    run_to_completion,
)

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    request_id: str
    grid: Grid
    stats: MazeStats
    rooms_visited: int
    handle_count: int
    duration_sec: float
    counts: Dict[str, int] = field(default_factory=dict)


def default_host() -> SceneHost:
    """BlenderSceneHost inside Blender, DryRunSceneHost everywhere else."""
    if blender_host.bpy is not None:
        return blender_host.BlenderSceneHost()
    logger.info("bpy unavailable; using dry-run scene host")
    return DryRunSceneHost()


def _new_request_id() -> str:
    return f"gen-{uuid.uuid4().hex[:8]}"


class MazeGenerator:
    """Owns one maze: its config, grid, scene builder and handle set."""

    def __init__(
        self,
        config: Optional[MazeConfig] = None,
        host: Optional[SceneHost] = None,
        rng: Optional[random.Random] = None,
        parent: Any = None,
    ) -> None:
        self.config = config or MazeConfig()
        self.host = host if host is not None else default_host()
        self.parent = parent
        self.grid: Optional[Grid] = None
        self.builder: Optional[SceneBuilder] = None
        self.last_result: Optional[GenerationResult] = None
        self._rng = rng
        self._lock = threading.Lock()
        self._steps: Optional[Generator[str, None, GenerationResult]] = None

    @property
    def handles(self) -> List[Any]:
        return list(self.builder.handles) if self.builder is not None else []

    @property
    def running(self) -> bool:
        # a pass generator counts as running until it is exhausted or closed
        steps = self._steps
        return steps is not None and inspect.getgeneratorstate(steps) != inspect.GEN_CLOSED

    # --------------------------
    # Generation
    # --------------------------
    def generate_steps(
        self, cancel: Optional[CancellationToken] = None, request_id: Optional[str] = None
    ) -> Generator[str, None, GenerationResult]:
        """Validate now, then return the pass as a generator of phase labels.

        Raises ConfigError immediately (before any scene mutation) and
        GenerationInProgressError if another pass is running.
        """
        req = request_id or _new_request_id()
        assert_valid_maze_config(self.config)
        with self._lock:
            if self.running:
                raise GenerationInProgressError(f"[{req}] A maze generation pass is already running")
            self._steps = self._run_pass(req, cancel)
            return self._steps

    def generate(self, cancel: Optional[CancellationToken] = None) -> GenerationResult:
        return run_to_completion(self.generate_steps(cancel))

    def start_generate(
        self,
        on_complete: Optional[Callable[[GenerationTask], None]] = None,
        cancel: Optional[CancellationToken] = None,
        steps_per_tick: int = 32,
        interval_sec: float = 0.0,
    ) -> GenerationTask:
        """Run the pass from bpy.app.timers; returns the started task."""
        req = _new_request_id()
        token = cancel or CancellationToken()
        steps = self.generate_steps(token, request_id=req)
        task = GenerationTask(
            steps, req, on_complete=on_complete, cancel=token,
            steps_per_tick=steps_per_tick, interval_sec=interval_sec,
        )
        return task.start()

    def _run_pass(self, req: str, cancel: Optional[CancellationToken]) -> Generator[str, None, GenerationResult]:
        start_ts = time.perf_counter()
        cfg = self.config
        try:
            checkpoint(cancel)
            for note in config_advisories(cfg):
                logger.warning(f"[{req}] {note}")
            logger.info(
                f"[{req}] Generating {cfg.width}x{cfg.depth} maze "
                f"(seed={cfg.seed}, up to {estimate_object_count(cfg.width, cfg.depth)} wall objects)"
            )

            self._clear_scene()
            rng = self._rng if self._rng is not None else random.Random(cfg.seed)
            builder = SceneBuilder(self.host, cfg, request_id=req)
            self.builder = builder
            builder.begin(self.parent)
            grid = Grid.create(cfg.width, cfg.depth)
            self.grid = grid
            yield "init"
            checkpoint(cancel)

            carving = carve(grid, rng, cancel)
            while True:
                try:
                    next(carving)
                except StopIteration as stop:
                    rooms = stop.value
                    break
                yield "carve"
            logger.debug(f"[{req}] Carving done: {rooms} room(s)\n{grid.to_ascii()}")

            for batch in plan_layout_batches(grid, cfg, rng):
                builder.apply_batch(batch)
                yield batch[0].kind.value if batch else "obstacles"
                checkpoint(cancel)

            stats = analyze_grid(grid)
            dur = time.perf_counter() - start_ts
            result = GenerationResult(
                request_id=req,
                grid=grid,
                stats=stats,
                rooms_visited=rooms,
                handle_count=len(builder.handles),
                duration_sec=dur,
                counts={kind.value: n for kind, n in builder.counts.items()},
            )
            self.last_result = result
            logger.info(
                f"[{req}] Maze generated in {dur:.3f}s: {result.handle_count} handle(s), "
                f"open={stats.open_cells} walls={stats.wall_cells} perfect={stats.is_perfect}"
            )
            return result
        finally:
            self._steps = None

    # --------------------------
    # Bulk operations on the generated scene
    # --------------------------
    def _clear_scene(self) -> int:
        if self.builder is None:
            return 0
        removed = self.builder.clear()
        self.builder = None
        return removed

    def clear(self) -> int:
        """Destroy everything generated so far. A second call is a no-op."""
        if self.running:
            raise GenerationInProgressError("Cannot clear while a maze generation pass is running")
        return self._clear_scene()

    def set_static(self, flag: bool = True) -> int:
        return self.builder.set_static(flag) if self.builder is not None else 0

    def set_visible(self, flag: bool) -> int:
        return self.builder.set_visible(flag) if self.builder is not None else 0
