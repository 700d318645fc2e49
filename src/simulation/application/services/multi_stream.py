"""
Manager for the concurrently running stream slots.
"""
import asyncio
import random
import time
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, List, Optional, Tuple

from ..gate import InitializationGate, DEFAULT_GATE_DELAY_SECONDS
from ..lifecycle import StreamLifecycleManager
from ..session import SessionSnapshotProducer
from ..simulator import DetectionSimulator
from ...domain.entities import AggregateSnapshot, GateState, SlotStatus, TickSnapshot
from ...domain.protocols import SnapshotListener
from ...infrastructure.broadcast.realtime_broadcaster import RealtimeBroadcaster
from ...infrastructure.sources import SourceStager, create_source
from ...presentation.visualization.overlay_renderer import OverlayRenderer, SlotOverlay
from ....common.exceptions import MissingModelProfile
from ....common.logging import setup_logger
from ....common.metrics import MetricsCollector
from ....common.schemas import InferenceSettings, SessionSnapshot

logger = setup_logger(__name__)


@dataclass
class SlotRuntime:
    index: int
    gate: InitializationGate
    overlay: SlotOverlay
    generation: int = 0
    simulator: Optional[DetectionSimulator] = None
    task: Optional[asyncio.Task] = None
    metrics: Optional[MetricsCollector] = None
    latest: Optional[TickSnapshot] = None
    listeners: List[SnapshotListener] = field(default_factory=list)


class MultiStreamManager:
    """
    Coordinates the slots of the dashboard.
    Each open slot runs its own simulator task on the event loop; nothing is
    shared between slots except the settings they read.
    """

    def __init__(
        self,
        catalog,
        settings: InferenceSettings,
        lifecycle: Optional[StreamLifecycleManager] = None,
        broadcaster: Optional[RealtimeBroadcaster] = None,
        session_producer: Optional[SessionSnapshotProducer] = None,
        stager: Optional[SourceStager] = None,
        gate_delay_seconds: float = DEFAULT_GATE_DELAY_SECONDS,
        viewport_size: Tuple[int, int] = (640, 360),
        rng_factory: Optional[Callable[[int], random.Random]] = None,
        clock=time.time
    ):
        self.catalog = catalog
        self.settings = settings
        self.lifecycle = lifecycle or StreamLifecycleManager()
        self.broadcaster = broadcaster
        self.session_producer = session_producer or SessionSnapshotProducer(clock=clock)
        self.stager = stager or SourceStager()
        self._rng_factory = rng_factory or (lambda index: random.Random())
        self._clock = clock

        self.renderer = OverlayRenderer(theme_provider=lambda: self.settings.theme)
        self.runtimes: List[SlotRuntime] = []
        for index in range(self.lifecycle.capacity):
            gate = InitializationGate(
                index,
                delay_seconds=gate_delay_seconds,
                on_open=partial(self._on_gate_open, index),
                on_close=partial(self._on_gate_close, index)
            )
            self.runtimes.append(SlotRuntime(
                index=index,
                gate=gate,
                overlay=SlotOverlay(self.renderer, size=viewport_size)
            ))

        if settings.model_name not in catalog:
            logger.warning(f"Selected model '{settings.model_name}' is not in the catalog")

    # --- Stream control ---------------------------------------------------

    async def start_stream(self, reference: Optional[str] = None) -> int:
        """
        Binds a source to the first empty slot and starts its gate.
        Without reference the staged input (typed URL or upload) is used.
        """
        if reference is None:
            source = self.stager.peek(create_source)
        else:
            source = create_source(reference)

        index = self.lifecycle.assign(source)
        if reference is None:
            self.stager.mark_bound(source)

        runtime = self.runtimes[index]
        slot = self.lifecycle.get(index)
        runtime.generation = slot.generation
        runtime.metrics = MetricsCollector(clock=self._clock)
        runtime.latest = None
        runtime.gate.set_inferencing(slot.is_inferencing)
        return index

    async def stop_stream(self, index: int) -> bool:
        """Stops a slot. Returns False when it was already empty."""
        if not self.lifecycle.stop(index):
            return False
        await self._teardown(index)
        return True

    async def stop_all_streams(self, confirm: Callable[[], bool]) -> int:
        """Stops every slot after confirm() agrees. Returns the number stopped."""
        occupied = [slot.index for slot in self.lifecycle.active_slots()]
        stopped = self.lifecycle.stop_all(confirm)
        if stopped:
            for index in occupied:
                await self._teardown(index)
        return stopped

    async def shutdown(self):
        """Stops every slot without confirmation and clears the staged input."""
        for slot in self.lifecycle.active_slots():
            await self.stop_stream(slot.index)
        self.stager.clear()

    # --- Settings ---------------------------------------------------------

    async def set_model(self, name: str):
        self.settings.model_name = name
        if name not in self.catalog:
            logger.warning(f"Model '{name}' is not in the catalog, ticks will be skipped")
        for runtime in self.runtimes:
            if runtime.simulator is not None:
                runtime.simulator.reconfigure(model_name=name)
                await self._rearm(runtime)

    async def set_skip_frames(self, skip_frames: int):
        self.settings.skip_frames = skip_frames
        for runtime in self.runtimes:
            if runtime.simulator is not None:
                runtime.simulator.reconfigure(skip_frames=skip_frames)
                await self._rearm(runtime)

    def set_confidence_threshold(self, value: int):
        # Stored for the readout only, the simulation ignores it
        self.settings.confidence_threshold = value

    def set_image_size(self, pixels: int):
        # Stored for the readout only, the simulation ignores it
        self.settings.image_size = pixels

    def set_theme(self, theme: str):
        self.settings.theme = theme
        for runtime in self.runtimes:
            runtime.overlay.repaint()

    def resize_viewport(self, index: int, width: int, height: int):
        self._runtime(index).overlay.resize(width, height)

    def add_listener(self, index: int, listener: SnapshotListener):
        self._runtime(index).listeners.append(listener)

    # --- Outputs ----------------------------------------------------------

    def gate_state(self, index: int) -> GateState:
        return self._runtime(index).gate.state

    def latest_snapshot(self, index: int) -> Optional[TickSnapshot]:
        return self._runtime(index).latest

    def aggregate(self, index: int) -> AggregateSnapshot:
        snapshot = self.latest_snapshot(index)
        return snapshot.aggregate if snapshot is not None else AggregateSnapshot.empty()

    def overlay(self, index: int) -> SlotOverlay:
        return self._runtime(index).overlay

    def get_status(self) -> List[SlotStatus]:
        statuses = []
        for slot in self.lifecycle.slots:
            runtime = self.runtimes[slot.index]
            statuses.append(SlotStatus(
                index=slot.index,
                source=slot.source.reference if slot.source else None,
                label=slot.source.label if slot.source else None,
                is_inferencing=slot.is_inferencing,
                gate=runtime.gate.state,
                generation=slot.generation,
                aggregate=self.aggregate(slot.index)
            ))
        return statuses

    def save_session(self, session_name: Optional[str]) -> Optional[SessionSnapshot]:
        metrics = {
            runtime.index: runtime.metrics.get_metrics()
            for runtime in self.runtimes
            if runtime.metrics is not None
        }
        return self.session_producer.save(
            self.lifecycle.active_slots(), self.settings.model_name, session_name, metrics
        )

    # --- Internals --------------------------------------------------------

    def _runtime(self, index: int) -> SlotRuntime:
        self.lifecycle.get(index)  # raises InvalidSlot
        return self.runtimes[index]

    def _on_gate_open(self, index: int):
        runtime = self.runtimes[index]
        slot = self.lifecycle.get(index)
        if slot.is_empty or not slot.is_inferencing or slot.generation != runtime.generation:
            return

        # Fresh track set for every activation
        runtime.simulator = DetectionSimulator(
            index,
            self.catalog,
            self.settings.model_name,
            skip_frames=self.settings.skip_frames,
            generation=slot.generation,
            rng=self._rng_factory(index),
            clock=self._clock
        )
        runtime.overlay.update(None, visible=True)
        self._arm(runtime)

    def _on_gate_close(self, index: int):
        runtime = self.runtimes[index]
        self._disarm(runtime)
        runtime.simulator = None
        runtime.overlay.clear()

    def _arm(self, runtime: SlotRuntime):
        self._disarm(runtime)
        simulator = runtime.simulator
        if simulator is None:
            return
        try:
            interval = simulator.interval_seconds()
        except MissingModelProfile as e:
            logger.warning(f"Slot {runtime.index}: simulation paused, {e}")
            return

        runtime.task = asyncio.create_task(
            self._run_slot(runtime, runtime.generation, simulator, interval),
            name=f"slot-{runtime.index}-simulator"
        )
        logger.info(f"Slot {runtime.index}: ticking every {interval * 1000:.0f}ms")

    async def _rearm(self, runtime: SlotRuntime):
        await self._wait_cancelled(self._disarm(runtime))
        self._arm(runtime)

    def _disarm(self, runtime: SlotRuntime) -> Optional[asyncio.Task]:
        task = runtime.task
        runtime.task = None
        if task is not None and not task.done():
            task.cancel()
        return task

    async def _wait_cancelled(self, task: Optional[asyncio.Task]):
        if task is None or task is asyncio.current_task():
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _teardown(self, index: int):
        runtime = self.runtimes[index]
        generation = self.lifecycle.get(index).generation
        runtime.generation = generation
        task = runtime.task
        runtime.gate.set_inferencing(False)
        self._on_gate_close(index)
        await self._wait_cancelled(task)

        # The slot may have been re-bound while the task was winding down
        if self.lifecycle.get(index).generation != generation:
            return
        runtime.metrics = None
        runtime.latest = None
        if self.broadcaster:
            self.broadcaster.clear(index)

    async def _run_slot(self, runtime: SlotRuntime, generation: int, simulator: DetectionSimulator, interval: float):
        """
        Tick loop of one slot. Exits as soon as the slot was re-bound or its simulator replaced.
        """
        try:
            while True:
                await asyncio.sleep(interval)
                if runtime.generation != generation or runtime.simulator is not simulator:
                    return
                self._tick(runtime, simulator)
        except Exception as e:
            logger.error(f"Slot {runtime.index} simulation failed: {e}", exc_info=True)

    def _tick(self, runtime: SlotRuntime, simulator: DetectionSimulator):
        start = time.perf_counter()
        snapshot = simulator.tick()
        if snapshot is None:
            return
        duration_ms = (time.perf_counter() - start) * 1000

        runtime.latest = snapshot
        if runtime.metrics is not None:
            runtime.metrics.record_tick(duration_ms, snapshot.aggregate.fps)
            runtime.metrics.record_spawns(simulator.last_spawned)

        runtime.overlay.update(snapshot, visible=runtime.gate.is_open)

        if self.broadcaster:
            self.broadcaster.publish(runtime.index, self.broadcaster.serialize_snapshot(snapshot))
        for listener in runtime.listeners:
            listener(snapshot)
