"""
Simulated detection and tracking engine for a single slot.

No inference runs here. Each tick evolves a private track set so that
per-class counts drift around slot-specific baselines, with the amount of
noise driven by the accuracy of the selected model.
"""
import itertools
import math
import random
import time
from dataclasses import replace
from typing import Dict, List, Optional

from ..domain.entities import (
    VEHICLE_TYPES, LARGE_VEHICLE_TYPES, TrackedObject, AggregateSnapshot, TickSnapshot
)
from ...common.exceptions import MissingModelProfile
from ...common.logging import setup_logger, log_execution_time
from ...common.schemas import ModelProfile

logger = setup_logger(__name__)

MIN_JITTER_CONFIDENCE = 0.4
MAX_JITTER_CONFIDENCE = 0.99


def baseline_counts(slot_index: int) -> Dict[str, int]:
    """Per-class baseline of live vehicles. The slot index differentiates streams."""
    return {
        'Car': 15 + slot_index * 3,
        'Truck': 4 + slot_index,
        'Bus': 2,
        'Motorcycle': 3 + slot_index,
    }


def tick_interval_ms(profile: ModelProfile, skip_frames: int) -> float:
    """Milliseconds between two ticks for a model and skip-frame count."""
    return (1000.0 / profile.base_fps) * (skip_frames + 1)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class DetectionSimulator:
    """
    Owns the track set of one slot and advances it one tick at a time.

    The model is looked up by name on every tick so a catalog change or an
    unknown selection only skips ticks instead of failing.
    """

    def __init__(
        self,
        slot_index: int,
        catalog,
        model_name: str,
        skip_frames: int = 0,
        generation: int = 0,
        rng: Optional[random.Random] = None,
        baseline: Optional[Dict[str, int]] = None,
        clock=time.time
    ):
        self.slot_index = slot_index
        self.catalog = catalog
        self.model_name = model_name
        self.skip_frames = skip_frames
        self.generation = generation
        self.rng = rng or random.Random()
        self.baseline = dict(baseline) if baseline is not None else baseline_counts(slot_index)
        self._clock = clock

        self._tracks: List[TrackedObject] = []
        self._ids = itertools.count(1)
        self._tick = 0
        self.spawned: Dict[str, int] = {t: 0 for t in VEHICLE_TYPES}
        self.last_spawned: Dict[str, int] = {t: 0 for t in VEHICLE_TYPES}

    @property
    def track_count(self) -> int:
        return len(self._tracks)

    def profile(self) -> ModelProfile:
        """Resolves the selected model. Raises MissingModelProfile."""
        return self.catalog.require(self.model_name)

    def interval_seconds(self) -> float:
        return tick_interval_ms(self.profile(), self.skip_frames) / 1000.0

    def reconfigure(self, model_name: Optional[str] = None, skip_frames: Optional[int] = None):
        """Applies new settings. The track set is kept."""
        if model_name is not None:
            self.model_name = model_name
        if skip_frames is not None:
            self.skip_frames = skip_frames

    @log_execution_time(logger, threshold_ms=5.0)
    def tick(self) -> Optional[TickSnapshot]:
        """
        Runs one simulation step and returns its snapshot.
        Returns None, leaving the track set untouched, when the model cannot be resolved.
        """
        try:
            profile = self.profile()
        except MissingModelProfile as e:
            logger.warning(f"Slot {self.slot_index}: tick skipped, {e}")
            return None

        stability = profile.stability_factor
        self.last_spawned = {t: 0 for t in VEHICLE_TYPES}

        tracks = [self._jitter(track, stability) for track in self._tracks]

        breakdown: Dict[str, int] = {}
        for vehicle_type in VEHICLE_TYPES:
            target = self._target_count(vehicle_type, stability)
            tracks = self._reconcile(tracks, vehicle_type, target, stability)
            breakdown[vehicle_type] = sum(1 for t in tracks if t.vehicle_type == vehicle_type)

        self._tracks = tracks
        self._tick += 1

        effective_fps = profile.base_fps / (self.skip_frames + 1)
        simulated_fps = effective_fps + (self.rng.random() - 0.5) * effective_fps * 0.1

        return TickSnapshot(
            slot_index=self.slot_index,
            generation=self.generation,
            tick=self._tick,
            timestamp=self._clock(),
            tracks=tuple(tracks),
            aggregate=AggregateSnapshot(
                total=sum(breakdown.values()),
                breakdown=breakdown,
                fps=round(simulated_fps, 1)
            )
        )

    def _jitter(self, track: TrackedObject, stability: float) -> TrackedObject:
        x, y, w, h = track.box
        new_x = _clamp(x + (self.rng.random() - 0.5) * 0.01, 0.0, 1.0 - w)
        new_y = _clamp(y + (self.rng.random() - 0.5) * 0.005, 0.0, 1.0 - h)
        new_confidence = _clamp(
            track.confidence + (self.rng.random() - 0.5) * 0.05 * (2.0 - stability),
            MIN_JITTER_CONFIDENCE,
            MAX_JITTER_CONFIDENCE
        )
        return replace(track, box=(new_x, new_y, w, h), confidence=new_confidence)

    def _target_count(self, vehicle_type: str, stability: float) -> int:
        base = self.baseline.get(vehicle_type, 0)
        fluctuation = (self.rng.random() - 0.5) * (base * (1.5 - stability))
        return max(0, _round_half_up(base + fluctuation))

    def _reconcile(
        self, tracks: List[TrackedObject], vehicle_type: str, target: int, stability: float
    ) -> List[TrackedObject]:
        current = sum(1 for t in tracks if t.vehicle_type == vehicle_type)

        if current > target:
            # Every candidate gets its own roll, so a stable model rarely drops tracks
            to_remove = current - target
            kept = []
            for track in tracks:
                if track.vehicle_type == vehicle_type and to_remove > 0 and self.rng.random() > stability:
                    to_remove -= 1
                    continue
                kept.append(track)
            return kept

        for _ in range(target - current):
            tracks.append(self._spawn(vehicle_type, stability))
        return tracks

    def _spawn(self, vehicle_type: str, stability: float) -> TrackedObject:
        confidence = stability + self.rng.random() * (1.0 - stability)
        if vehicle_type in LARGE_VEHICLE_TYPES:
            w = 0.15 + self.rng.random() * 0.1
            h = 0.12 + self.rng.random() * 0.05
        else:
            w = 0.1 + self.rng.random() * 0.05
            h = 0.08 + self.rng.random() * 0.05
        x = self.rng.random() * (1.0 - w)
        y = self.rng.random() * (1.0 - h)

        self.spawned[vehicle_type] += 1
        self.last_spawned[vehicle_type] += 1
        return TrackedObject(
            id=f"{self.slot_index}-{self.generation}-{vehicle_type.lower()}-{next(self._ids)}",
            vehicle_type=vehicle_type,
            box=(x, y, w, h),
            confidence=confidence
        )
