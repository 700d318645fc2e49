"""
Runs the dashboard engine headless and prints each slot's readout.

Usage:
    python scripts/run_simulation.py
    python scripts/run_simulation.py +streams=2 +seconds=10 dashboard.settings.skip_frames=0
"""
import asyncio
import os
import sys
import hydra
from omegaconf import DictConfig, OmegaConf

# Add src to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from src.simulation.application.builder import DashboardApplicationBuilder
from src.simulation.domain.entities import TickSnapshot


def print_tick(snapshot: TickSnapshot):
    aggregate = snapshot.aggregate
    breakdown = " ".join(f"{t}={c}" for t, c in aggregate.breakdown.items())
    print(f"[slot {snapshot.slot_index}] tick {snapshot.tick:4d} | "
          f"total={aggregate.total:3d} | {breakdown} | fps={aggregate.fps}")


async def run(cfg: DictConfig, streams: int, seconds: float):
    builder = DashboardApplicationBuilder(OmegaConf.masked_copy(cfg, ["dashboard", "server"]))
    manager = builder.build_manager()

    reference = cfg.dashboard.default_source
    for _ in range(min(streams, manager.lifecycle.capacity)):
        index = await manager.start_stream(reference)
        manager.add_listener(index, print_tick)
        print(f"Slot {index} connecting to {reference}")

    try:
        await asyncio.sleep(seconds)
    finally:
        session = manager.save_session("Headless run")
        if session:
            print(f"Session: {session.model_dump_json(by_alias=True)}")
        await manager.shutdown()


@hydra.main(version_base=None, config_path="../conf", config_name="config")
def main(cfg: DictConfig):
    streams = int(cfg.get('streams', 1))
    seconds = float(cfg.get('seconds', 5))
    asyncio.run(run(cfg, streams, seconds))

if __name__ == "__main__":
    main()
