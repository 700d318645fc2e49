import os
import sys
import hydra
import uvicorn
from omegaconf import DictConfig

# Add src to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from src.simulation.application.builder import DashboardApplicationBuilder
from src.simulation.presentation.api import init_app

@hydra.main(version_base=None, config_path="../conf", config_name="config")
def main(cfg: DictConfig):
    print(f"Configuration loaded.")

    # Build components
    builder = DashboardApplicationBuilder(cfg)
    builder.build_catalog().build_settings().build_persistence().build_broadcaster().build_stager()
    manager = builder.build_manager()
    components = builder.get_components()

    app = init_app(manager, components['broadcaster'], components['repository'])

    server_cfg = cfg.server
    print(f"Starting server at http://{server_cfg.host}:{server_cfg.port}")

    # Release bound uploads when the server goes down
    @app.on_event("shutdown")
    async def shutdown_event():
        print("Stopping all streams...")
        await manager.shutdown()

    uvicorn.run(app, host=server_cfg.host, port=server_cfg.port)

if __name__ == "__main__":
    main()
