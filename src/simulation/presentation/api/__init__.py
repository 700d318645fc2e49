"""
API package.
"""
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .routes import streams, streaming, video
from ...application.services.multi_stream import MultiStreamManager
from ...domain.repositories import SessionRepository
from ...infrastructure.broadcast.realtime_broadcaster import RealtimeBroadcaster

# Initialize main app
app = FastAPI(title="Traffic AI Dashboard API")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins for development
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(streams.app.router, tags=["streams"])
app.include_router(streaming.app.router, tags=["streaming"])
app.include_router(video.app.router, tags=["video"])


def init_app(
    manager: MultiStreamManager,
    broadcaster: RealtimeBroadcaster,
    repository: Optional[SessionRepository] = None
) -> FastAPI:
    """Wires the shared components into the route modules."""
    streams.init_manager(manager, repository)
    streaming.init_broadcaster(broadcaster)
    return app
