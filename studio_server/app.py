"""FastAPI application serving the studio REST API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from studio_server import config
from studio_server.db import init_all
from studio_server.errors import http_error_handler, request_validation_handler
from studio_server.graph_routes import router as graph_router
from studio_server.node_routes import router as node_router
from studio_server.state_routes import router as state_router
from studio_server.tool_routes import router as tool_router

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database tables on startup."""
    init_all()
    logger.info("studio database ready at %s", config.STUDIO_DB_PATH)
    yield


app = FastAPI(
    title="Node Studio API",
    description="API server for node definitions, graphs, tools and persistent state",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(StarletteHTTPException, http_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)

# include routes
app.include_router(tool_router, prefix=API_PREFIX)
app.include_router(node_router, prefix=API_PREFIX)
app.include_router(graph_router, prefix=API_PREFIX)
app.include_router(state_router, prefix=API_PREFIX)


@app.get("/")
def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": "0.1.0",
        "db": str(config.STUDIO_DB_PATH),
        "endpoints": {
            "tools": f"{API_PREFIX}/tools",
            "neurons": f"{API_PREFIX}/neurons",
            "nodes": f"{API_PREFIX}/nodes",
            "graphs": f"{API_PREFIX}/graphs",
            "state": f"{API_PREFIX}/state/namespaces",
        },
    }


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=8000)
