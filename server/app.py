"""FastAPI application for the pipeline editor."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from blockgraph.config import EditorConfig
from server import session_store
from server.editor_routes import router as editor_router

from dotenv import load_dotenv
load_dotenv()  # load environment variables from .env file

config = EditorConfig.from_env()
session_store.configure(config)

logging.basicConfig(
    level=config.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Blockgraph API",
    description="API server for the visual CI/CD pipeline editor",
    version="0.1.0",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# include routes
app.include_router(editor_router, prefix="/api")


@app.get("/")
def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": "0.1.0",
        "block_types": len(session_store.get_registry()),
        "endpoints": {
            "blocks": "/api/blocks",
            "pipelines": "/api/pipelines",
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
