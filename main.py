import argparse
import logging
import uvicorn
from fastapi import FastAPI
from contextlib import asynccontextmanager

import sys
from pathlib import Path

# Add project root to path for package imports
base_dir = Path(__file__).parent
sys.path.insert(0, str(base_dir))

from db.database import init_db
from config import load_config, CONFIG_DIR
from routes import auth, children, packages, assignments, collectibles, stats, reports  # Import routers

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure root logging once; level comes from [logging] level in config.toml."""
    level_name = (level or load_config()["logging"]["level"]).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)


# First-run init
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: init DB and config
    setup_logging()  # Also ensures config exists
    init_db()
    yield


app = FastAPI(
    title="Homeschool Coins",
    description="Assignments, answer scoring and coin rewards for homeschooled kids",
    lifespan=lifespan,
)

# Include routers
app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(children.router, prefix="/children", tags=["children"])
app.include_router(packages.router, prefix="/packages", tags=["packages"])
app.include_router(assignments.router, prefix="/assignments", tags=["assignments"])
app.include_router(collectibles.router, prefix="/collectibles", tags=["collectibles"])
app.include_router(stats.router, prefix="/stats", tags=["stats"])
app.include_router(reports.router, prefix="/reports", tags=["reports"])


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Homeschool Coins App")
    parser.add_argument("--init", action="store_true", help="Initialize DB and config")
    parser.add_argument("--dev", action="store_true", help="Run in dev mode with reload")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on")
    args = parser.parse_args()
    setup_logging()
    if args.init:
        load_config()  # Ensures config is copied if missing
        init_db()
        print(f"DB initialized and config copied to {CONFIG_DIR}/")
        sys.exit(0)
    # Run server
    uvicorn.run("main:app", host="127.0.0.1", port=args.port, reload=args.dev, log_level="info")
