"""Entrypoint.

Usage (from backend/):
  python -m starshot.app.main api     # run FastAPI server (dashboard page + /api/*)
  python -m starshot.app.main poll    # headless poll of both bots, logs new trades
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

import uvicorn

from starshot.app.poller import run_poller
from starshot.infrastructure.utils.config import reload_config


def main() -> None:
    parser = argparse.ArgumentParser("starshot")
    parser.add_argument("command", choices=["api", "poll"], help="What to run")
    parser.add_argument("--config", type=Path, default=None, help="YAML config path")
    parser.add_argument("--iterations", type=int, default=None, help="poll: stop after N polls")
    args = parser.parse_args()

    if args.command == "api":
        config = reload_config(args.config)
        uvicorn.run(
            "starshot.controllers.api_controller:create_app",
            factory=True,
            host=config.api.host,
            port=config.api.port,
            reload=False,
        )
        return

    if args.command == "poll":
        asyncio.run(run_poller(args.config, iterations=args.iterations))
        return


if __name__ == "__main__":
    main()
