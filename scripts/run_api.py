from __future__ import annotations

import argparse

import uvicorn

from docmaster.apps.api.main import create_app
from docmaster.core.config import get_settings


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the DocMaster API")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    parser.add_argument("--port", type=int, default=5000, help="Port to listen on")
    parser.add_argument(
        "--demo-documents",
        action="store_true",
        help="Seed sample documents owned by the default admin",
    )
    return parser


def main() -> None:
    args = _build_parser().parse_args()
    settings = get_settings()
    if args.demo_documents:
        settings = settings.model_copy(update={"seed_demo_documents": True})
    # Single worker: the store lives in this process's memory.
    app = create_app(settings=settings)
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
