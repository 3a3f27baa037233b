from __future__ import annotations

import argparse

import uvicorn

from .app import create_app
from .logging_config import configure_logging
from .settings import Settings


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="bbox-serve",
        description="Serve /analyze and /convert-to-pdf over HTTP.",
    )
    p.add_argument("--host", default=None, help="Listen host (default: BBOX_HOST or 0.0.0.0).")
    p.add_argument("--port", type=int, default=None, help="Listen port (default: BBOX_PORT or 3000).")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)

    settings = Settings()
    configure_logging(settings.log_level)
    app = create_app(settings)

    uvicorn.run(
        app,
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
