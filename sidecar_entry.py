"""Sidecar entry point: FastAPI launcher for the manga editor backend.

Usage:
    python sidecar_entry.py --port 12345
"""

import argparse


def main() -> None:
    from manga_studio.infra.config import LOG_LEVEL

    parser = argparse.ArgumentParser(description="Manga Studio Backend Sidecar")
    parser.add_argument("--port", type=int, default=8000, help="HTTP listen port")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="bind address")
    parser.add_argument("--log-level", type=str, default=LOG_LEVEL, help="uvicorn log level")
    args = parser.parse_args()

    import uvicorn

    uvicorn.run(
        "manga_studio.api.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
