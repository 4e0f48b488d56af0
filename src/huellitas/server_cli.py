"""CLI entry point for the notification API server."""

import argparse
import os


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="huellitas-server",
        description="Huellitas notification API server",
    )
    parser.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8080, help="Bind port (default: 8080)")
    parser.add_argument(
        "--local",
        action="store_true",
        help="Local dev mode: SQLite database, no Redis required",
    )
    parser.add_argument(
        "--no-scheduler",
        action="store_true",
        help="Do not start the background scheduler (e.g. on extra API replicas)",
    )
    args = parser.parse_args(argv)

    if args.local:
        os.environ["HUELLITAS_LOCAL_MODE"] = "1"
    if args.no_scheduler:
        os.environ["HUELLITAS_SCHEDULER_ENABLED"] = "0"

    import uvicorn

    uvicorn.run("huellitas.main:app", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
