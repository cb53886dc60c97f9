"""CLI entry point for the PawFeed API server."""

import argparse
import os


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="pawfeed-server",
        description="PawFeed API server: unified notification feed and post comments",
    )
    parser.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8080, help="Bind port (default: 8080)")
    parser.add_argument(
        "--local",
        action="store_true",
        help="Local dev mode: SQLite files for the remote store and local storage, console logs",
    )
    parser.add_argument("--log-level", default=None, help="Override PAWFEED_LOG_LEVEL")
    args = parser.parse_args(argv)

    if args.local:
        os.environ["PAWFEED_LOCAL_MODE"] = "1"
    if args.log_level:
        os.environ["PAWFEED_LOG_LEVEL"] = args.log_level

    import uvicorn

    uvicorn.run("pawfeed.main:app", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
