"""Command-line interface for photonflow."""

import argparse
import os
import sys

import uvicorn

from photonflow.logging_config import configure_logging


def main(args: list[str] | None = None) -> int:
    """Run the photonflow frame server.

    Args:
        args: Command-line arguments. If None, uses sys.argv[1:].

    Returns:
        Exit code (0 for success).
    """
    parser = argparse.ArgumentParser(
        prog="photonflow",
        description="photonflow - Photon carrier flow through a fiber splice",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for a reproducible run (overrides PHOTONFLOW_SEED)",
    )
    parser.add_argument(
        "--noise",
        action="store_true",
        help="Start with interference noise enabled",
    )
    parser.add_argument(
        "--colorful",
        action="store_true",
        help="Start in colorful mode",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )

    parsed = parser.parse_args(args)

    # Settings are read from the environment when the server builds its state.
    if parsed.seed is not None:
        os.environ["PHOTONFLOW_SEED"] = str(parsed.seed)
    if parsed.noise:
        os.environ["PHOTONFLOW_NOISE_ENABLED"] = "true"
    if parsed.colorful:
        os.environ["PHOTONFLOW_COLORFUL_MODE"] = "true"

    configure_logging()

    print(f"Starting photonflow server at http://{parsed.host}:{parsed.port}")
    print("Press Ctrl+C to stop")

    uvicorn.run(
        "photonflow.server.app:app",
        host=parsed.host,
        port=parsed.port,
        reload=parsed.reload,
        log_config=None,
    )

    return 0


if __name__ == "__main__":
    sys.exit(main())
