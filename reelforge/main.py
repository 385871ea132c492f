"""
ReelForge - command line entry point

    python -m reelforge serve [--host HOST] [--port PORT] [--production]
    python -m reelforge render job.json [--verbose]
"""
import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

# Load environment variables before settings are read
from dotenv import load_dotenv
load_dotenv()

from reelforge import __version__, settings
from reelforge.core.exceptions import JobFailedError, JobValidationError
from reelforge.monitoring.preflight import preflight_ok, run_preflight_checks
from reelforge.storage.exceptions import StorageError

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, log_file: Optional[str] = None):
    """Setup structured logging configuration"""
    log_level = logging.DEBUG if verbose else logging.INFO

    detailed_formatter = logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)-20s | %(funcName)-15s:%(lineno)-4d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    simple_formatter = logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(message)s',
        datefmt='%H:%M:%S'
    )

    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(simple_formatter)
    handlers = [console_handler]

    log_file = log_file if log_file is not None else settings.get_log_file()
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_formatter)
        handlers.append(file_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
        force=True
    )
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)


def serve(args: argparse.Namespace) -> int:
    """Run pre-flight checks, then start uvicorn."""
    import uvicorn

    if args.production:
        os.environ['APP_ENV'] = 'production'

    logger.info(f"🎬 ReelForge {__version__} - Starting...")
    if not preflight_ok(run_preflight_checks()):
        logger.error("Pre-flight checks failed; not starting server")
        return 1

    host = args.host or settings.get_api_host()
    port = args.port or settings.get_api_port()
    logger.info(f"🚀 Listening on http://{host}:{port} (environment={settings.get_environment()})")
    uvicorn.run(
        "reelforge.api.main:create_app",
        factory=True,
        host=host,
        port=port,
        log_config=None,
    )
    return 0


async def _render(payload) -> dict:
    from reelforge.services.job_orchestrator import build_orchestrator

    orchestrator = build_orchestrator()
    try:
        result = await orchestrator.run(payload)
        return result.to_response()
    finally:
        await orchestrator.aclose()


def render(args: argparse.Namespace) -> int:
    """Run one job from a JSON file (or '-' for stdin) and print the result."""
    try:
        if args.job == '-':
            payload = json.load(sys.stdin)
        else:
            payload = json.loads(Path(args.job).read_text(encoding='utf-8'))
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Cannot read job file {args.job}: {e}")
        return 2

    try:
        response = asyncio.run(_render(payload))
    except JobValidationError as e:
        print(json.dumps(e.to_response(settings.is_production()), indent=2))
        return 2
    except JobFailedError as e:
        print(json.dumps(e.to_response(settings.is_production()), indent=2))
        return 1
    except StorageError as e:
        logger.error(f"Storage is not usable: {e}")
        return 1

    print(json.dumps(response, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="reelforge", description="ReelForge video generator")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: api.host)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: PORT or api.port)")
    serve_parser.add_argument("--production", action="store_true",
                              help="Hide internal error details and delete failed workspaces")
    serve_parser.set_defaults(func=serve)

    render_parser = subparsers.add_parser("render", help="Render one job locally")
    render_parser.add_argument("job", help="Path to job JSON file, or '-' for stdin")
    render_parser.set_defaults(func=render)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
