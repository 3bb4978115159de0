"""CLI entrypoint for the workflow engine.

Commands:
- `serve`: run the REST API
- `validate`: check a workflow definition file without storing it
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from workflow_engine import __version__
from workflow_engine.config import EngineSettings
from workflow_engine.logging import configure_logging
from workflow_engine.models import WorkflowDefinitionDraft
from workflow_engine.validation import find_violations

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INVALID_DEFINITION = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workflow-engine",
        description="Configurable state-machine workflow engine",
    )
    parser.add_argument("--version", action="version", version=f"workflow-engine {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the REST API")
    serve.add_argument("--host", default=None, help="Bind address (default: WORKFLOW_HOST)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: WORKFLOW_PORT)")

    validate = subparsers.add_parser(
        "validate",
        help="Validate a workflow definition JSON file and list every violation",
    )
    validate.add_argument("path", type=Path, help="Path to a workflow definition JSON file")

    return parser


def _validate_file(path: Path) -> int:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        draft = WorkflowDefinitionDraft.model_validate(raw)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        print(f"Cannot read workflow definition from {path}:", file=sys.stderr)
        print(e, file=sys.stderr)
        return EXIT_USAGE

    violations = find_violations(draft)
    if not violations:
        print(
            f"{path}: valid ({len(draft.states)} states, {len(draft.actions)} actions)"
        )
        return EXIT_OK

    print(f"{path}: {len(violations)} violation(s)")
    for violation in violations:
        print(f"  - {violation}")
    return EXIT_INVALID_DEFINITION


def _serve(settings: EngineSettings, host: str | None, port: int | None) -> int:
    import uvicorn

    from workflow_engine.server import create_app

    app = create_app(settings)
    logger.info(
        "Starting workflow engine API",
        extra={"host": host or settings.host, "port": port or settings.port},
    )
    # log_config=None keeps the JSON logging configured above.
    uvicorn.run(
        app,
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
        log_level=settings.log_level.lower(),
    )
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = EngineSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return EXIT_USAGE

    configure_logging(settings.log_level)

    try:
        if args.command == "validate":
            return _validate_file(args.path)

        if args.command == "serve":
            return _serve(settings, args.host, args.port)

        logger.error("Unknown command", extra={"command": args.command})
        return EXIT_USAGE

    except Exception:
        logger.exception("Command failed")
        return EXIT_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
