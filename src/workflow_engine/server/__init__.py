"""FastAPI server adapter for workflow-engine.

Design intent:
- Keep transition rules in `workflow_engine.engine` and `workflow_engine.validation`
- Keep server-specific concerns (routing, CORS, error mapping) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from workflow_engine.server.app import create_app
