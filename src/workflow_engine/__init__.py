"""Workflow Engine.

Define workflows as finite state machines, start instances of them and move
those instances between states, with a full transition history.
"""

__version__ = "0.1.0"

from workflow_engine.config import EngineSettings
from workflow_engine.engine import WorkflowEngine

__all__ = ["__version__", "EngineSettings", "WorkflowEngine"]
