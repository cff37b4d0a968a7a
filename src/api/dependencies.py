"""FastAPI dependencies shared by the routers.

`src/api/main.py` wires the concrete database and controller at import time;
tests swap them through `app.dependency_overrides`.
"""

from typing import Any, Optional

from src.submissions.controller import SubmissionController

_db: Any = None
_controller: Optional[SubmissionController] = None


def configure(db: Any, controller: SubmissionController) -> None:
    global _db, _controller
    _db = db
    _controller = controller


def get_db():
    """Dependency for the submissions store"""
    if _db is None:
        raise RuntimeError("Database is not configured")
    return _db


def get_controller() -> SubmissionController:
    """Dependency for the submission controller"""
    if _controller is None:
        raise RuntimeError("Submission controller is not configured")
    return _controller
