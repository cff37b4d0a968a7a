"""Error handling helpers for the submission API."""
from typing import Any, Dict
import logging

logger = logging.getLogger(__name__)


class ErrorHandler:
    def handle_exception(self, exc: Exception, context: Dict[str, Any] = None) -> Dict[str, Any]:
        logger.error("Unhandled exception while processing submission: %s | context=%s", exc, context or {}, exc_info=exc)
        return {
            "success": False,
            "error": str(exc) or "Failed to process submission",
            "metadata": {"type": type(exc).__name__, "context": context or {}},
        }
