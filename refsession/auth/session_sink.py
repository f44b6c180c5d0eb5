"""Receivers for an established session."""

import json
import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)


class SessionSink(ABC):
    """Abstract base class for whatever stores the session after login."""

    @abstractmethod
    def store(self, session_token: str, dashboard_html: str) -> None:
        """Receive the session token and the dashboard document.

        Args:
            session_token: Opaque session token for subsequent API calls
            dashboard_html: Dashboard HTML, for downstream profile extraction
        """
        pass


class MemorySessionSink(SessionSink):
    """Keeps the last session in memory."""

    def __init__(self):
        self.session_token: Optional[str] = None
        self.dashboard_html: Optional[str] = None

    def store(self, session_token: str, dashboard_html: str) -> None:
        self.session_token = session_token
        self.dashboard_html = dashboard_html

    def clear(self) -> None:
        self.session_token = None
        self.dashboard_html = None


class JsonFileSessionSink(SessionSink):
    """Persists the session to a JSON file."""

    def __init__(self, session_file: Path):
        """Initialize file sink.

        Args:
            session_file: Path of the JSON file to write
        """
        self.session_file = Path(session_file)

    def store(self, session_token: str, dashboard_html: str) -> None:
        data = {
            "session_token": session_token,
            "dashboard_html": dashboard_html,
            "saved_at": time.time(),
        }
        self.session_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.session_file, "w", encoding="utf-8") as f:
            json.dump(data, f)
        logger.info(f"✓ Session saved to {self.session_file}")

    def load(self) -> Optional[Dict[str, Any]]:
        """Load the saved session, or None if there is none."""
        if not self.session_file.exists():
            logger.debug(f"No saved session at {self.session_file}")
            return None
        try:
            with open(self.session_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except ValueError as e:
            logger.warning(f"Ignoring unreadable session file {self.session_file}: {e}")
            return None
        return data if isinstance(data, dict) else None

    def clear(self) -> None:
        """Delete saved session file."""
        if self.session_file.exists():
            self.session_file.unlink()
            logger.info(f"Deleted saved session: {self.session_file}")
        else:
            logger.debug(f"Saved session file does not exist: {self.session_file}")
