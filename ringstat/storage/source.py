"""
Session sources for RingStat.

A session source is the handle through which the aggregation code reads
scoring data. The aggregator never opens connections itself; callers pass
a source in.

    InMemorySessionSource: records already held by the caller.
    JsonSessionSource: a JSON export of the scoring database.

Export file layout:

    {
      "shooters": {"Lastname|Firstname": [<session record>, ...]},
      "shots": {"<session_id>": [<shot record>, ...]}
    }
"""

import json
import logging
from pathlib import Path
from typing import Iterable, Optional, Protocol

from ringstat.models.session import SessionSummary
from ringstat.models.shot import Shot

logger = logging.getLogger(__name__)


class SourceError(Exception):
    """Raised when session or shot data cannot be retrieved."""


class SessionSource(Protocol):
    """Read access to sessions and shots of the scoring database."""

    def get_sessions(self, shooter_id: str) -> list[SessionSummary]:
        """All sessions of a shooter, newest first."""
        ...

    def get_session_shots(self, session_id: str) -> list[Shot]:
        """Shots of a session ordered by shot_number."""
        ...


class InMemorySessionSource:
    """Session source backed by plain dictionaries."""

    def __init__(self,
                 sessions: Optional[dict[str, Iterable[SessionSummary]]] = None,
                 shots: Optional[dict[str, Iterable[Shot]]] = None):
        """
        Args:
            sessions: Sessions keyed by shooter id.
            shots: Shots keyed by session id.
        """
        self._sessions = {
            shooter: sorted(items, key=lambda s: s.session_date, reverse=True)
            for shooter, items in (sessions or {}).items()
        }
        self._shots = {
            str(session_id): sorted(items, key=lambda s: s.shot_number)
            for session_id, items in (shots or {}).items()
        }

    @property
    def shooter_ids(self) -> list[str]:
        return sorted(self._sessions)

    def get_sessions(self, shooter_id: str) -> list[SessionSummary]:
        return list(self._sessions.get(shooter_id, []))

    def get_session_shots(self, session_id: str) -> list[Shot]:
        return list(self._shots.get(str(session_id), []))


class JsonSessionSource(InMemorySessionSource):
    """Session source reading a JSON export of the scoring database.

    Records are validated once, when the file is loaded.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        data = self._read()

        try:
            sessions = {
                shooter: [SessionSummary.from_record(r) for r in records]
                for shooter, records in data.get("shooters", {}).items()
            }
            shots = {
                session_id: [Shot.from_record(r) for r in records]
                for session_id, records in data.get("shots", {}).items()
            }
        except (AttributeError, ValueError) as e:
            raise SourceError(f"Invalid record in {self.path}: {e}") from e

        # Optional dashboard user records: {"id", "username", "shooter_id", "created_at"}
        self.member_records: list[dict] = list(data.get("members", []))
        super().__init__(sessions=sessions, shots=shots)
        logger.info(
            f"Loaded {sum(len(v) for v in sessions.values())} sessions for "
            f"{len(sessions)} shooters from {self.path}"
        )

    def _read(self) -> dict:
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            raise SourceError(f"Cannot read scoring export {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise SourceError(f"Scoring export {self.path} is not a JSON object")
        return data
