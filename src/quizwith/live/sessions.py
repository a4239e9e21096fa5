"""Live "QuizWith" sessions: host, join and look up by PIN.

Only the bookkeeping lives here. Every player runs their own
:class:`~quizwith.quiz.session.QuizSession` against the hosted quiz; there
is no fan-out of question state between players.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional
from uuid import uuid4

from ..errors import LiveSessionError, MalformedResponse
from ..quiz.models import Quiz
from ..storage.jsonl import read_jsonl, write_jsonl

__all__ = [
    "LiveStatus",
    "LiveSession",
    "JoinResult",
    "LiveSessionStore",
]

PIN_LENGTH = 6
_MAX_PIN_ATTEMPTS = 50

logger = logging.getLogger(__name__)


class LiveStatus(str, Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    FINISHED = "finished"


@dataclass(frozen=True)
class LiveSession:
    pin: str
    session_id: str
    quiz_id: str
    quiz_title: str
    host_user_id: str
    status: LiveStatus
    created_at: datetime
    updated_at: datetime
    course_id: Optional[str] = None
    players: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, object]:
        return {
            "pin": self.pin,
            "session_id": self.session_id,
            "quiz_id": self.quiz_id,
            "quiz_title": self.quiz_title,
            "course_id": self.course_id,
            "host_user_id": self.host_user_id,
            "status": self.status.value,
            "players": list(self.players),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, row: dict) -> "LiveSession":
        try:
            return cls(
                pin=str(row["pin"]),
                session_id=str(row["session_id"]),
                quiz_id=str(row["quiz_id"]),
                quiz_title=str(row.get("quiz_title", "")),
                course_id=(
                    str(row["course_id"])
                    if row.get("course_id") is not None
                    else None
                ),
                host_user_id=str(row["host_user_id"]),
                status=LiveStatus(row["status"]),
                players=tuple(str(p) for p in row.get("players", []) or []),
                created_at=datetime.fromisoformat(row["created_at"]),
                updated_at=datetime.fromisoformat(row["updated_at"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedResponse(f"Invalid live session row: {exc}") from exc


@dataclass(frozen=True)
class JoinResult:
    success: bool
    message: str
    quiz_id: Optional[str] = None
    course_id: Optional[str] = None
    session_id: Optional[str] = None


class LiveSessionStore:
    def __init__(
        self,
        path: Path,
        *,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.path = Path(path)
        self._rng = rng or random.Random()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _load(self) -> List[LiveSession]:
        return [LiveSession.from_dict(row) for row in read_jsonl(self.path)]

    def _save(self, sessions: List[LiveSession]) -> None:
        write_jsonl(self.path, [session.to_dict() for session in sessions])

    def _new_pin(self, taken: set[str]) -> str:
        low = 10 ** (PIN_LENGTH - 1)
        for _ in range(_MAX_PIN_ATTEMPTS):
            pin = str(self._rng.randrange(low, low * 10))
            if pin not in taken:
                return pin
        raise LiveSessionError("Could not allocate a free PIN.")

    def host_session(self, quiz: Quiz, host_user_id: str) -> LiveSession:
        if not host_user_id:
            raise LiveSessionError("Only signed-in instructors can host.")
        if not quiz.questions:
            raise LiveSessionError("Quiz has no questions.")
        sessions = self._load()
        live_pins = {
            s.pin for s in sessions if s.status is not LiveStatus.FINISHED
        }
        now = self._clock()
        session = LiveSession(
            pin=self._new_pin(live_pins),
            session_id=uuid4().hex,
            quiz_id=quiz.id,
            quiz_title=quiz.title,
            course_id=quiz.course_id,
            host_user_id=host_user_id,
            status=LiveStatus.WAITING,
            created_at=now,
            updated_at=now,
        )
        sessions.append(session)
        self._save(sessions)
        logger.info(
            "Hosted live session",
            extra={"pin": session.pin, "quiz_id": quiz.id},
        )
        return session

    def get_session_by_pin(self, pin: str) -> Optional[LiveSession]:
        """Return the most recent session using ``pin``."""

        pin = pin.strip()
        for session in reversed(self._load()):
            if session.pin == pin:
                return session
        return None

    def join_session(self, pin: str, nickname: str) -> JoinResult:
        nickname = nickname.strip()
        if not nickname:
            return JoinResult(False, "Nickname is required.")
        sessions = self._load()
        index = self._find_waiting(sessions, pin.strip())
        if index is None:
            return JoinResult(False, "Invalid or inactive PIN.")
        session = sessions[index]
        if nickname.lower() in {p.lower() for p in session.players}:
            return JoinResult(False, f"Nickname '{nickname}' is already taken.")
        sessions[index] = replace(
            session,
            players=session.players + (nickname,),
            updated_at=self._clock(),
        )
        self._save(sessions)
        logger.info(
            "Player joined live session",
            extra={"pin": session.pin, "nickname": nickname},
        )
        return JoinResult(
            True,
            "Joined successfully!",
            quiz_id=session.quiz_id,
            course_id=session.course_id,
            session_id=session.session_id,
        )

    def start_session(self, pin: str, host_user_id: str) -> LiveSession:
        return self._transition(
            pin, host_user_id, LiveStatus.WAITING, LiveStatus.ACTIVE
        )

    def finish_session(self, pin: str, host_user_id: str) -> LiveSession:
        return self._transition(
            pin, host_user_id, LiveStatus.ACTIVE, LiveStatus.FINISHED
        )

    @staticmethod
    def _find_waiting(sessions: List[LiveSession], pin: str) -> Optional[int]:
        for index in range(len(sessions) - 1, -1, -1):
            session = sessions[index]
            if session.pin == pin and session.status is LiveStatus.WAITING:
                return index
        return None

    def _transition(
        self,
        pin: str,
        host_user_id: str,
        expected: LiveStatus,
        target: LiveStatus,
    ) -> LiveSession:
        sessions = self._load()
        for index in range(len(sessions) - 1, -1, -1):
            session = sessions[index]
            if session.pin != pin.strip():
                continue
            if session.host_user_id != host_user_id:
                raise LiveSessionError("Only the host can change this session.")
            if session.status is not expected:
                raise LiveSessionError(
                    f"Session {pin} is {session.status.value}, "
                    f"expected {expected.value}."
                )
            updated = replace(session, status=target, updated_at=self._clock())
            sessions[index] = updated
            self._save(sessions)
            logger.info(
                "Live session status changed",
                extra={"pin": pin, "status": target.value},
            )
            return updated
        raise LiveSessionError(f"No live session with PIN {pin}.")
