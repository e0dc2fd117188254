"""
Server-side sessions keyed by an opaque id.

The cookie carries only the session id, signed with the session secret so a
forged or edited cookie is rejected before the store is consulted. Session
data (the identity snapshot taken at login) never leaves the server.
"""
import secrets
import time
from dataclasses import dataclass
from typing import Dict, Optional

from fastapi import Request, Response
from jose import JWTError, jwt

from course_portal.config import SESSION_COOKIE_NAME, SESSION_TTL_SECONDS
from course_portal.errors import Unauthenticated
from course_portal.models.student import Student

ALGORITHM = "HS256"


def _now() -> float:
    return time.time()


@dataclass
class SessionData:
    session_id: str
    student_id: str
    name: str
    email: str
    srn: str
    expires_at: float


class SessionStore:
    """In-process session store with a sliding expiry window."""

    def __init__(self, ttl_seconds: int = SESSION_TTL_SECONDS):
        self.ttl_seconds = ttl_seconds
        self._data: Dict[str, SessionData] = {}

    def __len__(self) -> int:
        return len(self._data)

    def create(self, student: Student) -> SessionData:
        self.purge_expired()
        sid = secrets.token_urlsafe(24)
        rec = SessionData(
            session_id=sid,
            student_id=student.id,
            name=student.name,
            email=student.email,
            srn=student.srn,
            expires_at=_now() + self.ttl_seconds,
        )
        self._data[sid] = rec
        return rec

    def get(self, session_id: str) -> Optional[SessionData]:
        """Return a live session and push its expiry forward."""
        rec = self._data.get(session_id)
        if not rec:
            return None
        if rec.expires_at < _now():
            self._data.pop(session_id, None)
            return None
        rec.expires_at = _now() + self.ttl_seconds
        return rec

    def delete(self, session_id: str) -> None:
        self._data.pop(session_id, None)

    def purge_expired(self) -> int:
        now = _now()
        expired = [sid for sid, rec in self._data.items() if rec.expires_at < now]
        for sid in expired:
            del self._data[sid]
        return len(expired)


def sign_session_id(session_id: str, secret: str) -> str:
    return jwt.encode({"sid": session_id}, secret, algorithm=ALGORITHM)


def unsign_session_id(token: str, secret: str) -> Optional[str]:
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError:
        return None
    sid = payload.get("sid")
    return sid if isinstance(sid, str) else None


def set_session_cookie(response: Response, session: SessionData, secret: str, ttl_seconds: int = SESSION_TTL_SECONDS) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=sign_session_id(session.session_id, secret),
        max_age=ttl_seconds,
        httponly=True,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")


def resolve_session(request: Request) -> Optional[SessionData]:
    """Look up the session named by the request's cookie, if any."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        return None
    sid = unsign_session_id(token, request.app.state.settings.session_secret)
    if sid is None:
        return None
    return request.app.state.sessions.get(sid)


# Dependencies: handlers receive the session explicitly as a parameter
def get_current_session(request: Request) -> Optional[SessionData]:
    return getattr(request.state, "session", None)


def require_session(request: Request) -> SessionData:
    session = get_current_session(request)
    if session is None:
        raise Unauthenticated()
    return session


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.sessions
