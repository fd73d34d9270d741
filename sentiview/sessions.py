from sentiview.errors import SessionNotFoundError
from sentiview.logging_config import get_logger
from sentiview.orchestrator import Analyzer, Orchestrator

logger = get_logger(__name__)


class SessionStore:
    """In-memory sessions, lost on restart."""

    def __init__(self, analyzer: Analyzer | None = None):
        self._sessions: dict[str, Orchestrator] = {}
        self._analyzer = analyzer

    def create(self) -> Orchestrator:
        orchestrator = Orchestrator(analyzer=self._analyzer)
        self._sessions[orchestrator.session_id] = orchestrator
        logger.info("[SESSION] Created session %s", orchestrator.session_id)
        return orchestrator

    def get(self, session_id: str) -> Orchestrator:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(f"Session {session_id} not found")

    def delete(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is not None:
            logger.info("[SESSION] Deleted session %s", session_id)

    def __len__(self) -> int:
        return len(self._sessions)


_store = SessionStore()


def get_session_store() -> SessionStore:
    return _store
