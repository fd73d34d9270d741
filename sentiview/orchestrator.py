from typing import Awaitable, Callable, Optional

from pydantic import ValidationError

from sentiview.errors import AnalysisError, InputError, SentiViewError
from sentiview.languages import get_language_name
from sentiview.logging_config import get_logger
from sentiview.models import (
    AnalysisRequest,
    AnalysisResult,
    InputType,
    SessionSnapshot,
    SessionState,
)
from sentiview.sentiment_client import analyze_sentiment
from sentiview.tally import record_result

logger = get_logger(__name__)

EMPTY_INPUT_MESSAGE = "Please enter text or record your voice"
GENERIC_FAILURE_MESSAGE = "Failed to analyze. Please try again."

Analyzer = Callable[[str, str], Awaitable[AnalysisResult]]


def build_request(text: Optional[str], language: str) -> AnalysisRequest:
    """Validate input into an AnalysisRequest, raising InputError for the user."""
    try:
        return AnalysisRequest(text=text or "", language=language)
    except ValidationError as e:
        error = e.errors()[0]
        if error["loc"] and error["loc"][0] == "text":
            raise InputError(EMPTY_INPUT_MESSAGE) from e
        raise InputError(str(error.get("ctx", {}).get("error", error["msg"]))) from e


class Orchestrator:
    """
    Owns one session's state and routes typed or transcribed text through
    the sentiment client. Voice and text share handle_analyze.

    The busy flag is informational. Overlapping calls are not rejected and
    whichever response resolves last wins.
    """

    def __init__(self, state: Optional[SessionState] = None, analyzer: Optional[Analyzer] = None):
        self.state = state or SessionState()
        self._analyzer = analyzer or analyze_sentiment
        self.last_failure: Optional[SentiViewError] = None

    @property
    def session_id(self) -> str:
        return self.state.session_id

    def set_input(self, text: str) -> None:
        self.state.input = text

    def set_input_type(self, input_type: InputType) -> None:
        self.state.input_type = input_type
        self.state.input = ""
        self.state.last_error = ""

    def set_language(self, language: str) -> None:
        self.state.language = language

    def _fail(self, error: SentiViewError) -> None:
        self.last_failure = error
        self.state.last_error = error.message

    async def handle_analyze(self, text: Optional[str] = None) -> Optional[AnalysisResult]:
        """
        Analyze text (or the current session input) and update the tally.

        Never raises for user-facing failures: the message lands in
        state.last_error and the previous result and tally are kept.
        """
        try:
            request = build_request(
                self.state.input if text is None else text, self.state.language
            )
        except InputError as e:
            self._fail(e)
            return None

        self.state.busy = True
        self.state.last_error = ""
        self.last_failure = None
        try:
            result = await self._analyzer(request.text, request.language)
        except AnalysisError as e:
            logger.error("[ANALYZE] session %s: %s", self.session_id, e.message)
            self._fail(e if e.message else AnalysisError(GENERIC_FAILURE_MESSAGE))
            return None
        except Exception as e:
            logger.exception("[ANALYZE] session %s: unexpected error: %s", self.session_id, e)
            self._fail(AnalysisError(GENERIC_FAILURE_MESSAGE))
            return None
        finally:
            self.state.busy = False

        self.state.last_result = result
        self.state.tally = record_result(self.state.tally, result)
        return result

    async def handle_voice_result(self, text: str) -> Optional[AnalysisResult]:
        self.state.transcript = text
        return await self.handle_analyze(text)

    def snapshot(self) -> SessionSnapshot:
        state = self.state
        return SessionSnapshot(
            session_id=state.session_id,
            input_type=state.input_type,
            language=state.language,
            language_name=get_language_name(state.language) or state.language,
            busy=state.busy,
            result=state.last_result,
            error=state.last_error,
            tally=state.tally,
            transcript=state.transcript,
        )
