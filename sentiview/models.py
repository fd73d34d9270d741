from enum import Enum
from typing import Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sentiview.languages import DEFAULT_LANGUAGE, is_supported_language

Sentiment = Literal["happy", "sad", "mixed"]
SENTIMENTS: tuple[str, ...] = ("happy", "sad", "mixed")


def _check_language(code: str) -> str:
    if not is_supported_language(code):
        raise ValueError(f"Unsupported language code: {code}")
    return code


class InputType(str, Enum):
    TEXT = "text"
    VOICE = "voice"


class RecordingState(str, Enum):
    UNSUPPORTED = "unsupported"
    IDLE = "idle"
    INITIALIZING = "initializing"
    RECORDING = "recording"
    FINALIZING = "finalizing"
    ERROR = "error"


class AnalysisRequest(BaseModel):
    text: str = Field(..., description="Text to analyze")
    language: str = Field(DEFAULT_LANGUAGE, description="Language code for the analysis narrative")

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Text must not be empty")
        return v

    @field_validator("language")
    @classmethod
    def language_supported(cls, v: str) -> str:
        return _check_language(v)


class AnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    sentiment: Sentiment = Field(..., description="Detected sentiment category")
    confidence: int = Field(..., ge=0, le=100, description="Confidence score between 0 and 100")
    translation: str = Field(..., description="Analysis narrative in the requested language")


FALLBACK_RESULT = AnalysisResult(sentiment="mixed", confidence=0, translation="")


class TallyState(BaseModel):
    model_config = ConfigDict(frozen=True)

    happy: int = Field(0, ge=0)
    sad: int = Field(0, ge=0)
    mixed: int = Field(0, ge=0)

    @property
    def total(self) -> int:
        return self.happy + self.sad + self.mixed

    def increment(self, sentiment: Sentiment) -> "TallyState":
        if sentiment not in SENTIMENTS:
            raise ValueError(f"Unknown sentiment: {sentiment}")
        return self.model_copy(update={sentiment: getattr(self, sentiment) + 1})


class ChartSlice(BaseModel):
    name: Literal["Happy", "Sad", "Mixed"]
    value: int = Field(..., ge=0)


class TranscriptEvent(BaseModel):
    text: str = Field("", description="Transcript text, interim or final")
    is_final: bool = Field(False, description="True once the recognizer commits the utterance")


class SessionState(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    session_id: str = Field(default_factory=lambda: str(uuid4()))
    input: str = ""
    input_type: InputType = InputType.TEXT
    language: str = DEFAULT_LANGUAGE
    busy: bool = False
    last_result: Optional[AnalysisResult] = None
    last_error: str = ""
    tally: TallyState = Field(default_factory=TallyState)
    transcript: str = ""

    @field_validator("language")
    @classmethod
    def language_supported(cls, v: str) -> str:
        return _check_language(v)


class SessionSnapshot(BaseModel):
    session_id: str
    input_type: InputType
    language: str
    language_name: str
    busy: bool
    result: Optional[AnalysisResult] = None
    error: str = ""
    tally: TallyState
    transcript: str = ""


# Request bodies
class AnalyzeBody(BaseModel):
    text: Optional[str] = Field(None, description="Text to analyze; falls back to the session input")


class LanguageBody(BaseModel):
    language: str

    @field_validator("language")
    @classmethod
    def language_supported(cls, v: str) -> str:
        return _check_language(v)


class InputTypeBody(BaseModel):
    input_type: InputType


class TallyResponse(BaseModel):
    tally: TallyState
    chart: list[ChartSlice]
