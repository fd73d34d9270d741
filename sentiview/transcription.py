"""
Transcription adapter.

Wraps a speech capability (ElevenLabs, Google streaming, or a test double)
and turns its event stream into a single finalized transcript per recording
pass:

    IDLE -> INITIALIZING -> RECORDING -> FINALIZING -> IDLE
                 |              |
                 +----> ERROR <-+

UNSUPPORTED and ERROR are terminal for an adapter instance. A new adapter
(a new voice session) is needed to record again.
"""

from typing import Awaitable, Callable, Protocol

from sentiview.errors import TranscriptionError
from sentiview.logging_config import get_logger
from sentiview.models import RecordingState, TranscriptEvent

logger = get_logger(__name__)

UNSUPPORTED_MESSAGE = (
    "Speech recognition is not supported by the configured provider. "
    "Please use text input instead."
)
PERMISSION_MESSAGE = (
    "Error accessing microphone. Please ensure you have granted microphone permissions."
)

EventHandler = Callable[[TranscriptEvent], Awaitable[None]]
ErrorHandler = Callable[[str], Awaitable[None]]
PermissionGate = Callable[[], Awaitable[bool]]
TranscriptCallback = Callable[[str], Awaitable[None]]


class SpeechCapability(Protocol):
    def is_supported(self) -> bool: ...

    async def start(self, on_event: EventHandler, on_error: ErrorHandler) -> None: ...

    async def send_audio(self, chunk: bytes) -> None: ...

    async def stop(self) -> None: ...


class TranscriptionAdapter:
    def __init__(
        self,
        capability: SpeechCapability,
        permission_gate: PermissionGate,
        on_transcript: TranscriptCallback,
    ):
        self._capability = capability
        self._permission_gate = permission_gate
        self._on_transcript = on_transcript
        self._active = False
        self._torn_down = False
        self.last_error = ""

        # capability detection happens once
        if capability.is_supported():
            self.state = RecordingState.IDLE
        else:
            self.state = RecordingState.UNSUPPORTED
            self.last_error = UNSUPPORTED_MESSAGE
            logger.warning("[STT] Speech capability unsupported, voice input disabled")

    @property
    def can_record(self) -> bool:
        return self.state == RecordingState.IDLE and not self._torn_down

    @property
    def is_recording(self) -> bool:
        return self.state == RecordingState.RECORDING

    async def start_recording(self) -> None:
        if self.state in (
            RecordingState.INITIALIZING,
            RecordingState.RECORDING,
            RecordingState.FINALIZING,
        ):
            logger.debug("[STT] start ignored, already %s", self.state.value)
            return
        if self.state in (RecordingState.UNSUPPORTED, RecordingState.ERROR):
            raise TranscriptionError(self.last_error)
        if self._torn_down:
            raise TranscriptionError("Voice input has been closed.")

        self.last_error = ""
        self.state = RecordingState.INITIALIZING

        try:
            granted = await self._permission_gate()
        except Exception as e:
            logger.error("[STT] Error accessing microphone: %s", e)
            granted = False

        if not granted:
            self.last_error = PERMISSION_MESSAGE
            self.state = RecordingState.ERROR
            raise TranscriptionError(PERMISSION_MESSAGE)

        if self._torn_down or self.state != RecordingState.INITIALIZING:
            # torn down or stopped while waiting for the permission gate
            return

        try:
            await self._capability.start(self._handle_event, self._handle_error)
        except Exception as e:
            message = f"Error: {e}. Please try again."
            self._active = True
            await self._fail(message)
            raise TranscriptionError(message) from e

        self._active = True
        if self._torn_down or self.state != RecordingState.INITIALIZING:
            # stopped, torn down or failed while the capability was starting
            await self._release()
            return

        self.state = RecordingState.RECORDING
        logger.info("[STT] Recording started")

    async def send_audio(self, chunk: bytes) -> None:
        if self.state != RecordingState.RECORDING:
            return
        await self._capability.send_audio(chunk)

    async def stop_recording(self) -> None:
        if self.state not in (RecordingState.INITIALIZING, RecordingState.RECORDING):
            return
        await self._release()
        self.state = RecordingState.IDLE
        logger.info("[STT] Recording stopped")

    async def teardown(self) -> None:
        self._torn_down = True
        await self._release()
        if self.state in (
            RecordingState.INITIALIZING,
            RecordingState.RECORDING,
            RecordingState.FINALIZING,
        ):
            self.state = RecordingState.IDLE

    async def _handle_event(self, event: TranscriptEvent) -> None:
        if self.state != RecordingState.RECORDING:
            return
        if not event.is_final:
            return

        self.state = RecordingState.FINALIZING
        await self._release()
        text = event.text.strip()
        self.state = RecordingState.IDLE

        if not text:
            logger.info("[STT] Final transcript was empty, nothing to analyze")
            return
        logger.info("[STT] Final transcript: %s", text)
        await self._on_transcript(text)

    async def _handle_error(self, message: str) -> None:
        if self.state not in (RecordingState.INITIALIZING, RecordingState.RECORDING):
            return
        logger.error("[STT] Speech recognition error: %s", message)
        await self._fail(f"Error: {message}. Please try again.")

    async def _fail(self, message: str) -> None:
        self.last_error = message
        self.state = RecordingState.ERROR
        await self._release()

    async def _release(self) -> None:
        if not self._active:
            return
        self._active = False
        try:
            await self._capability.stop()
        except Exception as e:
            logger.warning("[STT] Error while stopping speech capability: %s", e)
