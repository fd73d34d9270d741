import asyncio
import base64
import concurrent.futures
import threading
import time
from queue import Queue
from typing import Coroutine, Optional

from elevenlabs import RealtimeAudioOptions, RealtimeEvents
from elevenlabs.realtime.scribe import AudioFormat, CommitStrategy

from sentiview.config import get_speech_provider
from sentiview.deps import (
    get_elevenlabs,
    get_speech_v2_client,
    has_elevenlabs_key,
    has_google_credentials,
)
from sentiview.logging_config import get_logger
from sentiview.models import TranscriptEvent
from sentiview.speech_config import get_audio_request, get_streaming_config_request
from sentiview.transcription import ErrorHandler, EventHandler, SpeechCapability

logger = get_logger(__name__)

# Google streaming sessions are capped by the API
STREAM_LIMIT_SECONDS = 240
MAX_CHUNK_SIZE = 25600
THREAD_JOIN_TIMEOUT = 5.0


class _LoopBridge:
    """Schedules handler coroutines on the event loop that started the session."""

    def __init__(self):
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def bind(self) -> None:
        self._loop = asyncio.get_running_loop()

    def schedule(self, coro: Coroutine) -> Optional[concurrent.futures.Future]:
        if self._loop is None or self._loop.is_closed():
            coro.close()
            return None
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        future.add_done_callback(_log_handler_failure)
        return future


def _log_handler_failure(future: concurrent.futures.Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error("[STT] Transcript handler failed: %r", exc, exc_info=exc)


class ElevenLabsCapability:
    """Realtime Scribe session. Partial transcripts are interim, VAD commits are final."""

    def __init__(self):
        self._connection = None
        self._bridge = _LoopBridge()

    def is_supported(self) -> bool:
        return has_elevenlabs_key()

    async def start(self, on_event: EventHandler, on_error: ErrorHandler) -> None:
        logger.info("[STT] Starting ElevenLabs STT connection")
        self._bridge.bind()
        connection = await get_elevenlabs().speech_to_text.realtime.connect(
            RealtimeAudioOptions(
                model_id="scribe_v2_realtime",
                audio_format=AudioFormat.PCM_16000,
                sample_rate=16000,
                include_timestamps=False,
                commit_strategy=CommitStrategy.VAD,
                vad_silence_threshold_secs=1.5,
                vad_threshold=0.4,
                min_speech_duration_ms=100,
                min_silence_duration_ms=100,
            )
        )

        def handle_session_started(data):
            logger.info("[STT] ElevenLabs session started: %s", data.get("session_id", "unknown"))

        def handle_partial(data):
            self._bridge.schedule(
                on_event(TranscriptEvent(text=data.get("text", ""), is_final=False))
            )

        def handle_committed(data):
            self._bridge.schedule(
                on_event(TranscriptEvent(text=data.get("text", ""), is_final=True))
            )

        def handle_error(error):
            self._bridge.schedule(on_error(str(error)))

        def handle_close():
            logger.info("[STT] ElevenLabs connection closed")

        connection.on(RealtimeEvents.SESSION_STARTED, handle_session_started)
        connection.on(RealtimeEvents.PARTIAL_TRANSCRIPT, handle_partial)
        connection.on(RealtimeEvents.COMMITTED_TRANSCRIPT, handle_committed)
        connection.on(RealtimeEvents.ERROR, handle_error)
        connection.on(RealtimeEvents.CLOSE, handle_close)
        self._connection = connection

    async def send_audio(self, chunk: bytes) -> None:
        if self._connection is None:
            return
        audio_base64 = base64.b64encode(chunk).decode("utf-8")
        await self._connection.send({"audio_base_64": audio_base64})

    async def stop(self) -> None:
        connection, self._connection = self._connection, None
        if connection is not None:
            await connection.close()


class GoogleStreamingCapability:
    """Google Cloud Speech v2 streaming recognition, run in a worker thread."""

    def __init__(self, language: str = "en"):
        self._language = language
        self._audio_queue: Queue = Queue()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._bridge = _LoopBridge()

    def is_supported(self) -> bool:
        return has_google_credentials()

    async def start(self, on_event: EventHandler, on_error: ErrorHandler) -> None:
        logger.info("[STT] Starting Google STT thread")
        self._bridge.bind()
        self._stop.clear()
        config_request = get_streaming_config_request(self._language)

        def requests():
            start = time.time()
            yield config_request
            while not self._stop.is_set():
                if time.time() - start > STREAM_LIMIT_SECONDS:
                    logger.info("[STT] Streaming time limit reached, ending request stream")
                    break
                chunk = self._audio_queue.get()
                if chunk is None:
                    break
                yield get_audio_request(chunk)

        def stt_thread():
            try:
                responses = get_speech_v2_client().streaming_recognize(requests=requests())
                for response in responses:
                    for result in response.results:
                        if not result.alternatives:
                            continue
                        self._bridge.schedule(
                            on_event(
                                TranscriptEvent(
                                    text=result.alternatives[0].transcript,
                                    is_final=result.is_final,
                                )
                            )
                        )
            except Exception as e:
                if not self._stop.is_set():
                    logger.error("[STT] Exception in Google STT thread: %s", e)
                    self._bridge.schedule(on_error(str(e)))

        self._thread = threading.Thread(target=stt_thread, daemon=True)
        self._thread.start()

    async def send_audio(self, chunk: bytes) -> None:
        if self._stop.is_set():
            return
        for i in range(0, len(chunk), MAX_CHUNK_SIZE):
            self._audio_queue.put(chunk[i : i + MAX_CHUNK_SIZE])

    async def stop(self) -> None:
        self._stop.set()
        self._audio_queue.put(None)
        thread, self._thread = self._thread, None
        if thread is not None:
            await asyncio.to_thread(thread.join, THREAD_JOIN_TIMEOUT)


def get_speech_capability(provider: Optional[str] = None, language: str = "en") -> SpeechCapability:
    provider = (provider or get_speech_provider()).lower()
    if provider == "elevenlabs":
        return ElevenLabsCapability()
    if provider == "google":
        return GoogleStreamingCapability(language=language)
    raise ValueError(f"Unknown speech provider: {provider}")
