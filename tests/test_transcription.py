import asyncio

import pytest

from sentiview.errors import TranscriptionError
from sentiview.models import AnalysisResult, RecordingState, TranscriptEvent
from sentiview.orchestrator import Orchestrator
from sentiview.transcription import (
    PERMISSION_MESSAGE,
    UNSUPPORTED_MESSAGE,
    TranscriptionAdapter,
)


class FakeCapability:
    def __init__(self, supported: bool = True, fail_start: Exception | None = None):
        self.supported = supported
        self.fail_start = fail_start
        self.started = 0
        self.stopped = 0
        self.audio: list[bytes] = []
        self.on_event = None
        self.on_error = None

    def is_supported(self) -> bool:
        return self.supported

    async def start(self, on_event, on_error) -> None:
        self.started += 1
        self.on_event = on_event
        self.on_error = on_error
        if self.fail_start:
            raise self.fail_start

    async def send_audio(self, chunk: bytes) -> None:
        self.audio.append(chunk)

    async def stop(self) -> None:
        self.stopped += 1

    async def emit(self, text: str, is_final: bool) -> None:
        await self.on_event(TranscriptEvent(text=text, is_final=is_final))

    async def fail(self, message: str) -> None:
        await self.on_error(message)


class SlowCapability(FakeCapability):
    """start() blocks until the test releases it."""

    def __init__(self):
        super().__init__()
        self.release = None

    async def start(self, on_event, on_error) -> None:
        await super().start(on_event, on_error)
        await self.release.wait()


async def granted() -> bool:
    return True


async def denied() -> bool:
    return False


def make_adapter(capability=None, gate=granted):
    capability = capability or FakeCapability()
    transcripts: list[str] = []

    async def on_transcript(text: str) -> None:
        transcripts.append(text)

    adapter = TranscriptionAdapter(capability, gate, on_transcript)
    return adapter, capability, transcripts


class TestCapabilityDetection:
    def test_unsupported_is_permanent(self):
        adapter, capability, _ = make_adapter(FakeCapability(supported=False))
        assert adapter.state == RecordingState.UNSUPPORTED
        assert adapter.can_record is False
        assert adapter.last_error == UNSUPPORTED_MESSAGE

        with pytest.raises(TranscriptionError, match="not supported"):
            asyncio.run(adapter.start_recording())
        assert capability.started == 0
        assert adapter.state == RecordingState.UNSUPPORTED

    def test_supported_starts_idle(self):
        adapter, _, _ = make_adapter()
        assert adapter.state == RecordingState.IDLE
        assert adapter.can_record is True


class TestPermissionGate:
    def test_denied_moves_to_error(self):
        adapter, capability, _ = make_adapter(gate=denied)

        with pytest.raises(TranscriptionError) as exc_info:
            asyncio.run(adapter.start_recording())

        assert exc_info.value.message == PERMISSION_MESSAGE
        assert adapter.state == RecordingState.ERROR
        assert adapter.last_error == PERMISSION_MESSAGE
        assert adapter.can_record is False
        assert capability.started == 0

    def test_denied_disables_further_attempts(self):
        adapter, capability, _ = make_adapter(gate=denied)
        with pytest.raises(TranscriptionError):
            asyncio.run(adapter.start_recording())
        with pytest.raises(TranscriptionError):
            asyncio.run(adapter.start_recording())
        assert capability.started == 0

    def test_gate_exception_treated_as_denied(self):
        async def broken_gate() -> bool:
            raise RuntimeError("no audio device")

        adapter, _, _ = make_adapter(gate=broken_gate)
        with pytest.raises(TranscriptionError):
            asyncio.run(adapter.start_recording())
        assert adapter.last_error == PERMISSION_MESSAGE


class TestRecording:
    def test_only_final_transcript_is_emitted(self):
        adapter, capability, transcripts = make_adapter()

        async def scenario():
            await adapter.start_recording()
            assert adapter.state == RecordingState.RECORDING
            await capability.emit("I am", is_final=False)
            await capability.emit("I am so happy", is_final=False)
            assert transcripts == []
            await capability.emit("I am so happy today!", is_final=True)

        asyncio.run(scenario())
        assert transcripts == ["I am so happy today!"]
        assert adapter.state == RecordingState.IDLE
        assert capability.stopped == 1

    def test_events_after_final_are_ignored(self):
        adapter, capability, transcripts = make_adapter()

        async def scenario():
            await adapter.start_recording()
            await capability.emit("first", is_final=True)
            await capability.emit("late", is_final=True)

        asyncio.run(scenario())
        assert transcripts == ["first"]

    def test_empty_final_transcript_not_emitted(self):
        adapter, capability, transcripts = make_adapter()

        async def scenario():
            await adapter.start_recording()
            await capability.emit("   ", is_final=True)

        asyncio.run(scenario())
        assert transcripts == []
        assert adapter.state == RecordingState.IDLE
        assert capability.stopped == 1

    def test_can_record_again_after_final(self):
        adapter, capability, transcripts = make_adapter()

        async def scenario():
            await adapter.start_recording()
            await capability.emit("one", is_final=True)
            await adapter.start_recording()
            await capability.emit("two", is_final=True)

        asyncio.run(scenario())
        assert transcripts == ["one", "two"]
        assert capability.started == 2
        assert capability.stopped == 2

    def test_start_while_recording_is_ignored(self):
        adapter, capability, _ = make_adapter()

        async def scenario():
            await adapter.start_recording()
            await adapter.start_recording()

        asyncio.run(scenario())
        assert capability.started == 1
        assert adapter.state == RecordingState.RECORDING

    def test_audio_forwarded_only_while_recording(self):
        adapter, capability, _ = make_adapter()

        async def scenario():
            await adapter.send_audio(b"before")
            await adapter.start_recording()
            await adapter.send_audio(b"during")
            await adapter.stop_recording()
            await adapter.send_audio(b"after")

        asyncio.run(scenario())
        assert capability.audio == [b"during"]


class TestErrorsAndRelease:
    def test_backend_error_moves_to_error_and_releases(self):
        adapter, capability, transcripts = make_adapter()

        async def scenario():
            await adapter.start_recording()
            await capability.fail("network")

        asyncio.run(scenario())
        assert adapter.state == RecordingState.ERROR
        assert adapter.last_error == "Error: network. Please try again."
        assert capability.stopped == 1
        assert adapter.can_record is False
        assert transcripts == []

    def test_start_failure_moves_to_error(self):
        adapter, capability, _ = make_adapter(FakeCapability(fail_start=ConnectionError("refused")))

        with pytest.raises(TranscriptionError, match="refused"):
            asyncio.run(adapter.start_recording())
        assert adapter.state == RecordingState.ERROR
        assert capability.stopped == 1

    def test_explicit_stop_releases_once(self):
        adapter, capability, _ = make_adapter()

        async def scenario():
            await adapter.start_recording()
            await adapter.stop_recording()
            await adapter.stop_recording()
            await adapter.teardown()

        asyncio.run(scenario())
        assert adapter.state == RecordingState.IDLE
        assert capability.stopped == 1

    def test_teardown_force_stops_recording(self):
        adapter, capability, transcripts = make_adapter()

        async def scenario():
            await adapter.start_recording()
            await adapter.teardown()
            await capability.emit("orphan", is_final=True)
            await adapter.teardown()

        asyncio.run(scenario())
        assert capability.stopped == 1
        assert transcripts == []
        assert adapter.can_record is False

    def test_stop_during_slow_start_releases_capability(self):
        capability = SlowCapability()
        adapter, _, _ = make_adapter(capability)

        async def scenario():
            capability.release = asyncio.Event()
            task = asyncio.create_task(adapter.start_recording())
            await asyncio.sleep(0)
            assert adapter.state == RecordingState.INITIALIZING
            await adapter.stop_recording()
            capability.release.set()
            await task

        asyncio.run(scenario())
        assert adapter.state == RecordingState.IDLE
        assert capability.started == 1
        assert capability.stopped == 1

    def test_teardown_during_slow_start_releases_capability(self):
        capability = SlowCapability()
        adapter, _, transcripts = make_adapter(capability)

        async def scenario():
            capability.release = asyncio.Event()
            task = asyncio.create_task(adapter.start_recording())
            await asyncio.sleep(0)
            await adapter.teardown()
            capability.release.set()
            await task
            await capability.emit("orphan", is_final=True)

        asyncio.run(scenario())
        assert adapter.state == RecordingState.IDLE
        assert capability.stopped == 1
        assert transcripts == []

    def test_teardown_when_idle_does_not_stop(self):
        adapter, capability, _ = make_adapter()
        asyncio.run(adapter.teardown())
        assert capability.stopped == 0


class TestVoiceToAnalysis:
    def test_final_transcript_triggers_one_analysis(self):
        calls: list[tuple[str, str]] = []

        async def analyzer(text: str, language: str) -> AnalysisResult:
            calls.append((text, language))
            return AnalysisResult(sentiment="happy", confidence=90, translation="Positive.")

        orchestrator = Orchestrator(analyzer=analyzer)
        capability = FakeCapability()
        adapter = TranscriptionAdapter(capability, granted, orchestrator.handle_voice_result)

        async def scenario():
            await adapter.start_recording()
            await capability.emit("I am", is_final=False)
            await capability.emit("I am so happy today!", is_final=True)

        asyncio.run(scenario())
        assert calls == [("I am so happy today!", "en")]
        assert orchestrator.state.transcript == "I am so happy today!"
        assert orchestrator.state.tally.happy == 1
