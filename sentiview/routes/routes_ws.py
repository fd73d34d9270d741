import json
from typing import Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from sentiview.errors import SessionNotFoundError, TranscriptionError
from sentiview.logging_config import get_logger
from sentiview.models import InputType, RecordingState
from sentiview.orchestrator import Orchestrator
from sentiview.sessions import SessionStore, get_session_store
from sentiview.speech_providers import get_speech_capability
from sentiview.transcription import SpeechCapability, TranscriptionAdapter

logger = get_logger(__name__)

router = APIRouter(prefix="/v1", tags=["ws"])

PROVIDERS = ["elevenlabs", "google"]


def get_capability_factory():
    return get_speech_capability


async def _send_state(websocket: WebSocket, adapter: TranscriptionAdapter) -> RecordingState:
    await websocket.send_json({"type": "state", "state": adapter.state.value})
    if adapter.state in (RecordingState.ERROR, RecordingState.UNSUPPORTED):
        await websocket.send_json({"type": "error", "message": adapter.last_error})
    return adapter.state


def _parse_command(text: str) -> Optional[str]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    return data.get("type")


# WebSocket for voice input. The first message carries the microphone
# permission and provider, then PCM 16kHz mono audio follows as binary frames.
@router.websocket("/sessions/{session_id}/voice")
async def websocket_voice(
    websocket: WebSocket,
    session_id: str,
    store: SessionStore = Depends(get_session_store),
    capability_factory=Depends(get_capability_factory),
):
    await websocket.accept()

    try:
        session: Orchestrator = store.get(session_id)
    except SessionNotFoundError as e:
        await websocket.send_json({"type": "error", "message": e.message})
        await websocket.close(code=1008)
        return

    try:
        config_data = await websocket.receive_json()
    except WebSocketDisconnect:
        logger.info("[VOICE] session %s disconnected before config", session_id)
        return
    except (ValueError, KeyError, TypeError) as e:
        # not JSON, or a binary frame where the config was expected
        logger.warning("[VOICE] session %s sent an invalid config frame: %s", session_id, e)
        await websocket.close(code=1003)
        return
    if not isinstance(config_data, dict):
        await websocket.close(code=1003)
        return
    provider = config_data.get("provider") or None
    logger.info("[VOICE] session %s config: %s", session_id, config_data)

    if provider is not None and provider not in PROVIDERS:
        await websocket.close(code=1003)
        return

    async def permission_gate() -> bool:
        return config_data.get("microphone") == "granted"

    last_state: Optional[RecordingState] = None

    async def sync_state(force: bool = False) -> None:
        nonlocal last_state
        if force or adapter.state != last_state:
            last_state = await _send_state(websocket, adapter)

    async def on_transcript(text: str) -> None:
        await websocket.send_json({"type": "transcript", "text": text})
        await session.handle_voice_result(text)
        if session.state.last_error:
            await websocket.send_json({"type": "error", "message": session.state.last_error})
        await websocket.send_json(
            {"type": "result", "session": session.snapshot().model_dump(mode="json")}
        )
        # a final transcript can arrive between client frames
        await sync_state()

    session.set_input_type(InputType.VOICE)
    capability: SpeechCapability = capability_factory(provider, session.state.language)
    adapter = TranscriptionAdapter(capability, permission_gate, on_transcript)

    try:
        await sync_state(force=True)
        if adapter.can_record:
            try:
                await adapter.start_recording()
            except TranscriptionError as e:
                logger.warning("[VOICE] session %s: %s", session_id, e.message)
            await sync_state(force=True)

        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            if message.get("bytes") is not None:
                await adapter.send_audio(message["bytes"])
            elif message.get("text") is not None:
                command = _parse_command(message["text"])
                if command == "stop":
                    await adapter.stop_recording()
                elif command == "start":
                    try:
                        await adapter.start_recording()
                    except TranscriptionError as e:
                        logger.warning("[VOICE] session %s: %s", session_id, e.message)

            await sync_state()
    except WebSocketDisconnect as e:
        logger.info("[VOICE] Websocket disconnected: %s", e)
    finally:
        await adapter.teardown()
        logger.info("[VOICE] session %s voice input closed", session_id)
