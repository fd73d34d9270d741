from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from sentiview.chart import render_pie_chart
from sentiview.errors import InputError, SessionNotFoundError
from sentiview.languages import Language, get_languages
from sentiview.models import (
    AnalyzeBody,
    InputTypeBody,
    LanguageBody,
    SessionSnapshot,
    TallyResponse,
)
from sentiview.orchestrator import Orchestrator
from sentiview.sessions import SessionStore, get_session_store
from sentiview.tally import chart_data

router = APIRouter(prefix="/v1", tags=["http"])

Store = Annotated[SessionStore, Depends(get_session_store)]


def get_session(session_id: str, store: Store) -> Orchestrator:
    try:
        return store.get(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


Session = Annotated[Orchestrator, Depends(get_session)]


@router.get("/languages")
async def list_languages() -> list[Language]:
    return get_languages()


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(store: Store) -> SessionSnapshot:
    return store.create().snapshot()


@router.get("/sessions/{session_id}")
async def read_session(session: Session) -> SessionSnapshot:
    return session.snapshot()


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str, store: Store) -> Response:
    store.delete(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/sessions/{session_id}/language")
async def update_language(body: LanguageBody, session: Session) -> SessionSnapshot:
    session.set_language(body.language)
    return session.snapshot()


@router.put("/sessions/{session_id}/input-type")
async def update_input_type(body: InputTypeBody, session: Session) -> SessionSnapshot:
    session.set_input_type(body.input_type)
    return session.snapshot()


# POST analyze endpoint, text and transcribed voice end up in the same handler
@router.post("/sessions/{session_id}/analyze")
async def analyze(body: AnalyzeBody, session: Session) -> SessionSnapshot:
    if body.text is not None:
        session.set_input(body.text)

    result = await session.handle_analyze()
    if result is None:
        failure = session.last_failure
        status_code = 400 if isinstance(failure, InputError) else 502
        raise HTTPException(status_code=status_code, detail=session.state.last_error)
    return session.snapshot()


@router.get("/sessions/{session_id}/tally")
async def read_tally(session: Session) -> TallyResponse:
    tally = session.state.tally
    return TallyResponse(tally=tally, chart=chart_data(tally))


@router.get("/sessions/{session_id}/tally/chart.png")
async def read_tally_chart(session: Session) -> Response:
    png = render_pie_chart(session.state.tally)
    return Response(content=png, media_type="image/png")
