from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sentiview.config import get_cors_origins, get_log_level, load_env_variables
from sentiview.logging_config import setup_logging
from sentiview.routes import routes_http, routes_ws

load_env_variables()
setup_logging(get_log_level())

app = FastAPI(title="SentiView")

# CORS fix
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(routes_http.router)
app.include_router(routes_ws.router)


@app.get("/")
async def root():
    return {"message": "SentiView is running"}
