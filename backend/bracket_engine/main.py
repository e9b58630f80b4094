import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bracket_engine.config import CORS_ORIGINS, LOG_LEVEL
from bracket_engine.database import init_db
from bracket_engine.errors import BracketError
from bracket_engine.routes import runtime, schedule, tournaments

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Bracket Engine API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(tournaments.router, prefix="/api", tags=["tournaments"])
app.include_router(schedule.router, prefix="/api", tags=["schedule"])
# Score submission + advancement
app.include_router(runtime.router, prefix="/api", tags=["runtime"])


@app.exception_handler(BracketError)
async def bracket_error_handler(request: Request, exc: BracketError) -> JSONResponse:
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.on_event("startup")
def on_startup():
    init_db()


@app.get("/api/health")
def health_check():
    return {"app_name": "Bracket Engine API", "status": "healthy"}
