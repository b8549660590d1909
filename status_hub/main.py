import json
from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from status_hub.config import settings
from status_hub.database import get_db, init_db, close_db
from status_hub.errors import StatusHubError, StoreError, AuthError, ValidationError, PayloadTooLarge
from status_hub.logger_config import setup_logger
from status_hub.reconciler import ingest_report, acknowledge
from status_hub.schemas import IngestReport, Snapshot, OkResponse, AckResponse, LogOut
from status_hub.signing import verify_request, now_ms
from status_hub.snapshot import assemble_snapshot

app = FastAPI(title=settings.APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
async def startup():
    setup_logger()
    await init_db()
    logger.info(f"{settings.APP_NAME} ready")

@app.on_event("shutdown")
async def shutdown():
    await close_db()

@app.exception_handler(StatusHubError)
async def status_hub_error_handler(request: Request, exc: StatusHubError):
    if isinstance(exc, StoreError):
        logger.opt(exception=exc.__cause__ or exc).error(f"{request.method} {request.url.path} failed")
    elif isinstance(exc, AuthError):
        logger.warning(f"Rejected ingest from {request.client.host if request.client else '?'}: {exc.code}")
    return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": exc.code})

# --- Helpers ---

async def read_limited_body(request: Request) -> bytes:
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > settings.MAX_BODY_BYTES:
        raise PayloadTooLarge()

    # Chunked uploads carry no content-length, stop reading once over the limit
    chunks = []
    total = 0
    async for chunk in request.stream():
        total += len(chunk)
        if total > settings.MAX_BODY_BYTES:
            raise PayloadTooLarge()
        chunks.append(chunk)
    return b"".join(chunks)

def parse_report(raw: bytes) -> IngestReport:
    if not raw.strip():
        return IngestReport()
    try:
        data = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise ValidationError(ValidationError.INVALID_JSON)
    if not isinstance(data, dict):
        raise ValidationError(ValidationError.MISSING_FIELDS)
    try:
        return IngestReport(**data)
    except PydanticValidationError:
        raise ValidationError(ValidationError.MISSING_FIELDS)

# --- Routes ---

@app.get("/health")
async def health():
    return {"ok": True}

@app.get("/api/snapshot", response_model=Snapshot)
async def get_snapshot(db: AsyncSession = Depends(get_db)):
    return await assemble_snapshot(db, now_ms(), settings.LOG_RETENTION)

@app.post("/api/ingest", response_model=OkResponse)
async def ingest(request: Request, db: AsyncSession = Depends(get_db)):
    # Signature covers the raw bytes, so read them before any JSON parsing
    raw = await read_limited_body(request)
    verify_request(request.headers, raw, settings.SHARED_SECRET, now_ms(), settings.TS_TOLERANCE_MS)

    report = parse_report(raw)
    await ingest_report(db, report, now_ms(), settings.LOG_RETENTION)
    return OkResponse()

@app.post("/api/logs/{log_id}/ack", response_model=AckResponse)
async def ack_log(log_id: str, db: AsyncSession = Depends(get_db)):
    entry = await acknowledge(db, log_id)
    return AckResponse(log=LogOut.from_row(entry))

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
