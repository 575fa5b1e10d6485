from dotenv import load_dotenv
load_dotenv()

import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from helpers.dependencies import get_settings
from helpers.errors import AuditError
from helpers.tortoise_config import lifespan

# ----- Routers / controllers -----
from controllers import ai_controller, audit_controller, oauth_controller

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("app")

app = FastAPI(title="HubSpot Data Audit", lifespan=lifespan)

# ----- Middlewares -----
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ----- Error rendering -----
@app.exception_handler(AuditError)
async def _audit_error(_: Request, exc: AuditError):
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc)})


@app.exception_handler(RequestValidationError)
async def _validation_error(_: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = f"Invalid request: {where} {first.get('msg', '')}".strip()
    return JSONResponse(status_code=400, content={"message": msg})


@app.exception_handler(Exception)
async def _unhandled(request: Request, exc: Exception):
    logger.exception("unhandled error path=%s", request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


# ----- Routers -----
app.include_router(oauth_controller.router, prefix="/api", tags=["OAuth"])
app.include_router(audit_controller.router, prefix="/api", tags=["Audit"])
app.include_router(ai_controller.router, prefix="/api", tags=["AI"])


@app.get("/health")
def health():
    return {"status": "ok"}


# ----- Static front-end (optional) -----
PUBLIC_DIR = Path(__file__).parent / "public"


def add_front_end(target: FastAPI, public_dir: Path) -> None:
    """
    Serve the single-page front-end: real files under `public_dir` as-is,
    any other non-API path falls back to index.html so client-side routes
    survive a reload.
    """
    root = public_dir.resolve()

    @target.get("/{full_path:path}", include_in_schema=False)
    async def front_end(full_path: str):
        if full_path.startswith("api/"):
            raise AuditError("Not found", status_code=404)
        candidate = (root / full_path).resolve()
        if full_path and candidate.is_file() and root in candidate.parents:
            return FileResponse(candidate)
        return FileResponse(root / "index.html")


if PUBLIC_DIR.is_dir():
    add_front_end(app, PUBLIC_DIR)
