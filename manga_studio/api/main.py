import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from manga_studio.api.routes import manga_projects
from manga_studio.db.document_store import DocumentStoreError
from manga_studio.db.sqlite_db import init_db
from manga_studio.infra.config import CORS_ORIGINS, PROJECTS_COLLECTION

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    yield


app = FastAPI(title="Manga Studio", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(manga_projects.router)


@app.exception_handler(DocumentStoreError)
async def document_store_error_handler(request: Request, exc: DocumentStoreError):
    # Storage failures are not retried server-side; the editor decides.
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": "Erreur de stockage"})


@app.get("/api/health")
async def health():
    return {"status": "ok", "collection": PROJECTS_COLLECTION}
