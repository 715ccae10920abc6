from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from document_manager.core.config import settings
from document_manager.core.error_handlers import register_error_handlers
from document_manager.core.http_hardening import install_http_hardening
from document_manager.core.logging import configure_logging
from document_manager.api.router import router as api_router

configure_logging()

app = FastAPI(title=settings.APP_NAME, version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
install_http_hardening(app)
register_error_handlers(app)

app.include_router(api_router, prefix="/api")

@app.get("/", include_in_schema=False)
def landing():
    return JSONResponse({"service": settings.APP_NAME, "index": settings.ENTITY_INDEX})

@app.get("/health")
def health():
    return {"status": "ok"}
