import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auth import router as auth_router
from core import db
from core.errors import APIError, api_error_handler
from core.logging import access_log_middleware, configure_logging
from lists import router as lists_router

configure_logging()


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Initialize the DB pool once per process.
    await db.init_pool()
    try:
        yield
    finally:
        await db.close_pool()


def cors_origins() -> list[str]:
    raw = os.environ.get("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


app = FastAPI(lifespan=lifespan)

# Allow the web interface dev server to call this API from the browser.
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(access_log_middleware)
app.add_exception_handler(APIError, api_error_handler)


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


app.include_router(auth_router.router, tags=["auth"])
# Catch-all under /api; must stay last.
app.include_router(lists_router.router, tags=["lists"])
