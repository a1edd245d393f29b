import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import get_settings
from .core.db import get_connection
from .error_handlers import register_error_handlers
from .routes import categories_router, document_count_router, products_router


settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # The database connects lazily on the first API request
    logger.info("Storefront API started")
    yield
    await get_connection().dispose()
    logger.info("Storefront API shut down")


app = FastAPI(title="Storefront API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_error_handlers(app)

app.include_router(categories_router)
app.include_router(products_router)
app.include_router(document_count_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
