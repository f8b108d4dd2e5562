import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

# Environment is loaded by Pydantic Settings (see starquiz.core.settings).
from starquiz import __version__
from starquiz.api import register_routes
from starquiz.core.dependencies import get_fact_store
from starquiz.core.exceptions import register_exception_handlers
from starquiz.core.logging import setup_logging
from starquiz.core.settings import settings

# Initialize logging early so all modules inherit the handlers/level
setup_logging(settings.resolved_log_level)

app = FastAPI(title=settings.app_name, version=__version__)
register_exception_handlers(app)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_routes(app)

if settings.public_dir.is_dir():
    app.mount(
        settings.public_url_prefix,
        StaticFiles(directory=settings.public_dir),
        name="public",
    )

logger = logging.getLogger(__name__)
logger.info("starquiz API initialized")


@app.on_event("startup")
def _load_facts_on_startup() -> None:
    """Build the fact store once at boot so the first request does not pay for it."""
    sizes = get_fact_store().pool_sizes()
    logger.info("Fact pools ready: %s", sizes)
