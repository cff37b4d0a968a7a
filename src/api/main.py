"""
FastAPI application - Main entry point
"""

from dotenv import load_dotenv

load_dotenv()

import logging
import os
from datetime import datetime
from urllib.parse import parse_qs, urlparse

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api import dependencies
from src.api.endpoints.rpa_webhook import router as rpa_webhook_router
from src.api.submissions_router import api as submissions_api
from src.integrations.policy.dispatch_service import DispatchService
from src.integrations.policy.rating_sheet_service import RatingSheetService
from src.submissions.controller import SubmissionController
from src.utils.config_loader import DispatchConfig, load_dispatch_config

# Setup logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Submission Dispatch API",
    description="Normalizes insured records and dispatches them to carrier automation bots",
    version="1.0.0",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================

# Initialize database: use real Postgres when env is set, else in-memory stub
if os.getenv("DATABASE_URL") and os.getenv("USE_POSTGRES_SUBMISSIONS", "").lower() in ("1", "true", "yes"):
    from src.database.postgres_real import PostgresDB

    postgres_db = PostgresDB(connection_string=os.environ["DATABASE_URL"])
else:
    from src.database.postgres import PostgresDB

    postgres_db = PostgresDB()

dispatch_config = load_dispatch_config()


def _should_use_real_integrations(config: DispatchConfig) -> bool:
    mode = os.getenv("INTEGRATIONS_MODE", "").strip().lower()
    if mode in {"real", "live"}:
        return True
    if mode in {"mock", "test"}:
        return False
    return config.has_any_webhook()


def _select_clients(config: DispatchConfig):
    if _should_use_real_integrations(config):
        from src.integrations.clients.real_http.rating_sheets import RealRatingSheetClient
        from src.integrations.clients.real_http.rpa_bots import RealRpaBotClient

        logger.info("Using real carrier bot clients")
        return RealRpaBotClient(config), RealRatingSheetClient(config.spreadsheet)

    from src.integrations.clients.mocks.rpa_bots import MockRatingSheetClient, MockRpaBotClient

    logger.info("Using mock carrier bot clients (INTEGRATIONS_MODE=%s)", os.getenv("INTEGRATIONS_MODE", ""))
    return MockRpaBotClient(), MockRatingSheetClient()


bot_client, sheet_client = _select_clients(dispatch_config)

submission_controller = SubmissionController(
    postgres_db,
    dispatch_service=DispatchService(bot_client, postgres_db),
    rating_sheet_service=RatingSheetService(
        sheet_client,
        postgres_db,
        effective_date_offset_days=dispatch_config.spreadsheet.effective_date_offset_days,
    ),
)
dependencies.configure(postgres_db, submission_controller)

app.include_router(submissions_api, prefix="/api/v1")
app.include_router(rpa_webhook_router, prefix="/api/v1")


# ============================================================================
# ENDPOINTS
# ============================================================================
@app.get("/", tags=["Health"])
async def root():
    """Health check endpoint."""
    return {"service": "Submission Dispatch API", "status": "healthy", "version": "1.0.0", "timestamp": datetime.now().isoformat()}


@app.get("/health", tags=["Health"])
async def health_check(db=Depends(dependencies.get_db)):
    """Detailed health check (database)."""
    try:
        database = "connected" if db.ping() else "unavailable"
    except Exception as e:
        logger.warning("Database ping failed: %s", e)
        database = "unavailable"
    return {
        "status": "healthy" if database == "connected" else "degraded",
        "database": database,
        "integrations": type(bot_client).__name__,
        "timestamp": datetime.now().isoformat(),
    }


# ============================================================================
# STARTUP/SHUTDOWN EVENTS
# ============================================================================
@app.on_event("startup")
async def startup_event():
    """Initialize on startup"""
    logger.info("Starting Submission Dispatch API...")

    # Log sanitized DB target details (no credentials) for connectivity debugging.
    db_url = os.getenv("DATABASE_URL", "")
    if db_url:
        try:
            parsed = urlparse(db_url)
            query = parse_qs(parsed.query or "")
            logger.info(
                "DATABASE_URL target: scheme=%s host=%s port=%s db=%s sslmode=%s use_postgres=%s",
                parsed.scheme,
                parsed.hostname,
                parsed.port or 5432,
                (parsed.path or "").lstrip("/"),
                (query.get("sslmode") or [""])[0],
                os.getenv("USE_POSTGRES_SUBMISSIONS", ""),
            )
        except ValueError as e:
            logger.warning("Could not parse DATABASE_URL for startup logging: %s", e)
    else:
        logger.info("DATABASE_URL not set; using in-memory PostgresDB stub")

    # Create database tables if they don't exist
    try:
        postgres_db.create_tables()
        logger.info("Database tables initialized")
    except Exception as e:
        logger.error(f"Error initializing database: {str(e)}")

    for carrier, endpoint in dispatch_config.carriers.items():
        logger.info("Carrier %s: enabled=%s webhook=%s", carrier.value, endpoint.enabled, bool(endpoint.webhook_url))


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info("Shutting down Submission Dispatch API...")

