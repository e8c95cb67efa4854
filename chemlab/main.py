"""FastAPI main application."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from . import __version__
from .config import settings
from .db import DatabaseConnection
from .db.repositories import AuditLogRepository
from .services import ConversationStateStore, LabDataService, ScheduleUpdateRegistry
from .services.chatbot import ChatbotService
from .utils.logger import init_app_logger
from .api.v1 import chatbot, usage, schedules


# Initialize logger
logger = init_app_logger(settings)

# Global instances
db_connection: DatabaseConnection = None
lab_data_instance: LabDataService = None
schedule_registry_instance: ScheduleUpdateRegistry = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    Args:
        app: FastAPI application instance
    """
    global db_connection, lab_data_instance, schedule_registry_instance

    # Startup
    logger.info("=" * 70)
    logger.info("Starting Chemistry Lab Assistant...")
    logger.info("=" * 70)

    logger.info("")
    logger.info("📡 Server Configuration:")
    logger.info(f"  Host: {settings.host}")
    logger.info(f"  Port: {settings.port}")
    logger.info(f"  Debug: {settings.debug}")
    logger.info(f"  Log Level: {settings.log_level}")
    logger.info(f"  Log File: {settings.log_file}")

    logger.info("")
    logger.info("⚙️  Assistant Configuration:")
    logger.info(f"  Message Max Length: {settings.message_max_length}")
    logger.info(f"  Low Stock Threshold: {settings.low_stock_threshold}")
    logger.info(f"  Expiry Warning Days: {settings.expiry_warning_days}")
    logger.info(f"  Chemical Cache: {settings.chemical_cache_size} entries / {settings.chemical_cache_ttl}s")
    logger.info(f"  Equipment Cache: {settings.equipment_cache_size} entries / {settings.equipment_cache_ttl}s")
    logger.info(f"  Search Cache: {settings.search_cache_size} entries / {settings.search_cache_ttl}s")

    logger.info("")
    logger.info("🗄️  Opening Database...")
    db_connection = DatabaseConnection(settings.database_path)
    conn = db_connection.conn
    logger.info(f"  Database: {settings.database_path}")

    logger.info("")
    logger.info("🚀 Initializing Services...")
    lab_data_instance = LabDataService(conn, settings)
    state_store = ConversationStateStore(conn)
    audit_repo = AuditLogRepository(conn)
    chatbot_service = ChatbotService(lab_data_instance, state_store, audit_repo, settings)
    schedule_registry_instance = ScheduleUpdateRegistry()

    # Set services in API modules
    chatbot.chatbot_service = chatbot_service
    chatbot.lab_data = lab_data_instance
    chatbot.state_store = state_store
    chatbot.audit_repo = audit_repo
    usage.lab_data = lab_data_instance
    schedules.lab_data = lab_data_instance
    schedules.schedule_registry = schedule_registry_instance

    logger.info("")
    logger.info("=" * 70)
    logger.info("✅ Chemistry Lab Assistant started successfully!")
    logger.info(f"📍 Access at: http://{settings.host}:{settings.port}")
    logger.info(f"📚 API Docs: http://{settings.host}:{settings.port}/docs")
    logger.info("=" * 70)

    yield

    # Shutdown
    logger.info("")
    logger.info("=" * 70)
    logger.info("Shutting down Chemistry Lab Assistant...")
    logger.info("=" * 70)

    if schedule_registry_instance:
        schedule_registry_instance.close_all()

    if db_connection:
        db_connection.close()

    logger.info("✅ Chemistry Lab Assistant shut down successfully")


# Create FastAPI application
app = FastAPI(
    title="Chemistry Lab Assistant",
    description="Chat assistant over a chemistry lab's inventory, equipment and schedules",
    version=__version__,
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(chatbot.router)
app.include_router(usage.router)
app.include_router(schedules.router)


@app.get("/")
async def read_root():
    """Service information."""
    return {
        "message": "Chemistry Lab Assistant API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


@app.get("/health")
async def health():
    """
    Health check endpoint.

    Returns:
        Health status, with database and cache details once started
    """
    if lab_data_instance is None:
        return {"status": "starting", "service": "Chemistry Lab Assistant"}

    report = lab_data_instance.health_check()
    report["service"] = "Chemistry Lab Assistant"
    return report


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "chemlab.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
