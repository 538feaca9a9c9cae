"""
Campus Order - Main Application Entry Point
Food ordering backend for a campus kitchen
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import structlog

from campus_order import __version__
from campus_order.core.auth import SessionResolver
from campus_order.core.cache import TaggedCache
from campus_order.core.config import get_settings
from campus_order.core.database import init_db
from campus_order.core.errors import register_exception_handlers
from campus_order.core.events import EventBus
from campus_order.core.websocket_manager import ConnectionManager
from campus_order.services.email import EmailClient
from campus_order.services.notifications import OrderNotifier
from campus_order.api import (
    auth, users, menu, cart, orders, admin_menu, admin_pools,
    admin_orders, admin_settings, admin_reports, delivery_locations, promptpay_accounts, admins, websockets
)

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info("Initializing Campus Order backend")
    if settings.AUTO_CREATE_TABLES:
        init_db()
    else:
        logger.info("Database managed by Alembic migrations")

    event_bus = EventBus()
    email_client = EmailClient(settings)
    ws_manager = ConnectionManager()
    ws_manager.register(event_bus)
    OrderNotifier(email_client, settings.APP_BASE_URL).register(event_bus)

    app.state.cache = TaggedCache()
    app.state.event_bus = event_bus
    app.state.session_resolver = SessionResolver(settings)
    app.state.email_client = email_client
    app.state.ws_manager = ws_manager

    yield

    # Shutdown
    await email_client.aclose()
    event_bus.clear_subscribers()
    logger.info("Shutting down Campus Order backend")


# Create FastAPI application
app = FastAPI(
    title="Campus Order API",
    description="Menu, cart, checkout and order tracking for a campus kitchen",
    version=__version__,
    lifespan=lifespan,
)

# Configure middleware stack
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(auth.router, prefix="/api", tags=["auth"])
app.include_router(users.router, prefix="/api/user", tags=["users"])
app.include_router(menu.router, prefix="/api", tags=["menu"])
app.include_router(cart.router, prefix="/api/cart", tags=["cart"])
app.include_router(orders.router, prefix="/api/orders", tags=["orders"])
app.include_router(admin_menu.router, prefix="/api/admin/menu", tags=["admin-menu"])
app.include_router(admin_pools.router, prefix="/api/admin/menu/pools", tags=["admin-pools"])
app.include_router(admin_orders.router, prefix="/api/admin/orders", tags=["admin-orders"])
app.include_router(admin_settings.router, prefix="/api/admin/settings", tags=["admin-settings"])
app.include_router(delivery_locations.router, prefix="/api/admin/delivery-locations", tags=["delivery-locations"])
app.include_router(promptpay_accounts.router, prefix="/api/admin/promptpay-accounts", tags=["promptpay-accounts"])
app.include_router(admin_reports.router, prefix="/api/admin/reports", tags=["admin-reports"])
app.include_router(admins.router, prefix="/api/admin", tags=["admins"])
app.include_router(websockets.router, prefix="/api/ws", tags=["websockets"])


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "campus-order-api"}


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Campus Order API",
        "version": __version__,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "campus_order.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level="info",
    )
