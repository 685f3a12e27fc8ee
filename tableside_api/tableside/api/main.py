from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.deps import STAFF, effective_role, get_restaurant_id
from tableside.core.logging import configure_logging, correlation_id_var, restaurant_id_var
from tableside.core.security import decode_token
from tableside.core.settings import get_app_settings
from tableside.db.models.restaurants import Restaurant
from tableside.db.models.security import AppRole
from tableside.db.run_migrations import main as run_alembic
from tableside.db.seed import seed_all
from tableside.db.session import get_async_session, tenant_context
from tableside.repositories.inventory import InventoryItemRepository
from tableside.repositories.orders import OrderRepository
from tableside.repositories.restaurants import RestaurantRepository
from tableside.repositories.security import SecurityRepository
from tableside.schemas.common import ErrorInfo, ErrorResponse, MessageResponse, RestaurantEcho
from tableside.schemas.inventory import InventoryItemRead
from tableside.schemas.orders import OrderRead, OrderTracking
from tableside.schemas.realtime import WsEnvelope
from tableside.services.errors import ServiceError
from tableside.services.orders import OrderService, status_info
from tableside.services.realtime import broadcast_manager

# Routers
from tableside.api.routes.admin import router as admin_router
from tableside.api.routes.auth import router as auth_router
from tableside.api.routes.inventory import router as inventory_router
from tableside.api.routes.menu import router as menu_router
from tableside.api.routes.orders import router as orders_router
from tableside.api.routes.procurement import router as procurement_router
from tableside.api.routes.public import router as public_router
from tableside.api.routes.qr import router as qr_router
from tableside.api.routes.reports import router as reports_router
from tableside.api.routes.restaurants import router as restaurants_router
from tableside.api.routes.staff import router as staff_router
from tableside.api.routes.storage import files_router, router as storage_router
from tableside.api.routes.tables import router as tables_router

# Configure structured logging once at import
configure_logging()
logger = logging.getLogger(__name__)

settings = get_app_settings()

openapi_tags = [
    {"name": "Health", "description": "Liveness and readiness probes."},
    {"name": "Auth", "description": "Registration, login, tokens and password reset."},
    {"name": "Restaurants", "description": "Restaurant profile and settings."},
    {"name": "Menu", "description": "Categories, menu items and ingredient links."},
    {"name": "Tables", "description": "Tables, shifts and staff table assignments."},
    {"name": "Orders", "description": "Staff order board, status changes and receipts."},
    {"name": "Public", "description": "Customer menu, checkout and order tracking by restaurant slug."},
    {"name": "Staff", "description": "Invitations, members and staff notifications."},
    {"name": "Inventory", "description": "Suppliers, stock levels and waste log."},
    {"name": "Procurement", "description": "Purchase orders and receiving."},
    {"name": "Reports", "description": "Exportable business reports (CSV/Excel/PDF)."},
    {"name": "QR", "description": "QR codes for the customer menu and tables."},
    {"name": "Storage", "description": "Menu images, 3D models and payment proofs."},
    {"name": "Admin", "description": "Platform administration (super admin only)."},
    {
        "name": "WebSocket",
        "description": "WebSocket usage, endpoints, and connection details.",
    },
]

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    openapi_tags=openapi_tags,
)

# CORS - avoid wildcard with credentials
cors_allow_credentials = settings.CORS_ALLOW_CREDENTIALS
if settings.CORS_ORIGINS == ["*"] and cors_allow_credentials:
    logger.warning("CORS_ALLOW_CREDENTIALS=True with '*' origins is not permitted; disabling credentials.")
    cors_allow_credentials = False

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=cors_allow_credentials,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """
    Enrich request context with correlation_id and restaurant_id for logging and error responses.
    Adds 'X-Correlation-ID' to every response.
    """
    corr = request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID") or str(uuid4())
    restaurant = request.headers.get("X-Restaurant-ID")
    token_corr = correlation_id_var.set(corr)
    token_restaurant = restaurant_id_var.set(restaurant)
    request.state.correlation_id = corr
    request.state.restaurant_id = restaurant

    logger.info("Incoming request %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
    finally:
        correlation_id_var.reset(token_corr)
        restaurant_id_var.reset(token_restaurant)

    response.headers["X-Correlation-ID"] = corr
    return response


def _build_error_response(
    request: Request,
    status_code: int,
    error_type: str,
    message: str,
    details: Any | None = None,
) -> JSONResponse:
    """Build a standardized ErrorResponse JSONResponse."""
    ts = datetime.now(tz=timezone.utc)
    corr = getattr(request.state, "correlation_id", None)
    restaurant = getattr(request.state, "restaurant_id", None)
    err = ErrorResponse(
        status=status_code,
        error=ErrorInfo(type=error_type, message=message, details=details),
        correlation_id=corr,
        restaurant_id=restaurant,
        path=request.url.path,
        method=request.method,
        timestamp=ts,
    )
    return JSONResponse(status_code=status_code, content=err.model_dump(mode="json"))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Global handler for HTTPException to produce a standardized error envelope.
    """
    detail = exc.detail if isinstance(exc.detail, str) else "HTTP Error"
    return _build_error_response(
        request=request,
        status_code=exc.status_code,
        error_type="http_error",
        message=str(detail),
        details=None if isinstance(exc.detail, str) else exc.detail,
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """Map domain errors raised by services to the error envelope."""
    logger.info("%s: %s", type(exc).__name__, exc.message)
    return _build_error_response(
        request=request,
        status_code=exc.status_code,
        error_type=exc.error_type,
        message=exc.message,
        details=exc.details,
    )


def _jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors without the "ctx" entries, which may hold exception objects."""
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Global handler for request validation errors with a standard structure.
    """
    return _build_error_response(
        request=request,
        status_code=422,
        error_type="validation_error",
        message="Request validation failed",
        details=_jsonable_errors(exc),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler to avoid leaking stack traces and to return a structured error.
    """
    logger.exception("Unhandled error processing request")
    return _build_error_response(
        request=request,
        status_code=500,
        error_type="internal_error",
        message="An unexpected error occurred",
        details=None,
    )


@app.on_event("startup")
async def on_startup() -> None:
    """
    Run migrations and optional seeding on service startup.

    This ensures the database schema is up to date. Seeding is opt-in via settings.
    """
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        try:
            logger.info("Running Alembic migrations: upgrade head")
            await asyncio.to_thread(run_alembic, ["upgrade", "head"])
            logger.info("Migrations completed.")
        except Exception as exc:
            logger.exception("Migration step failed: %s", exc)
            # Do not crash the app in case of transient DB issues; rely on retries or later readiness probes.

    if settings.AUTO_SEED:
        try:
            logger.info("Running database seeding...")
            await seed_all()
            logger.info("Seeding completed.")
        except Exception as exc:
            logger.exception("Seeding step failed: %s", exc)


# Build API v1 router and include sub-routers
api_v1 = APIRouter(prefix="/api/v1")


# PUBLIC_INTERFACE
@api_v1.get(
    "/health",
    response_model=MessageResponse,
    summary="Health Check",
    tags=["Health"],
)
def health_check() -> MessageResponse:
    """
    Basic liveness health check endpoint.

    Returns:
        MessageResponse: Simple confirmation that the service is running.
    """
    return MessageResponse(message="Healthy")


# PUBLIC_INTERFACE
@api_v1.get(
    "/health/restaurant",
    response_model=RestaurantEcho,
    summary="Restaurant Health Echo",
    description="Echoes the restaurant context to verify header handling.",
    tags=["Health"],
)
async def restaurant_health_echo(restaurant_id: UUID = Depends(get_restaurant_id)) -> RestaurantEcho:
    """
    Echo the provided restaurant ID.

    Parameters:
        X-Restaurant-ID (header): UUID of the restaurant.
    Returns:
        RestaurantEcho: The restaurant_id extracted from the header.
    """
    return RestaurantEcho(restaurant_id=restaurant_id)


# PUBLIC_INTERFACE
@api_v1.get(
    "/websocket-info",
    response_model=Dict[str, Any],
    summary="WebSocket Usage Information",
    description="Connection details for the realtime order feeds.",
    tags=["WebSocket"],
)
def websocket_info() -> Dict[str, Any]:
    """Describe how to connect to WebSocket endpoints in this service."""
    return {
        "usage": (
            "Every socket first receives a '*.snapshot' envelope with the current state, then change "
            "notifications. Envelopes are JSON objects { type, payload, at, channel }. Send the text "
            "'ping' to receive 'pong'. Notifications carry ids and statuses only; re-fetch over REST for details."
        ),
        "security": {
            "staff": "Query 'token' (access JWT) plus the restaurant id in the X-Restaurant-ID header "
            "or the 'restaurant_id' query parameter. The user must be staff of the restaurant.",
            "public": "No authentication; addressed by restaurant slug.",
            "close_codes": {"4401": "missing or invalid credentials", "4403": "not staff", "4404": "not found"},
        },
        "endpoints": [
            {
                "path": "/ws/orders",
                "summary": "Restaurant order board (staff).",
                "query": ["token", "restaurant_id?"],
                "headers": ["X-Restaurant-ID"],
                "messages": {"server_to_client": ["orders.snapshot", "order.created", "order.updated"]},
            },
            {
                "path": "/ws/inventory",
                "summary": "Stock level changes (staff).",
                "query": ["token", "restaurant_id?"],
                "headers": ["X-Restaurant-ID"],
                "messages": {"server_to_client": ["inventory.snapshot", "inventory.changed"]},
            },
            {
                "path": "/ws/public/{slug}/orders/{order_id}",
                "summary": "Customer tracking page for one order.",
                "messages": {"server_to_client": ["order.snapshot", "order.updated"]},
            },
            {
                "path": "/ws/public/{slug}/tables/{table_number}",
                "summary": "Orders placed from one table.",
                "messages": {"server_to_client": ["table.snapshot", "order.created", "order.updated"]},
            },
        ],
        "notes": "WebSocket endpoints are not represented in OpenAPI schema; refer to this endpoint for usage.",
    }


# Include all routers under /api/v1
api_v1.include_router(auth_router)
api_v1.include_router(restaurants_router)
api_v1.include_router(menu_router)
api_v1.include_router(tables_router)
api_v1.include_router(orders_router)
api_v1.include_router(public_router)
api_v1.include_router(staff_router)
api_v1.include_router(inventory_router)
api_v1.include_router(procurement_router)
api_v1.include_router(reports_router)
api_v1.include_router(qr_router)
api_v1.include_router(storage_router)
api_v1.include_router(admin_router)

# Attach api_v1 to app; stored files are served from the root
app.include_router(api_v1)
app.include_router(files_router)


async def _reject(websocket: WebSocket, code: int) -> None:
    """Close an accepted socket with an application close code and stop the handler."""
    await websocket.close(code=code)
    raise WebSocketDisconnect(code=code)


async def _authorize_staff_socket(websocket: WebSocket, session: AsyncSession) -> Restaurant:
    """
    Validate the 'token' query param and the restaurant id (X-Restaurant-ID header
    or 'restaurant_id' query param) of an accepted staff socket.

    Raises:
        WebSocketDisconnect after closing the socket when the caller is not staff.
    """
    token = websocket.query_params.get("token")
    raw_restaurant = websocket.headers.get("x-restaurant-id") or websocket.query_params.get("restaurant_id")
    if not token or not raw_restaurant:
        await _reject(websocket, 4401)

    try:
        claims = decode_token(token)
        restaurant_id = UUID(raw_restaurant)
        user_id = UUID(str(claims.get("sub")))
    except (JWTError, ValueError):
        await _reject(websocket, 4401)
    if claims.get("type") != "access":
        await _reject(websocket, 4401)

    user = await SecurityRepository(session).get_user_by_id(user_id)
    if user is None or not user.is_active:
        await _reject(websocket, 4401)

    restaurant = await RestaurantRepository(session).get(restaurant_id)
    if restaurant is None:
        await _reject(websocket, 4404)

    role = await effective_role(session, user, restaurant)
    if role is None or (role != AppRole.SUPER_ADMIN.value and role not in STAFF):
        await _reject(websocket, 4403)
    return restaurant


async def _listen(websocket: WebSocket, topic: str) -> None:
    """Keep the socket open answering 'ping' until the client goes away."""
    try:
        while True:
            msg = await websocket.receive_text()
            if msg and msg.lower() == "ping":
                await websocket.send_text("pong")
            # other client messages are ignored
    except WebSocketDisconnect:
        return
    except Exception:
        logger.exception("Error on websocket topic=%s", topic)
        await websocket.close()


# PUBLIC_INTERFACE
@app.websocket("/ws/orders")
async def ws_orders(websocket: WebSocket, session: AsyncSession = Depends(get_async_session)):
    """
    WebSocket endpoint for the staff order board of one restaurant.

    Security:
      - Query param 'token' must be a valid access JWT.
      - Restaurant id from the 'X-Restaurant-ID' header or 'restaurant_id' query param.
      - The user must be owner, supervisor or wait staff of the restaurant (or super admin).
    Messages:
      - Server -> Client: 'orders.snapshot' (active orders) then 'order.created' / 'order.updated'.
      - Client -> Server: optional 'ping' to keepalive; other messages ignored.
    """
    await websocket.accept()
    try:
        restaurant = await _authorize_staff_socket(websocket, session)
    except WebSocketDisconnect:
        return

    topic = broadcast_manager.orders_topic(restaurant.id)
    # subscribe before the snapshot so no event falls in between
    await broadcast_manager.connect(topic, websocket)
    try:
        async with tenant_context(session, restaurant.id):
            active = await OrderRepository(session).list_active(restaurant.id)
            orders = [OrderRead.model_validate(o).model_dump(mode="json") for o in active]
        # release the connection while the socket stays open
        await session.close()
        env = WsEnvelope(type="orders.snapshot", payload={"orders": orders}, channel=topic)
        await websocket.send_json(env.model_dump(mode="json"))

        await _listen(websocket, topic)
    finally:
        await broadcast_manager.disconnect(topic, websocket)


# PUBLIC_INTERFACE
@app.websocket("/ws/inventory")
async def ws_inventory(websocket: WebSocket, session: AsyncSession = Depends(get_async_session)):
    """
    WebSocket endpoint for stock level changes of one restaurant (staff).

    Same authentication as /ws/orders. The snapshot lists the items at or below
    their minimum stock level; afterwards every stock mutation is pushed as
    'inventory.changed'.
    """
    await websocket.accept()
    try:
        restaurant = await _authorize_staff_socket(websocket, session)
    except WebSocketDisconnect:
        return

    topic = broadcast_manager.inventory_topic(restaurant.id)
    await broadcast_manager.connect(topic, websocket)
    try:
        async with tenant_context(session, restaurant.id):
            low = await InventoryItemRepository(session).list_items(restaurant.id, low_stock_only=True)
            items = [InventoryItemRead.model_validate(i).model_dump(mode="json") for i in low]
        await session.close()
        env = WsEnvelope(type="inventory.snapshot", payload={"low_stock": items}, channel=topic)
        await websocket.send_json(env.model_dump(mode="json"))

        await _listen(websocket, topic)
    finally:
        await broadcast_manager.disconnect(topic, websocket)


# PUBLIC_INTERFACE
@app.websocket("/ws/public/{slug}/orders/{order_id}")
async def ws_public_order(
    websocket: WebSocket,
    slug: str,
    order_id: UUID,
    session: AsyncSession = Depends(get_async_session),
):
    """
    WebSocket endpoint for the customer order tracking page.

    Messages:
      - Server -> Client: 'order.snapshot' (OrderTracking) then 'order.updated'.
    """
    await websocket.accept()
    restaurant = await RestaurantRepository(session).get_by_slug(slug)
    if restaurant is None:
        await websocket.close(code=4404)
        return
    async with tenant_context(session, restaurant.id):
        order = await OrderRepository(session).get(restaurant.id, order_id)
        tracking = (
            OrderTracking(
                order=OrderRead.model_validate(order),
                status_info=status_info(order.status),
                restaurant_name=restaurant.name,
            )
            if order is not None
            else None
        )
    await session.close()
    if tracking is None:
        await websocket.close(code=4404)
        return

    topic = broadcast_manager.order_topic(order_id)
    await broadcast_manager.connect(topic, websocket)
    try:
        env = WsEnvelope(type="order.snapshot", payload=tracking.model_dump(mode="json"), channel=topic)
        await websocket.send_json(env.model_dump(mode="json"))

        await _listen(websocket, topic)
    finally:
        await broadcast_manager.disconnect(topic, websocket)


# PUBLIC_INTERFACE
@app.websocket("/ws/public/{slug}/tables/{table_number}")
async def ws_public_table(
    websocket: WebSocket,
    slug: str,
    table_number: int,
    session: AsyncSession = Depends(get_async_session),
):
    """
    WebSocket endpoint for the orders of one table (customer "my orders" view).

    Messages:
      - Server -> Client: 'table.snapshot' (recent orders) then 'order.created' / 'order.updated'.
    """
    await websocket.accept()
    restaurant = await RestaurantRepository(session).get_by_slug(slug)
    if restaurant is None:
        await websocket.close(code=4404)
        return

    topic = broadcast_manager.table_topic(restaurant.id, table_number)
    await broadcast_manager.connect(topic, websocket)
    try:
        async with tenant_context(session, restaurant.id):
            recent = await OrderService(session).recent_table_orders(restaurant.id, table_number)
            orders = [OrderRead.model_validate(o).model_dump(mode="json") for o in recent]
        await session.close()
        env = WsEnvelope(type="table.snapshot", payload={"orders": orders}, channel=topic)
        await websocket.send_json(env.model_dump(mode="json"))

        await _listen(websocket, topic)
    finally:
        await broadcast_manager.disconnect(topic, websocket)
