"""FastAPI server for the diner menu API and the owner dashboard WebSocket."""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
import uvicorn
from fastapi import (
    APIRouter,
    FastAPI,
    Query,
    Request,
    WebSocket,
    WebSocketDisconnect,
)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field, ValidationError

from qrmenu import __version__
from qrmenu.config import get_config, setup_logging
from qrmenu.identifiers import restaurant_id_from_url
from qrmenu.models import DashboardView
from qrmenu.services.cart import ItemUnavailableError
from qrmenu.services.diner_session import DinerSession
from qrmenu.services.menu_resolver import MenuResolver
from qrmenu.services.realtime_sync import RealtimeSyncManager
from qrmenu.store import DocumentStore, get_document_store

logger = logging.getLogger(__name__)

router = APIRouter()


class OrderLine(BaseModel):
    """One line of a diner's selection sent for summarizing."""

    key: str
    size: str | None = None
    quantity: int = Field(1, ge=1)


class OrderRequest(BaseModel):
    """Selection to turn into an order summary."""

    items: list[OrderLine] = Field(default_factory=list)
    table: str | None = None


class OwnerCommand(BaseModel):
    """A dashboard action received over the owner WebSocket."""

    action: str
    restaurant_id: str = ""
    name: str = ""
    category_id: str = ""
    item_id: str = ""
    to_category_id: str = ""
    price: float | str | None = None
    item_type: str = ""
    enabled: bool = True
    available: bool = True


def get_resolver(request: Request) -> MenuResolver:
    return request.app.state.resolver


async def _resolve_menu(resolver: MenuResolver, restaurant_id: str):
    menu = await resolver.resolve(restaurant_id)
    if not menu.restaurant.logo_url:
        menu.restaurant.logo_url = await resolver.resolve_logo_url(
            menu.restaurant.id or restaurant_id
        )
    return menu


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "service": "qrmenu-api",
        "store": request.app.state.store.backend_name,
    }


@router.get("/api/menu")
async def get_menu_for_url(request: Request):
    """Resolve the menu for the restaurant named in the request URL (``?r=``)."""
    config = get_config()
    restaurant_id = restaurant_id_from_url(
        f"?{request.url.query}", config.default_restaurant_id
    )
    menu = await _resolve_menu(get_resolver(request), restaurant_id)
    return menu.model_dump(mode="json", by_alias=True)


@router.get("/api/menu/{restaurant_id}")
async def get_menu(restaurant_id: str, request: Request):
    """Resolve a restaurant's menu document; always answers with a document."""
    menu = await _resolve_menu(get_resolver(request), restaurant_id)
    return menu.model_dump(mode="json", by_alias=True)


@router.get("/api/menu/{restaurant_id}/view")
async def get_menu_view(
    restaurant_id: str,
    request: Request,
    category: str = Query("all", description="Category tab, or 'all'"),
    q: str = Query("", description="Search text"),
):
    """Rendered diner view for a category tab and search text."""
    config = get_config()
    menu = await _resolve_menu(get_resolver(request), restaurant_id)
    session = DinerSession(restaurant_id, menu, locale=config.price_locale)
    session.select_category(category)
    session.search(q)
    return session.view()


@router.post("/api/menu/{restaurant_id}/summary")
async def summarize_order(restaurant_id: str, order: OrderRequest, request: Request):
    """Build the order summary text for a diner's selection.

    Unknown or unavailable items are reported in ``skipped`` instead of
    failing the whole request.
    """
    config = get_config()
    menu = await _resolve_menu(get_resolver(request), restaurant_id)
    session = DinerSession(restaurant_id, menu, table=order.table, locale=config.price_locale)

    skipped = []
    for line in order.items:
        try:
            for _ in range(line.quantity):
                session.add(line.key, line.size)
        except (KeyError, ItemUnavailableError, ValueError) as e:
            logger.info(f"Skipping order line {line.key!r}: {e}")
            skipped.append(line.key)

    return {
        "summary": session.summary(),
        "total": session.state.cart.total,
        "count": session.state.cart.count,
        "skipped": skipped,
    }


@router.get("/api/restaurants/{restaurant_id}/logo")
async def get_logo(restaurant_id: str, request: Request):
    """Logo URL for a restaurant, or an inline placeholder image."""
    logo_url = await get_resolver(request).resolve_logo_url(restaurant_id)
    return {"restaurant_id": restaurant_id, "logo_url": logo_url}


async def _dispatch(manager: RealtimeSyncManager, command: OwnerCommand) -> bool | None:
    """Run one dashboard command; None means the action is unknown."""
    action = command.action
    if action == "link_restaurant":
        return await manager.link_restaurant(command.restaurant_id, command.name)
    if action == "create_category":
        return await manager.create_category(command.name)
    if action == "rename_category":
        return manager.rename_category(command.category_id, command.name)
    if action == "set_category_enabled":
        return await manager.set_category_enabled(command.category_id, command.enabled)
    if action == "create_item":
        return await manager.create_item(
            command.category_id,
            command.name,
            command.price,
            item_type=command.item_type or "veg",
            available=command.available,
        )
    if action == "rename_item":
        return manager.rename_item(command.category_id, command.item_id, command.name)
    if action == "reprice_item":
        return manager.reprice_item(command.category_id, command.item_id, command.price)
    if action == "set_item_type":
        return await manager.set_item_type(
            command.category_id, command.item_id, command.item_type
        )
    if action == "set_item_available":
        return await manager.set_item_available(
            command.category_id, command.item_id, command.available
        )
    if action == "delete_item":
        return await manager.delete_item(command.category_id, command.item_id)
    if action == "move_item":
        return await manager.move_item(
            command.category_id, command.item_id, command.to_category_id
        )
    return None


@router.websocket("/owner/ws")
async def owner_dashboard(
    websocket: WebSocket,
    owner_id: str = Query(..., description="Authenticated owner id"),
    email: str = Query("", description="Owner email"),
):
    """Live owner dashboard.

    Every change pushes ``{"type": "view", "view": ...}``; every command
    is answered with ``{"type": "result", "action", "ok", "status"}``.
    """
    await websocket.accept()
    outbox: asyncio.Queue = asyncio.Queue()

    def push_view(view: DashboardView) -> None:
        outbox.put_nowait({"type": "view", "view": view.model_dump(mode="json")})

    async def sender() -> None:
        while True:
            message = await outbox.get()
            await websocket.send_json(message)

    manager = RealtimeSyncManager(websocket.app.state.store, on_render=push_view)
    send_task = asyncio.create_task(sender())
    logger.info(f"Owner {owner_id} connected to dashboard")

    try:
        await manager.sign_in(owner_id, email)
        while True:
            data = await websocket.receive_json()
            try:
                command = OwnerCommand.model_validate(data)
            except ValidationError as e:
                outbox.put_nowait({"type": "error", "code": 400, "error": str(e)})
                continue

            ok = await _dispatch(manager, command)
            if ok is None:
                outbox.put_nowait(
                    {
                        "type": "error",
                        "code": 404,
                        "error": f"Unknown command: {command.action}",
                    }
                )
                continue
            outbox.put_nowait(
                {
                    "type": "result",
                    "action": command.action,
                    "ok": ok,
                    "status": manager.status,
                }
            )

    except WebSocketDisconnect:
        logger.info(f"Owner {owner_id} disconnected")
    finally:
        manager.sign_out()
        send_task.cancel()
        await asyncio.gather(send_task, return_exceptions=True)


def create_app(
    store: DocumentStore | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        store: Document store (defaults to the configured store)
        http_client: Client for static menu files (defaults to one on
            ``static_base_url``)

    Returns:
        The FastAPI application
    """
    config = get_config()

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        """Application lifespan manager."""
        logger.info(f"Starting QR Menu server on {config.server_host}:{config.server_port}")

        _app.state.store = store if store is not None else get_document_store()
        client = http_client or httpx.AsyncClient(
            base_url=config.static_base_url, timeout=10.0
        )
        _app.state.http_client = client
        _app.state.resolver = MenuResolver(_app.state.store, client, config)
        logger.info(f"✓ Document store: {_app.state.store.backend_name}")

        yield

        logger.info("Shutting down QR Menu server")
        if http_client is None:
            await client.aclose()
        if store is None:
            await _app.state.store.close()

    application = FastAPI(
        title="QR Menu API",
        description="Restaurant menus for diners and live editing for owners",
        version=__version__,
        lifespan=lifespan,
    )

    # Diner pages and dashboards are served from other origins
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(router)

    restaurants_dir = Path(config.restaurants_dir)
    if restaurants_dir.is_dir():
        application.mount(
            "/restaurants",
            StaticFiles(directory=restaurants_dir),
            name="restaurants",
        )
        logger.info(f"✓ Serving static menus from {restaurants_dir}")

    return application


app = create_app()


def run_server():
    """Run the FastAPI server using uvicorn.

    This is the main entry point for the server.
    """
    setup_logging()
    config = get_config()

    uvicorn.run(
        "qrmenu.server:app",
        host=config.server_host,
        port=config.server_port,
        log_level=config.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    run_server()
