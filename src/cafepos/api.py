"""FastAPI REST API for the café point of sale."""

import logging
from datetime import datetime, timezone
from typing import Optional, Union

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from . import __version__, config
from .cart import Cart
from .catalog import CatalogStore
from .errors import (
    CafePosError,
    ConfirmationRequiredError,
    EmptyMenuError,
    NotFoundError,
    NothingToExportError,
    StorageError,
    ValidationError,
)
from .history import HistoryStore
from .models import Order, Product
from .pending import PendingOrderStore
from .storage import JsonFileStorage
from .submission import submit_order
from .summary import summarize
from .utils import parse_window

logger = logging.getLogger(__name__)


# --- Pydantic Schemas ---


class ProductSchema(BaseModel):
    id: str
    name: str
    price: float


class ProductCreateRequest(BaseModel):
    """Request body for creating or editing a product."""

    name: str = Field(..., description="Display name (normalized before saving)")
    price: Union[int, float, str] = Field(..., description="Price greater than 0, e.g. 35 or '42.50'")


class ProductListResponse(BaseModel):
    products: list[ProductSchema]
    count: int


class CartLineSchema(BaseModel):
    product: ProductSchema
    quantity: int
    notes: str = ""


class OrderSchema(BaseModel):
    id: str
    order_number: int
    items: list[CartLineSchema]
    total: str
    amount: str
    created_at: str
    finished_at: Optional[str] = None


class OrderListResponse(BaseModel):
    orders: list[OrderSchema]
    count: int


class OrderItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1, le=config.MAX_LINE_QUANTITY)
    notes: str = ""


class OrderCreateRequest(BaseModel):
    """Request body for submitting an order. The client has confirmed it."""

    items: list[OrderItemRequest] = Field(default_factory=list)


class MarkReadyResponse(BaseModel):
    moved: bool
    order: Optional[OrderSchema] = None


class DeleteResponse(BaseModel):
    deleted: int


class BestSellerSchema(BaseModel):
    product_id: str
    name: str
    quantity: int


class SummaryResponse(BaseModel):
    window_days: Optional[int]
    order_count: int
    total_revenue: str
    best_seller: Optional[BestSellerSchema] = None
    highest_value_order: Optional[OrderSchema] = None
    is_empty: bool


# --- Helper Functions ---


def get_storage() -> JsonFileStorage:
    """Get the storage for the configured data directory."""
    return JsonFileStorage()


def get_catalog() -> CatalogStore:
    return CatalogStore(get_storage())


def get_pending_and_history() -> tuple[PendingOrderStore, HistoryStore]:
    """Pending and history stores sharing one storage."""
    storage = get_storage()
    return PendingOrderStore(storage), HistoryStore(storage)


def product_to_schema(product: Product) -> ProductSchema:
    return ProductSchema(id=product.id, name=product.name, price=float(product.price))


def order_to_schema(order: Order) -> OrderSchema:
    """Convert dataclass Order to Pydantic schema."""
    return OrderSchema(
        id=order.id,
        order_number=order.order_number,
        items=[
            CartLineSchema(
                product=product_to_schema(line.product),
                quantity=line.quantity,
                notes=line.notes,
            )
            for line in order.items
        ],
        total=order.total,
        amount=f"{order.value:.2f}",
        created_at=order.created_at,
        finished_at=order.finished_at,
    )


def build_cart(catalog: CatalogStore, items: list[OrderItemRequest]) -> Cart:
    """
    Build a cart from requested items, looking products up in the menu.

    Raises:
        ProductNotFoundError: If an item references an unknown product.
    """
    cart = Cart()
    for item in items:
        product = catalog.get_product(item.product_id)
        for _ in range(item.quantity):
            cart.add_line(product)
        if item.notes:
            cart.set_note(product.id, item.notes)
    return cart


# --- App ---


app = FastAPI(
    title="cafepos API",
    description="Point of sale for a small café: menu, orders, history and sales summaries",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Global Exception Handler ---


# Map exception types to HTTP status codes; subclasses resolve via the MRO
ERROR_STATUS_CODES: dict[type, int] = {
    ValidationError: 400,
    NotFoundError: 404,
    ConfirmationRequiredError: 409,
    EmptyMenuError: 409,
    NothingToExportError: 409,
    StorageError: 500,
}


def _status_for(exc: CafePosError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return 500


@app.exception_handler(CafePosError)
async def cafepos_error_handler(request: Request, exc: CafePosError) -> JSONResponse:
    """Map CafePosError subclasses to appropriate HTTP responses."""
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )


# --- Endpoints ---


@app.get("/api/health")
def health_check():
    """
    Health check endpoint.

    Reports whether the data directory is readable and how many orders are
    waiting.
    """
    pending, _ = get_pending_and_history()
    try:
        return {
            "status": "ok",
            "pending_count": len(pending.list_pending()),
        }
    except StorageError as e:
        return {
            "status": "error",
            "detail": str(e),
        }


# --- Menu Endpoints ---


@app.get("/api/menu", response_model=ProductListResponse)
def list_menu(search: Optional[str] = Query(default=None, description="Filter by name")):
    """List products, optionally filtered by a name substring."""
    catalog = get_catalog()
    products = catalog.search(search) if search else catalog.list_products()
    return ProductListResponse(
        products=[product_to_schema(p) for p in products],
        count=len(products),
    )


@app.post("/api/menu", response_model=ProductSchema, status_code=201)
def create_product(request: ProductCreateRequest):
    """Add a product to the menu."""
    product = get_catalog().add_product(request.name, request.price)
    return product_to_schema(product)


@app.post("/api/menu/seed", response_model=ProductListResponse)
def seed_menu():
    """Write the default menu if none has been saved yet."""
    products = get_catalog().seed_defaults()
    return ProductListResponse(
        products=[product_to_schema(p) for p in products],
        count=len(products),
    )


@app.put("/api/menu/{product_id}", response_model=ProductSchema)
def edit_product(product_id: str, request: ProductCreateRequest):
    """Replace a product's name and price."""
    product = get_catalog().edit_product(product_id, request.name, request.price)
    return product_to_schema(product)


@app.delete("/api/menu/{product_id}", response_model=DeleteResponse)
def delete_product(product_id: str):
    """Remove a product. Unknown IDs are ignored."""
    removed = get_catalog().delete_product(product_id)
    return DeleteResponse(deleted=1 if removed else 0)


@app.delete("/api/menu", response_model=DeleteResponse)
def clear_menu(confirm: bool = Query(default=False)):
    """Delete every product. Requires confirm=true."""
    return DeleteResponse(deleted=get_catalog().clear(confirm=confirm))


# --- Order Endpoints ---


@app.post("/api/orders", response_model=OrderSchema, status_code=201)
def create_order(request: OrderCreateRequest):
    """
    Submit an order.

    Builds a cart from the requested items and persists it as a pending
    order with the next order number for today.
    """
    cart = build_cart(get_catalog(), request.items)
    pending, _ = get_pending_and_history()
    order = submit_order(cart, pending)
    return order_to_schema(order)


@app.get("/api/orders/pending", response_model=OrderListResponse)
def list_pending_orders():
    """List pending orders, oldest first."""
    pending, _ = get_pending_and_history()
    orders = pending.list_pending()
    return OrderListResponse(
        orders=[order_to_schema(o) for o in orders],
        count=len(orders),
    )


@app.post("/api/orders/{order_id}/ready", response_model=MarkReadyResponse)
def mark_order_ready(order_id: str):
    """
    Mark a pending order as ready, moving it to the history.

    An unknown or already finished order is not an error: the response
    reports moved=false.
    """
    pending, history = get_pending_and_history()
    order = pending.mark_ready(order_id, history)
    if order is None:
        return MarkReadyResponse(moved=False)
    return MarkReadyResponse(moved=True, order=order_to_schema(order))


# --- History Endpoints ---


@app.get("/api/history", response_model=OrderListResponse)
def list_history():
    """List finished orders, most recent first."""
    _, history = get_pending_and_history()
    orders = history.list()
    return OrderListResponse(
        orders=[order_to_schema(o) for o in orders],
        count=len(orders),
    )


@app.get("/api/history/export")
def export_history():
    """Download the full history as a timestamped JSON file."""
    _, history = get_pending_and_history()
    if not history.list():
        raise NothingToExportError()
    stamp = int(datetime.now(timezone.utc).timestamp() * 1000)
    filename = f"{config.EXPORT_PREFIX}{stamp}.json"
    return Response(
        content=history.export_snapshot(),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/api/history/{order_id}", response_model=OrderSchema)
def get_history_order(order_id: str):
    """Get one finished order."""
    _, history = get_pending_and_history()
    return order_to_schema(history.get(order_id))


@app.delete("/api/history/{order_id}", response_model=DeleteResponse)
def delete_history_order(order_id: str, confirm: bool = Query(default=False)):
    """Permanently delete one finished order. Requires confirm=true."""
    _, history = get_pending_and_history()
    removed = history.delete_one(order_id, confirm=confirm)
    return DeleteResponse(deleted=1 if removed else 0)


@app.delete("/api/history", response_model=DeleteResponse)
def clear_history(confirm: bool = Query(default=False)):
    """Permanently delete the whole history. Requires confirm=true."""
    _, history = get_pending_and_history()
    return DeleteResponse(deleted=history.clear_all(confirm=confirm))


# --- Summary Endpoints ---


@app.get("/api/summary", response_model=SummaryResponse)
def get_summary(
    window: str = Query(default="today", description="'today', a number of days, or 'all'"),
):
    """Sales summary for the finished orders within a window."""
    window_days = parse_window(window)
    _, history = get_pending_and_history()
    result = summarize(history.list(), window_days)

    best = None
    if result.best_seller is not None:
        best = BestSellerSchema(
            product_id=result.best_seller.product_id,
            name=result.best_seller.name,
            quantity=result.best_seller.quantity,
        )
    highest = None
    if result.highest_value_order is not None:
        highest = order_to_schema(result.highest_value_order)

    return SummaryResponse(
        window_days=result.window_days,
        order_count=result.order_count,
        total_revenue=f"{result.total_revenue:.2f}",
        best_seller=best,
        highest_value_order=highest,
        is_empty=result.is_empty,
    )
