from fastapi import APIRouter, Depends, Path, status

from app.core.auth.deps import get_current_user, require_roles
from app.core.schemas.auth import CurrentUser
from app.core.schemas.orders import OrderCreate, OrderResponse, OrderStatusUpdate, OrderUpdate
from app.modules.orders.order_service import OrderService

router = APIRouter(tags=["Orders"], prefix="/orders")

ORDER_WRITE_ROLES = ("Super Admin", "Unit Head", "Unit Manager", "Sales")
ORDER_STATUS_ROLES = ("Super Admin", "Unit Head", "Unit Manager", "Accounts")


@router.post(
    "",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Order",
    description="""
    Places a sales order.

    - Products are validated against the catalog; line totals are calculated server-side.
    - `sales_person_id` defaults to the caller, `company_id` to the caller's company.
    - The daily production summary of every product on the order is refreshed.

    **Role Required:** Super Admin, Unit Head, Unit Manager, Sales.
    """
)
async def create_order(
    payload: OrderCreate,
    current_user: CurrentUser = Depends(require_roles(*ORDER_WRITE_ROLES))
):
    order = await OrderService.create_order(payload, current_user)
    return OrderResponse.from_document(order)


@router.get("/{order_id}", response_model=OrderResponse, summary="Get Order")
async def get_order(
    order_id: str = Path(...),
    current_user: CurrentUser = Depends(get_current_user)
):
    order = await OrderService.get_order(order_id, current_user)
    return OrderResponse.from_document(order)


@router.put(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Update Order",
    description="""
    Edits customer, date, lines or notes of an open order.

    Summaries of the products / days before **and** after the edit are refreshed.
    Cancelled and completed orders cannot be edited.
    """
)
async def update_order(
    payload: OrderUpdate,
    order_id: str = Path(...),
    current_user: CurrentUser = Depends(require_roles(*ORDER_WRITE_ROLES))
):
    order = await OrderService.update_order(order_id, payload, current_user)
    return OrderResponse.from_document(order)


@router.patch(
    "/{order_id}/status",
    response_model=OrderResponse,
    summary="Change Order Status",
    description="""
    Moves the order to a new status and appends it to `status_history`.

    Cancelled and rejected orders stop counting towards the production summary.

    **Role Required:** Super Admin, Unit Head, Unit Manager, Accounts.
    """
)
async def update_order_status(
    payload: OrderStatusUpdate,
    order_id: str = Path(...),
    current_user: CurrentUser = Depends(require_roles(*ORDER_STATUS_ROLES))
):
    order = await OrderService.update_status(order_id, payload, current_user)
    return OrderResponse.from_document(order)


@router.delete("/{order_id}", summary="Delete Order")
async def delete_order(
    order_id: str = Path(...),
    current_user: CurrentUser = Depends(require_roles("Super Admin", "Unit Head"))
):
    return await OrderService.delete_order(order_id, current_user)
