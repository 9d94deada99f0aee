from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable, List, Optional

from glassworks.engine.calculations import DocTotals, document_totals, next_order_number
from glassworks.models.customer import Customer
from glassworks.models.document import DocMeta, OrderStatus, SalesOrder
from glassworks.models.state import AppState
from glassworks.services import document_printer
from glassworks.services.invoice_service import clean_items
from glassworks.storage.state import StateStore

logger = logging.getLogger(__name__)

ORDER_STATUSES = ("Pending", "Confirmed", "Completed")


class OrderService:
    def __init__(self, store: Optional[StateStore] = None):
        self.store = store or StateStore()

    def list_orders(self) -> List[SalesOrder]:
        return self.store.state.orders

    def get_by_id(self, order_id: str) -> Optional[SalesOrder]:
        return self.store.state.find_order(order_id)

    def active_orders(self) -> List[SalesOrder]:
        return [o for o in self.list_orders() if o.status != "Completed"]

    def totals(self, order_id: str) -> DocTotals:
        order = self.get_by_id(order_id)
        if order is None:
            raise KeyError(f"order {order_id} not found")
        return document_totals(order)

    def projected_total(self) -> float:
        """Pipeline value: totals of every order not yet completed."""
        return sum(document_totals(o).total for o in self.active_orders())

    def create_order(
        self,
        customer_id: Optional[str] = None,
        items: Iterable[Any] = (),
        *,
        meta: Optional[DocMeta] = None,
        status: OrderStatus = "Pending",
        manual_customer: Optional[Customer] = None,
    ) -> SalesOrder:
        raw_items = list(items or [])
        if not customer_id and not raw_items:
            raise ValueError("an order needs a customer or at least one line item")
        lines = clean_items(raw_items)
        created: List[SalesOrder] = []

        def _create(s: AppState) -> AppState:
            seq = next_order_number(s.orders)
            order = SalesOrder(
                id=f"SO-{seq}",
                seq=seq,
                customer_id=customer_id,
                manual_customer=manual_customer,
                status=status,
                created=date.today(),
                items=lines,
                meta=meta or DocMeta(),
            )
            s.orders.append(order)
            created.append(order)
            return s

        self.store.update(_create)
        order = created[0]
        logger.info("Order %s created (%s)", order.id, order.status)
        return order

    def set_status(self, order_id: str, status: OrderStatus) -> SalesOrder:
        if status not in ORDER_STATUSES:
            raise ValueError(f"unknown order status {status!r}")
        result: List[SalesOrder] = []

        def _set(s: AppState) -> AppState:
            order = s.find_order(order_id)
            if order is None:
                raise KeyError(f"order {order_id} not found")
            order.status = status
            result.append(order)
            return s

        self.store.update(_set, allow_undo=True)
        return result[0]

    def delete_order(self, order_id: str) -> bool:
        order_id = str(order_id)
        if self.get_by_id(order_id) is None:
            return False

        def _delete(s: AppState) -> AppState:
            s.orders = [o for o in s.orders if o.id != order_id]
            return s

        self.store.update(_delete, allow_undo=True)
        logger.info("Order %s deleted", order_id)
        return True

    def render_html(self, order_id: str) -> str:
        s = self.store.state
        order = s.find_order(order_id)
        if order is None:
            raise KeyError(f"order {order_id} not found")
        return document_printer.render_document_html(order, s)
