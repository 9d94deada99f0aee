from __future__ import annotations
import logging
from typing import List, Optional

from glassworks.models.customer import Customer
from glassworks.models.state import AppState
from glassworks.storage.state import StateStore

logger = logging.getLogger(__name__)


class CustomerService:
    def __init__(self, store: Optional[StateStore] = None):
        self.store = store or StateStore()

    def list_customers(self) -> List[Customer]:
        return self.store.state.customers

    def get_by_id(self, customer_id: str) -> Optional[Customer]:
        return self.store.state.find_customer(customer_id)

    def add_customer(self, customer: Customer) -> Customer:
        def _add(s: AppState) -> AppState:
            if s.find_customer(customer.id):
                raise ValueError(f"customer with id={customer.id} already exists")
            s.customers.append(customer)
            return s

        self.store.update(_add)
        logger.info("Customer %s added (%s)", customer.id, customer.name)
        return customer

    def update_customer(self, customer: Customer) -> Customer:
        def _update(s: AppState) -> AppState:
            for idx, existing in enumerate(s.customers):
                if existing.id == customer.id:
                    s.customers[idx] = customer
                    return s
            raise KeyError(f"customer with id={customer.id} not found")

        self.store.update(_update)
        return customer

    def delete_customer(self, customer_id: str) -> bool:
        customer_id = str(customer_id)
        if not self.get_by_id(customer_id):
            return False

        def _delete(s: AppState) -> AppState:
            s.customers = [c for c in s.customers if c.id != customer_id]
            return s

        self.store.update(_delete, allow_undo=True)
        logger.info("Customer %s deleted", customer_id)
        return True
