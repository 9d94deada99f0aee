from __future__ import annotations
import logging
from typing import Any, List, Literal, Optional

from pydantic import BaseModel

from glassworks.engine.materials import MaterialEstimate, estimate_materials, materials_line_item
from glassworks.models.state import AppState
from glassworks.storage.state import StateStore

logger = logging.getLogger(__name__)

TargetKind = Literal["invoice", "order"]


class MaterialsTarget(BaseModel):
    kind: TargetKind
    id: str
    label: str

    @property
    def key(self) -> str:
        return f"{self.kind}:{self.id}"

    @classmethod
    def parse(cls, key: str) -> "MaterialsTarget":
        kind, _, doc_id = (key or "").partition(":")
        if kind not in ("invoice", "order") or not doc_id:
            raise ValueError(f"bad document reference {key!r}, expected 'invoice:<id>' or 'order:<id>'")
        return cls(kind=kind, id=doc_id, label=doc_id)


class MaterialsService:
    def __init__(self, store: Optional[StateStore] = None):
        self.store = store or StateStore()

    def estimate(self, length: Any, width: Any, pieces: Any) -> MaterialEstimate:
        return estimate_materials(length, width, pieces)

    def active_targets(self) -> List[MaterialsTarget]:
        """Documents still open for extra lines: unpaid invoices and orders not completed."""
        s = self.store.state
        out = [MaterialsTarget(kind="invoice", id=i.id, label=f"Invoice #{i.id}")
               for i in s.invoices if i.status == "Unpaid"]
        out += [MaterialsTarget(kind="order", id=o.id, label=f"Order SO-{o.seq}")
                for o in s.orders if o.status != "Completed"]
        return out

    def push_to_document(self, target: MaterialsTarget | str, length: Any, width: Any, pieces: Any) -> Optional[MaterialEstimate]:
        """Appends the consumables line to the target; nothing happens for a zero estimate."""
        ref = MaterialsTarget.parse(target) if isinstance(target, str) else target
        est = estimate_materials(length, width, pieces)
        if est.total <= 0:
            return None
        line = materials_line_item(est)

        def _push(s: AppState) -> AppState:
            doc = s.find_invoice(ref.id) if ref.kind == "invoice" else s.find_order(ref.id)
            if doc is None:
                raise KeyError(f"{ref.kind} {ref.id} not found")
            doc.items.append(line)
            return s

        self.store.update(_push, allow_undo=True)
        logger.info("Materials (%.2f) added to %s %s", est.total, ref.kind, ref.id)
        return est
