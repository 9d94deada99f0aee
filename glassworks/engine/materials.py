"""Solder and copper-foil consumption for stained-glass panels."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from glassworks.models.common import to_number
from glassworks.models.document import LineItem

# shop rules of thumb
EDGE_INCHES_PER_PIECE = 3.5
SOLDER_COST_PER_INCH = 0.12
FOIL_COST_PER_INCH = 0.013
MATERIALS_ACCOUNT = "200"  # Materials On Hand


class MaterialEstimate(BaseModel):
    pieces: int = 0
    area: float = 0.0  # sq in
    linear_inches: float = 0.0
    solder_cost: float = 0.0
    foil_cost: float = 0.0

    @property
    def total(self) -> float:
        return self.solder_cost + self.foil_cost


def estimate_materials(length: Any, width: Any, pieces: Any) -> MaterialEstimate:
    length = max(0.0, to_number(length))
    width = max(0.0, to_number(width))
    count = max(0, int(to_number(pieces)))

    linear = count * EDGE_INCHES_PER_PIECE
    return MaterialEstimate(
        pieces=count,
        area=length * width * count,
        linear_inches=linear,
        solder_cost=linear * SOLDER_COST_PER_INCH,
        # foil wraps both faces of every edge
        foil_cost=linear * 2 * FOIL_COST_PER_INCH,
    )


def materials_line_item(estimate: MaterialEstimate) -> LineItem:
    return LineItem(
        account=MATERIALS_ACCOUNT,
        desc=f"Consumables (Solder & Foil) - Calculated for {estimate.pieces} pieces",
        qty=1,
        price=estimate.total,
    )
