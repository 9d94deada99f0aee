"""
Ledger math for invoices and sales orders.

Pure functions over a document's line items and adjustment settings. Every
function accepts either the pydantic models from ``glassworks.models`` or
plain dicts (snake_case or the camelCase keys found in older backups), and
never raises on bad numbers: anything non-numeric counts as 0.

Debit lines (account codes starting with "30") are payments taken on the
document itself. They are sign-flipped into ``base``/``total`` but never take
part in discount, tax or fee bases, and the balance calculation drops them
from the document entirely before subtracting them as payments.
"""
from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from glassworks.models.common import to_number
from glassworks.models.document import DEBIT_PREFIX

INVOICE_BASELINE = 1000


class DocTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    base: float = 0.0
    discount: float = 0.0
    tax: float = 0.0
    fee: float = 0.0
    total: float = 0.0

    @property
    def adjustments(self) -> float:
        return self.tax + self.fee - self.discount


def _get(obj: Any, name: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        if name in obj:
            return obj[name]
        return obj.get(to_camel(name), default)
    return getattr(obj, name, default)


def is_debit_code(code: Any) -> bool:
    return str(code or "").startswith(DEBIT_PREFIX)


def _is_debit_item(item: Any) -> bool:
    return is_debit_code(_get(item, "account"))


# ---------------- Line items ---------------- #

def line_item_value(item: Any) -> float:
    """Signed value of one line: qty × price, negated for debit codes."""
    base = to_number(_get(item, "qty")) * to_number(_get(item, "price"))
    return -1 * base if _is_debit_item(item) else base


# ---------------- Document totals ---------------- #

def _adjustment(rate: Any, kind: Any, basis: float) -> float:
    rate = to_number(rate)
    if not rate:
        return 0.0
    if kind == "flat":
        return rate
    return basis * (rate / 100)


def calculate_doc_totals(items: Iterable[Any], meta: Any = None, direct_materials: Any = 0) -> DocTotals:
    items = list(items or [])
    materials = to_number(direct_materials)

    base = sum(line_item_value(i) for i in items) + materials
    # discount/tax/fee only ever see revenue lines
    credits_only = sum(line_item_value(i) for i in items if not _is_debit_item(i)) + materials

    discount = _adjustment(_get(meta, "discount_rate"), _get(meta, "discount_type"), credits_only)
    taxed_base = credits_only - discount
    tax = _adjustment(_get(meta, "tax_rate"), _get(meta, "tax_type"), taxed_base)
    fee_base = taxed_base + tax
    fee = _adjustment(_get(meta, "fee_value"), _get(meta, "fee_type"), fee_base)

    adjustments = tax + fee - discount
    total = base + adjustments
    return DocTotals(base=base, discount=discount, tax=tax, fee=fee, total=total)


def document_totals(doc: Any) -> DocTotals:
    """Totals of a stored invoice/order, direct materials included."""
    return calculate_doc_totals(_get(doc, "items") or [], _get(doc, "meta"), _get(doc, "direct_materials", 0))


# ---------------- Balance ---------------- #

def debit_lines_total(items: Iterable[Any]) -> float:
    return sum(abs(line_item_value(i)) for i in (items or []) if _is_debit_item(i))


def recorded_payments_total(invoice_id: Any, payments: Iterable[Any]) -> float:
    target = str(invoice_id)
    total = 0.0
    for p in payments or []:
        pid = _get(p, "invoice_id")
        if pid is not None and str(pid) == target:
            total += to_number(_get(p, "amount"))
    return total


def invoice_balance(invoice: Any, payments: Iterable[Any]) -> float:
    """
    Outstanding amount on an invoice, floored at 0.

    Credits plus adjustments are recomputed with debit lines removed, then both
    kinds of payment (Payment records and embedded debit lines) are taken off.
    """
    items = list(_get(invoice, "items") or [])
    credit_items = [i for i in items if not _is_debit_item(i)]
    credits_and_adjustments = calculate_doc_totals(
        credit_items, _get(invoice, "meta"), _get(invoice, "direct_materials", 0)
    ).total
    debit_sum = debit_lines_total(items)
    recorded = recorded_payments_total(_get(invoice, "id"), payments)
    return max(0.0, credits_and_adjustments - (recorded + debit_sum))


def invoice_status(invoice: Any, payments: Iterable[Any]) -> str:
    return "Paid" if invoice_balance(invoice, payments) == 0 else "Unpaid"


# ---------------- Numbering ---------------- #

def _numeric(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    s = str(value).strip()
    if not s:
        return None
    try:
        n = float(s)
    except ValueError:
        return None
    return n if math.isfinite(n) else None


def next_invoice_number(invoices: Iterable[Any]) -> int:
    nums = [n for n in (_numeric(_get(inv, "id")) for inv in invoices or []) if n is not None]
    max_seq = max(nums + [INVOICE_BASELINE])
    return int(math.floor(max_seq)) + 1


def next_order_number(orders: Iterable[Any]) -> int:
    max_seq = max([0.0] + [to_number(_get(o, "seq")) for o in orders or []])
    return int(math.floor(max_seq)) + 1


# ---------------- Display ---------------- #

_SYMBOLS = {"USD": "$", "CAD": "CA$", "AUD": "A$", "EUR": "€", "GBP": "£", "JPY": "¥"}
_ZERO_DECIMALS = {"JPY"}
# languages that write 1.234,50
_COMMA_DECIMAL = {"de", "fr", "es", "it", "pt", "nl"}


def format_currency(value: Any, locale: str = "en-US", currency: str = "USD") -> str:
    amount = to_number(value)
    currency = (currency or "USD").upper()
    decimals = 0 if currency in _ZERO_DECIMALS else 2
    digits = f"{abs(amount):,.{decimals}f}"
    sign = "-" if round(amount, decimals) < 0 else ""
    symbol = _SYMBOLS.get(currency)

    if (locale or "").split("-")[0].lower() in _COMMA_DECIMAL:
        digits = digits.replace(",", " ").replace(".", ",").replace(" ", ".")
        return f"{sign}{digits} {symbol or currency}"
    if symbol is None:
        return f"{sign}{digits} {currency}"
    return f"{sign}{symbol}{digits}"
