from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional, Union

import pdfkit
from jinja2 import Environment, FileSystemLoader, select_autoescape

from glassworks.config import AppConfig, find_wkhtmltopdf
from glassworks.engine.calculations import document_totals, format_currency, invoice_balance, line_item_value
from glassworks.models.document import Invoice, SalesOrder
from glassworks.models.state import AppState

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"

Printable = Union[Invoice, SalesOrder]


def _slug(text: str) -> str:
    text = (text or "").strip()
    text = re.sub(r'[\\/:*?"<>|\n\r\t]', "_", text)
    text = re.sub(r"\s+", " ", text)
    return text or "Customer"


def _environment(state: AppState) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
    )
    env.filters["money"] = lambda v: format_currency(v, state.settings.locale, state.settings.currency)
    return env


def render_document_html(doc: Printable, state: AppState) -> str:
    """Printable HTML for an invoice or a sales order, rendered from templates/document.html."""
    is_invoice = isinstance(doc, Invoice)
    ctx = {
        "title": "Invoice" if is_invoice else "Order",
        "doc": doc,
        "due": doc.due if is_invoice else None,
        "status": doc.status,
        "customer": state.customer_for(doc),
        "lines": [
            {"account": i.account, "desc": i.desc, "qty": f"{i.qty:g}", "price": i.price, "value": line_item_value(i)}
            for i in doc.items
        ],
        "totals": document_totals(doc),
        "balance": invoice_balance(doc, state.payments) if is_invoice else None,
        "branding": state.branding,
        "settings": state.settings,
    }
    return _environment(state).get_template("document.html").render(**ctx)


def pdf_filename(doc: Printable, state: AppState) -> str:
    customer = state.customer_for(doc)
    prefix = "Invoice" if isinstance(doc, Invoice) else "Order"
    return f"{prefix}-{doc.id} ({_slug(customer.name if customer else '')}).pdf"


def export_pdf(doc: Printable, state: AppState, config: AppConfig, out_dir: Optional[str | Path] = None) -> Path:
    """
    Writes the PDF through wkhtmltopdf (pdfkit).
    Raises RuntimeError when the binary cannot be found.
    """
    wkhtml = find_wkhtmltopdf(config)
    if not wkhtml:
        raise RuntimeError(
            "wkhtmltopdf not found. Install it, or point WKHTMLTOPDF (or pdf.wkhtmltopdf_path "
            "in settings.json) at the executable."
        )
    html = render_document_html(doc, state)
    exports_dir = Path(out_dir) if out_dir else config.exports_path / ("invoices" if isinstance(doc, Invoice) else "orders")
    exports_dir.mkdir(parents=True, exist_ok=True)
    out_path = exports_dir / pdf_filename(doc, state)

    pdf_config = pdfkit.configuration(wkhtmltopdf=wkhtml)
    options = {"quiet": "", "encoding": "UTF-8", "enable-local-file-access": None}
    pdfkit.from_string(html, str(out_path), configuration=pdf_config, options=options)
    logger.info("PDF written to %s", out_path)
    return out_path
