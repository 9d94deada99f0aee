"""
Tests for the ledger math: line values, document totals, balances, numbering.
"""

import pytest

from glassworks.engine.calculations import (
    DocTotals,
    calculate_doc_totals,
    document_totals,
    format_currency,
    invoice_balance,
    invoice_status,
    is_debit_code,
    line_item_value,
    next_invoice_number,
    next_order_number,
)
from glassworks.models.accounting import Payment
from glassworks.models.document import DocMeta, LineItem


def cash(amount, account="300"):
    return LineItem(account=account, desc="Cash", qty=1, price=amount)


class TestLineItemValue:
    """Signed value of a single line."""

    @pytest.mark.parametrize("account", ["100", "101", "200", "201", "3", "400"])
    def test_credit_codes_are_qty_times_price(self, account):
        item = LineItem(account=account, desc="x", qty=3, price=12.5)
        assert line_item_value(item) == 37.5

    @pytest.mark.parametrize("account", ["300", "301", "302", "303", "30"])
    def test_debit_codes_are_negated(self, account):
        item = LineItem(account=account, desc="x", qty=2, price=40)
        assert line_item_value(item) == -80

    def test_debit_prefix_only(self):
        assert is_debit_code("300")
        assert not is_debit_code("130")
        assert not is_debit_code("")
        assert not is_debit_code(None)

    def test_non_numeric_values_count_as_zero(self):
        assert line_item_value({"account": "100", "qty": "abc", "price": 10}) == 0
        assert line_item_value({"account": "100", "qty": None, "price": 10}) == 0
        assert line_item_value({"account": "100"}) == 0
        assert LineItem(account="100", qty="n/a", price=float("nan")).price == 0

    def test_numeric_strings_are_accepted(self):
        assert line_item_value({"account": "100", "qty": "2", "price": " 7.5 "}) == 15


class TestDocTotals:
    """Order of discount, tax and fee application."""

    def test_empty_document_totals_zero(self):
        assert calculate_doc_totals([], DocMeta(), 0).total == 0
        assert calculate_doc_totals([], None).model_dump() == DocTotals().model_dump()

    def test_plain_labor_line(self, labor):
        totals = calculate_doc_totals([labor], DocMeta())
        assert totals.model_dump() == {"base": 100, "discount": 0, "tax": 0, "fee": 0, "total": 100}

    def test_percent_tax(self, labor):
        totals = calculate_doc_totals([labor], DocMeta(tax_rate=10, tax_type="percent"))
        assert totals.tax == pytest.approx(10)
        assert totals.total == pytest.approx(110)

    def test_debit_lines_reduce_base_but_not_adjustment_basis(self):
        items = [LineItem(account="100", desc="Panel", qty=1, price=200), cash(50)]
        plain = calculate_doc_totals(items, DocMeta())
        assert plain.base == 150
        assert plain.total == 150

        discounted = calculate_doc_totals(items, DocMeta(discount_rate=10))
        # 10% of the 200 credit base, not of 150
        assert discounted.discount == pytest.approx(20)
        assert discounted.total == pytest.approx(130)

        taxed = calculate_doc_totals(items, DocMeta(discount_rate=10, tax_rate=10))
        assert taxed.tax == pytest.approx(18)
        assert taxed.total == pytest.approx(148)

    def test_negative_price_debit_line_flips_to_positive(self):
        items = [LineItem(account="100", qty=1, price=200), LineItem(account="300", desc="Cash", qty=1, price=-50)]
        totals = calculate_doc_totals(items, DocMeta(tax_rate=10))
        assert totals.base == 250
        assert totals.tax == pytest.approx(20)

    def test_fee_applies_on_taxed_amount(self, labor):
        totals = calculate_doc_totals([labor], DocMeta(tax_rate=10, fee_value=5))
        assert totals.fee == pytest.approx(5.5)
        assert totals.total == pytest.approx(115.5)
        assert totals.adjustments == pytest.approx(15.5)

    def test_flat_adjustments_use_the_raw_value(self, labor):
        meta = DocMeta(discount_rate=15, discount_type="flat", tax_rate=5, tax_type="flat",
                       fee_value=2, fee_type="flat")
        totals = calculate_doc_totals([labor], meta)
        assert (totals.discount, totals.tax, totals.fee) == (15, 5, 2)
        assert totals.total == 92

    def test_direct_materials_join_the_credit_base(self, labor):
        totals = calculate_doc_totals([labor, cash(30)], DocMeta(tax_rate=10), direct_materials=50)
        assert totals.base == 120
        assert totals.tax == pytest.approx(15)
        assert totals.total == pytest.approx(135)

    def test_plain_dicts_and_camel_case_meta(self):
        items = [{"account": "100", "desc": "Labor", "qty": 2, "price": 50}]
        totals = calculate_doc_totals(items, {"taxRate": 10, "taxType": "percent"})
        assert totals.total == pytest.approx(110)

    def test_missing_rates_default_to_zero(self, labor):
        totals = calculate_doc_totals([labor], {"taxType": "flat"})
        assert totals.tax == 0
        assert totals.total == 100

    def test_is_pure(self, labor):
        items = [labor, cash(25)]
        meta = DocMeta(discount_rate=5, tax_rate=8, fee_value=3)
        assert calculate_doc_totals(items, meta, 12) == calculate_doc_totals(items, meta, 12)
        assert labor.qty == 2 and labor.price == 50

    def test_document_totals_reads_stored_materials(self, make_invoice, labor):
        inv = make_invoice([labor], direct_materials=25)
        assert document_totals(inv).total == 125


class TestInvoiceBalance:
    """Outstanding balance after payments and embedded debit lines."""

    def test_unpaid_invoice_owes_its_total(self, make_invoice, labor):
        inv = make_invoice([labor], tax_rate=10)
        assert invoice_balance(inv, []) == pytest.approx(110)
        assert invoice_status(inv, []) == "Unpaid"

    def test_recorded_payments_reduce_balance(self, make_invoice, labor):
        inv = make_invoice([labor], tax_rate=10)
        payments = [Payment(invoice_id="1001", amount=30), Payment(invoice_id="9999", amount=500)]
        assert invoice_balance(inv, payments) == pytest.approx(80)

    def test_debit_lines_count_as_payments(self, make_invoice, labor):
        inv = make_invoice([labor, cash(20)], tax_rate=10)
        payments = [Payment(invoice_id="1001", amount=30)]
        # tax stays on the 100 of labor
        assert invoice_balance(inv, payments) == pytest.approx(60)

    def test_overpayment_clamps_to_zero(self, make_invoice, labor):
        inv = make_invoice([labor, cash(80)])
        payments = [Payment(invoice_id="1001", amount=100)]
        assert invoice_balance(inv, payments) == 0
        assert invoice_status(inv, payments) == "Paid"

    def test_direct_materials_are_owed(self, make_invoice, labor):
        inv = make_invoice([labor], direct_materials=50)
        assert invoice_balance(inv, []) == 150

    def test_dict_payments_with_legacy_keys(self, make_invoice, labor):
        inv = make_invoice([labor])
        payments = [{"invoiceId": "1001", "amount": "40"}, {"invoiceId": 1001, "amount": None}]
        assert invoice_balance(inv, payments) == 60

    def test_never_negative(self, make_invoice):
        inv = make_invoice([LineItem(account="100", desc="Refund", qty=1, price=-40)])
        assert invoice_balance(inv, []) == 0


class TestNumbering:
    """Sequence allocation from the current collection."""

    def test_first_invoice_is_1001(self):
        assert next_invoice_number([]) == 1001

    def test_next_after_highest(self):
        assert next_invoice_number([{"id": "1001"}, {"id": "1050"}]) == 1051

    def test_non_numeric_ids_are_ignored(self):
        assert next_invoice_number([{"id": "draft"}, {"id": ""}, {"id": "1002"}]) == 1003
        assert next_invoice_number([{"id": "draft"}]) == 1001

    def test_low_ids_are_floored_at_baseline(self):
        assert next_invoice_number([{"id": "7"}]) == 1001

    def test_order_numbers(self):
        assert next_order_number([]) == 1
        assert next_order_number([{"seq": 3}, {"seq": "x"}, {}]) == 4


class TestFormatCurrency:
    def test_us_dollars(self):
        assert format_currency(1234.5) == "$1,234.50"
        assert format_currency(-5) == "-$5.00"
        assert format_currency(None) == "$0.00"

    def test_comma_decimal_locales(self):
        assert format_currency(1234.5, "de-DE", "EUR") == "1.234,50 €"

    def test_unknown_currency_uses_code(self):
        assert format_currency(10, currency="XYZ") == "10.00 XYZ"
