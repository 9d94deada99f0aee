import pytest

from glassworks.engine.calculations import invoice_balance
from glassworks.models.document import LineItem
from glassworks.services.invoice_service import InvoiceService
from glassworks.services.payment_service import PaymentService
from glassworks.services.settings_service import SettingsService


@pytest.fixture
def settings(store):
    return SettingsService(store)


class TestAccountCodes:
    """Adding and removing entries in the chart of accounts."""

    def test_default_chart(self, settings):
        assert [c.code for c in settings.list_account_codes()] == [
            "100", "101", "200", "201", "300", "301", "302", "303",
        ]

    def test_add_code(self, settings):
        code = settings.add_account_code("102", "Custom Sandblasting", rate=45)
        assert (code.code, code.rate, code.type) == ("102", 45, "credit")
        assert settings.list_account_codes()[-1].name == "Custom Sandblasting"

    def test_zero_rate_is_stored_as_none(self, settings):
        assert settings.add_account_code("304", "Zelle Payment", rate=0, type="debit").rate is None

    def test_code_and_name_are_required(self, settings):
        with pytest.raises(ValueError):
            settings.add_account_code("", "Nameless")
        with pytest.raises(ValueError):
            settings.add_account_code("105", "  ")

    def test_duplicate_code_rejected(self, settings):
        with pytest.raises(ValueError):
            settings.add_account_code("100", "Labor again")

    def test_new_debit_code_names_ledger_entries(self, store, settings):
        settings.add_account_code("304", "Zelle Payment", type="debit")
        inv = InvoiceService(store).create_invoice(None, [
            LineItem(account="100", desc="Panel", qty=1, price=200),
            LineItem(account="304", desc="Zelle deposit", qty=1, price=50),
        ])
        entry = PaymentService(store).ledger()[0]
        assert entry.method == "Zelle Payment"
        assert invoice_balance(inv, []) == 150

    def test_remove_code(self, store, settings):
        assert settings.remove_account_code("303") is True
        assert "303" not in [c.code for c in settings.list_account_codes()]
        assert settings.remove_account_code("303") is False
        assert store.undo() is True
        assert "303" in [c.code for c in settings.list_account_codes()]

    def test_removed_code_falls_back_to_bare_code(self, store, settings):
        InvoiceService(store).create_invoice(None, [LineItem(account="302", desc="Card", qty=1, price=10)])
        settings.remove_account_code("302")
        assert PaymentService(store).ledger()[0].method == "302"


class TestBranding:
    def test_update_branding(self, store, settings):
        branding = settings.update_branding(header="Blue Door Glass", payment="Cash only")
        assert (branding.header, branding.payment) == ("Blue Door Glass", "Cash only")
        assert store.state.branding.footer == "Thank you for your business!"

    def test_unknown_branding_field(self, settings):
        with pytest.raises(ValueError):
            settings.update_branding(slogan="Light through lead")

    def test_display_settings(self, store, settings):
        display = settings.update_display(currency="gbp")
        assert (display.locale, display.currency) == ("en-US", "GBP")
        assert store.state.settings.currency == "GBP"

    def test_branding_reaches_printout(self, store, settings, labor):
        settings.update_branding(header="Blue Door Glass")
        settings.update_display(currency="EUR")
        inv = InvoiceService(store).create_invoice(None, [labor])
        html = InvoiceService(store).render_html(inv.id)
        assert "Blue Door Glass" in html
        assert "€100.00" in html
