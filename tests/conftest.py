import pytest

from glassworks.config import AppConfig
from glassworks.models.document import DocMeta, Invoice, LineItem
from glassworks.storage.state import StateStore


@pytest.fixture
def config(tmp_path):
    return AppConfig(data_dir=tmp_path / "data", exports_dir=tmp_path / "exports")


@pytest.fixture
def store(config):
    return StateStore(config)


@pytest.fixture
def labor():
    return LineItem(account="100", desc="Labor", qty=2, price=50)


@pytest.fixture
def make_invoice():
    def _make(items, invoice_id="1001", direct_materials=0, **meta):
        return Invoice(
            id=invoice_id,
            seq=int(invoice_id) if invoice_id.isdigit() else 0,
            items=items,
            meta=DocMeta(**meta),
            direct_materials=direct_materials,
        )
    return _make
