"""
Unit tests for SheetStore and SheetRepository over the in-memory spreadsheet.
"""

import pytest

from invoicing.errors import NotFoundError
from invoicing.models import Address, Client
from invoicing.services.sheets_cache_service import SheetsCacheService
from invoicing.sheets import SheetStore, Workbook


def make_client(client_id: str, name: str) -> Client:
    return Client(
        id=client_id,
        name=name,
        email=f"{client_id}@example.com",
        address=Address(street="1 Main", city="Town", state="ST", zip_code="1", country="USA"),
    )


class TestSheetRepository:
    def test_insert_and_get(self, workbook):
        workbook.clients.insert(make_client("c1", "Acme"))

        assert workbook.clients.get("c1").name == "Acme"
        assert workbook.clients.get("missing") is None

    def test_require_raises_not_found(self, workbook):
        with pytest.raises(NotFoundError):
            workbook.clients.require("missing")

    def test_update_rewrites_the_row(self, workbook, fake_sheets):
        workbook.clients.insert(make_client("c1", "Acme"))
        workbook.clients.insert(make_client("c2", "Globex"))

        workbook.clients.update(make_client("c2", "Globex Corp"))

        assert workbook.clients.get("c2").name == "Globex Corp"
        assert "update Clients!A3:K3" in fake_sheets.calls

    def test_update_unknown_record(self, workbook):
        with pytest.raises(NotFoundError):
            workbook.clients.update(make_client("c9", "Nobody"))

    def test_upsert(self, workbook):
        workbook.clients.upsert(make_client("c1", "Acme"))
        workbook.clients.upsert(make_client("c1", "Acme Ltd"))

        assert [c.name for c in workbook.clients.list_all()] == ["Acme Ltd"]

    def test_delete(self, workbook):
        workbook.clients.insert(make_client("c1", "Acme"))
        workbook.clients.insert(make_client("c2", "Globex"))

        assert workbook.clients.delete("c1") is True
        assert workbook.clients.delete("c1") is False
        assert [c.id for c in workbook.clients.list_all()] == ["c2"]

    def test_delete_where(self, workbook):
        for i in range(4):
            workbook.clients.insert(make_client(f"c{i}", f"Client {i}"))

        deleted = workbook.clients.delete_where(lambda c: c.id in ("c1", "c3"))

        assert deleted == 2
        assert [c.id for c in workbook.clients.list_all()] == ["c0", "c2"]


class TestSheetStoreCaching:
    def test_reads_are_cached_and_writes_invalidate(self, fake_sheets):
        cache = SheetsCacheService(ttl_seconds=60)
        book = Workbook(SheetStore(fake_sheets, "sheet", cache, principal="alice"))
        book.setup_sheets()

        book.clients.list_all()
        reads_before = fake_sheets.calls.count("read Clients!A:K")
        book.clients.list_all()
        assert fake_sheets.calls.count("read Clients!A:K") == reads_before

        book.clients.insert(make_client("c1", "Acme"))
        assert [c.id for c in book.clients.list_all()] == ["c1"]
