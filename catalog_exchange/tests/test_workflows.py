"""Tests for export/import workflows over a filesystem transport."""

import asyncio

import pytest

from catalog_exchange.errors import EmptyExportError, UnreadableFileError
from catalog_exchange.models import Product, Snapshot
from catalog_exchange.store import SqliteCatalogGateway, load_snapshot
from catalog_exchange.transport import FileSystemTransport
from catalog_exchange.workflows import (
    export_catalog,
    export_catalog_async,
    export_filenames,
    import_files,
    import_files_async,
    import_payloads,
    reconcile,
)

PRODUCTS_CSV = (
    "id,title,description,price,discounted_price,quantity,status,category_id,attributes,image_urls,video_url\r\n"
    '7,First,,100,,1,,,{},[],\r\n'
    '8,Other,,50,,1,,,"{""Color"":""Red""}",[],\r\n'
    '7,Second,,200,,2,,,{},"[""b.jpg""]",\r\n'
)

VARIANTS_CSV = (
    "variant_id,product_id,color,size,price,stock,sku\r\n"
    "70,7,Red,S,200,1,SEC-S\r\n"
    "99,99,Blue,M,10,1,ORPHAN\r\n"
)


class TestExportCatalog:
    """Tests for export_catalog."""

    def test_writes_both_files(self, tmp_path, shirt_snapshot):
        locations = export_catalog(shirt_snapshot, FileSystemTransport(tmp_path))

        assert locations == [str(tmp_path / "products.csv"), str(tmp_path / "variants.csv")]
        products = (tmp_path / "products.csv").read_text(encoding="utf-8").splitlines()
        assert products[1] == '1,Shirt,,1000,,5,,,{},"[""a.jpg""]",'
        variants = (tmp_path / "variants.csv").read_text(encoding="utf-8").splitlines()
        assert variants[1] == "10,1,,,1000,5,S-1"

    def test_no_variants_file_without_variants(self, tmp_path):
        snapshot = Snapshot.from_products([Product(id="1", title="Mug")])
        locations = export_catalog(snapshot, FileSystemTransport(tmp_path))

        assert locations == [str(tmp_path / "products.csv")]
        assert not (tmp_path / "variants.csv").exists()

    def test_empty_snapshot_writes_nothing(self, tmp_path):
        with pytest.raises(EmptyExportError):
            export_catalog(Snapshot(), FileSystemTransport(tmp_path / "out"))
        assert not (tmp_path / "out").exists()

    def test_timestamped_names(self, tmp_path, shirt_snapshot):
        locations = export_catalog(
            shirt_snapshot, FileSystemTransport(tmp_path), timestamped=True, stamp=1700000000000
        )
        assert [loc.rsplit("/", 1)[-1] for loc in locations] == [
            "products_export_1700000000000.csv",
            "variants_export_1700000000000.csv",
        ]

    def test_default_names(self):
        assert export_filenames() == ("products.csv", "variants.csv")


class TestImportPayloads:
    """Tests for import_payloads and import_files."""

    def test_last_write_wins_and_orphans(self):
        result = import_payloads([
            ("variants.csv", VARIANTS_CSV.encode("utf-8")),
            ("products.csv", PRODUCTS_CSV.encode("utf-8")),
        ])

        sevens = [p for p in result.products if p.id == "7"]
        assert len(sevens) == 1
        assert (sevens[0].title, sevens[0].price, sevens[0].quantity) == ("Second", 200, 2)
        assert sevens[0].image_urls == ["b.jpg"]
        assert [v.sku for v in sevens[0].variants] == ["SEC-S"]

        assert [(o.variant_id, o.product_id) for o in result.errors.orphan_errors] == [("99", "99")]
        assert all(v.sku != "ORPHAN" for p in result.products for v in p.variants)

    def test_schema_mismatch_recorded_per_file(self):
        result = import_payloads([
            ("products.csv", PRODUCTS_CSV.encode("utf-8")),
            ("orders.csv", b"order_id,total\r\n1,100\r\n"),
        ])

        assert len(result.errors.schema_errors) == 1
        assert result.errors.schema_errors[0].source == "orders.csv"
        assert {p.id for p in result.products} == {"7", "8"}

    def test_unreadable_payload_raises(self):
        with pytest.raises(UnreadableFileError):
            import_payloads([("products.csv", b"\xff\xfe\x00")])

    def test_variants_only_file_makes_orphans(self):
        result = import_payloads([("variants.csv", VARIANTS_CSV)])
        assert result.products == []
        assert len(result.errors.orphan_errors) == 2

    def test_export_then_import(self, tmp_path, catalog_snapshot):
        transport = FileSystemTransport(tmp_path)
        export_catalog(catalog_snapshot, transport)

        result = import_files(transport, ["products.csv", "variants.csv"])

        assert result.errors.is_empty
        assert [p.id for p in result.products] == ["1", "2", "3"]
        assert [len(p.variants) for p in result.products] == [2, 0, 1]


class TestReconcile:
    """Tests for handing drafts to a gateway."""

    def test_reconcile_into_sqlite(self, tmp_path):
        result = import_payloads([("products.csv", PRODUCTS_CSV), ("variants.csv", VARIANTS_CSV)])
        gateway = SqliteCatalogGateway(str(tmp_path / "catalog.db"))

        outcomes = reconcile(result, gateway)

        assert [(o.product_id, o.action) for o in outcomes] == [("8", "created"), ("7", "created")]
        snapshot = load_snapshot(gateway.db_path)
        assert [p.title for p in snapshot.products] == ["Other", "Second"]

    def test_reimport_updates(self, tmp_path):
        gateway = SqliteCatalogGateway(str(tmp_path / "catalog.db"))
        reconcile(import_payloads([("p.csv", PRODUCTS_CSV)]), gateway)
        outcomes = reconcile(import_payloads([("p.csv", PRODUCTS_CSV)]), gateway)
        assert {o.action for o in outcomes} == {"updated"}

    def test_gateway_receives_drafts_and_report(self):
        calls = []

        class RecordingGateway:
            def reconcile(self, drafts, report):
                calls.append((drafts, report))
                return [draft.id for draft in drafts]

        result = import_payloads([("products.csv", PRODUCTS_CSV), ("variants.csv", VARIANTS_CSV)])
        outcomes = reconcile(result, RecordingGateway())

        assert outcomes == ["8", "7"]
        assert calls == [(result.products, result.errors)]
        assert len(result.errors.orphan_errors) == 1


class TestAsyncWrappers:
    """The async wrappers run the same work off the event loop."""

    def test_export_and_import_async(self, tmp_path, shirt_snapshot):
        transport = FileSystemTransport(tmp_path)

        async def run():
            await export_catalog_async(shirt_snapshot, transport)
            return await import_files_async(transport, ["products.csv", "variants.csv"])

        result = asyncio.run(run())
        assert [v.sku for p in result.products for v in p.variants] == ["S-1"]
