"""
Unit tests for the export stages
"""
import json
import pytest
from datetime import datetime
from decimal import Decimal
from src.app.services.backup import (
    BackupContext,
    BackupEmitter,
    DataCategory,
    DataExportStage,
    DesignFileStage,
    EventChannel,
    FolderResolver,
    InvoiceDocumentStage,
    JobPhotoStage,
    QuoteDocumentStage,
)
from src.app.services.backup.stages import DATA_CATEGORIES, REDACTED
from src.domain.backup_run import ExportRun
from src.domain.backup_sources import DesignFileRecord, JobPhotoRecord
from tests.fakes import (
    FakeBackupSources,
    FakeDocumentRenderer,
    FakeFileStorage,
    FakeRemoteStorage,
    collect_events,
)


@pytest.fixture
def storage():
    return FakeRemoteStorage()


@pytest.fixture
def channel():
    return EventChannel()


def make_context(storage, channel, sources):
    run = ExportRun(user_id="user-1", backup_folder_id="backup-folder")
    return BackupContext(
        user_id="user-1",
        run=run,
        storage=storage,
        folders=FolderResolver(storage),
        emitter=BackupEmitter(channel),
        sources=sources,
        access_token="token-1",
    )


def uploaded_json(storage, folder_id, name):
    mime, content = storage.file_in(folder_id, name)
    assert mime == "application/json"
    return json.loads(content)


class TestDataExportStage:

    def test_default_categories_in_fixed_order(self):
        assert [c.filename for c in DATA_CATEGORIES] == [
            "settings.json", "printers.json", "materials.json", "clients.json",
            "client-interactions.json", "quotes.json", "quote-line-items.json",
            "quote-events.json", "invoices.json", "invoice-line-items.json",
            "jobs.json", "job-events.json", "designs.json", "design-files.json",
            "design-revisions.json", "suppliers.json", "supplier-items.json",
            "consumables.json", "stock-transactions.json", "purchase-orders.json",
            "purchase-order-items.json", "calculator-presets.json", "webhooks.json",
            "drawings.json", "quote-templates.json", "upload-links.json",
            "quote-requests.json",
        ]

    @pytest.mark.asyncio
    async def test_one_failing_category_does_not_stop_the_stage(self, storage, channel):
        # Arrange
        sources = FakeBackupSources(
            rows={"a": [{"id": "1"}], "b": [{"id": "2"}], "c": [{"id": "3"}]},
            failing_categories={"b"},
        )
        context = make_context(storage, channel, sources)
        stage = DataExportStage([DataCategory("a"), DataCategory("b"), DataCategory("c")])

        # Act
        await stage.run(context)
        context.emitter.close()

        # Assert
        assert stage.item_count == 3
        assert stage.completed_count == 2
        assert stage.error_count == 1
        assert context.emitter.stats.data_files == 2
        events = await collect_events(channel)
        errors = [e for e in events if e["type"] == "error"]
        assert errors == [
            {"type": "error", "phase": "data", "item": "b.json", "message": "query for b failed"}
        ]
        data_folder = storage.folder_named("Data", "backup-folder")
        assert storage.child_names(data_folder) == ["a.json", "c.json"]

    @pytest.mark.asyncio
    async def test_progress_sequence(self, storage, channel):
        # Arrange
        sources = FakeBackupSources(rows={"a": [{"id": "1"}], "b": [{"id": "2"}]})
        context = make_context(storage, channel, sources)
        stage = DataExportStage([DataCategory("a"), DataCategory("b")])

        # Act
        await stage.run(context)
        context.emitter.close()

        # Assert
        events = await collect_events(channel)
        assert [(e["item"], e["current"], e["total"]) for e in events] == [
            ("Exporting data files...", 0, 2),
            ("a.json", 1, 2),
            ("b.json", 2, 2),
        ]

    @pytest.mark.asyncio
    async def test_empty_category_counted_but_not_uploaded(self, storage, channel):
        # Arrange
        sources = FakeBackupSources(rows={"a": [{"id": "1"}]})
        context = make_context(storage, channel, sources)
        stage = DataExportStage([DataCategory("a"), DataCategory("empty")])

        # Act
        await stage.run(context)

        # Assert
        assert context.emitter.stats.data_files == 2
        data_folder = storage.folder_named("Data", "backup-folder")
        assert storage.child_names(data_folder) == ["a.json"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("secret", ["whsec_live_123", "", None])
    async def test_webhook_secret_always_redacted(self, storage, channel, secret):
        # Arrange
        sources = FakeBackupSources(rows={"webhooks": [{"id": "w1", "url": "https://x", "secret": secret}]})
        context = make_context(storage, channel, sources)
        stage = DataExportStage([DataCategory("webhooks", redact=("secret",))])

        # Act
        await stage.run(context)

        # Assert
        data_folder = storage.folder_named("Data", "backup-folder")
        rows = uploaded_json(storage, data_folder, "webhooks.json")
        assert rows == [{"id": "w1", "url": "https://x", "secret": REDACTED}]

    @pytest.mark.asyncio
    async def test_default_redactions(self, storage, channel):
        # Arrange
        sources = FakeBackupSources(rows={
            "settings": [{"id": "s1", "stripeConnectAccountId": "acct_1"}],
            "upload-links": [{"id": "u1", "token": "tok_abc"}],
            "webhooks": [{"id": "w1"}],
        })
        context = make_context(storage, channel, sources)
        stage = DataExportStage()

        # Act
        await stage.run(context)

        # Assert
        data_folder = storage.folder_named("Data", "backup-folder")
        assert uploaded_json(storage, data_folder, "settings.json")[0]["stripeConnectAccountId"] == REDACTED
        assert uploaded_json(storage, data_folder, "upload-links.json")[0]["token"] == REDACTED
        assert uploaded_json(storage, data_folder, "webhooks.json")[0]["secret"] == REDACTED
        assert context.emitter.stats.data_files == len(DATA_CATEGORIES)

    @pytest.mark.asyncio
    async def test_unset_stripe_account_exported_as_empty_string(self, storage, channel):
        # Arrange
        sources = FakeBackupSources(rows={"settings": [{"id": "s1", "stripeConnectAccountId": None}]})
        context = make_context(storage, channel, sources)
        stage = DataExportStage([DATA_CATEGORIES[0]])

        # Act
        await stage.run(context)

        # Assert
        data_folder = storage.folder_named("Data", "backup-folder")
        assert uploaded_json(storage, data_folder, "settings.json")[0]["stripeConnectAccountId"] == ""

    @pytest.mark.asyncio
    async def test_rows_are_flat_and_json_safe(self, storage, channel):
        # Arrange
        sources = FakeBackupSources(rows={"printers": [{
            "id": "p1",
            "hourlyRate": Decimal("2.50"),
            "createdAt": datetime(2026, 3, 1, 12, 30),
            "tags": ["fdm"],
            "meta": {"nested": True},
        }]})
        context = make_context(storage, channel, sources)
        stage = DataExportStage([DataCategory("printers")])

        # Act
        await stage.run(context)

        # Assert
        data_folder = storage.folder_named("Data", "backup-folder")
        mime, content = storage.file_in(data_folder, "printers.json")
        assert json.loads(content) == [
            {"id": "p1", "hourlyRate": "2.50", "createdAt": "2026-03-01T12:30:00"}
        ]
        assert content.decode().startswith("[\n  {")


class TestDocumentStages:

    @pytest.mark.asyncio
    async def test_quote_pdfs_uploaded_with_region_defaults(self, storage, channel):
        # Arrange
        sources = FakeBackupSources(
            settings={"businessName": "Acme Prints", "taxRegion": "uk", "taxLabel": None},
            quotes=[{
                "quoteNumber": "Q-0001",
                "createdAt": datetime(2026, 1, 2),
                "currency": "GBP",
                "subtotal": 100,
                "total": 120,
                "client": {"name": "Bob", "billingAddress": "1 Road"},
                "lineItems": [{"description": "Bracket", "lineTotal": 100, "quantity": 2}],
            }],
        )
        renderer = FakeDocumentRenderer()
        context = make_context(storage, channel, sources)
        stage = QuoteDocumentStage(renderer)

        # Act
        await stage.run(context)

        # Assert
        quotes_folder = storage.folder_named("Quotes", "backup-folder")
        mime, content = storage.file_in(quotes_folder, "Q-0001.pdf")
        assert mime == "application/pdf"
        assert content == b"%PDF quote Q-0001"
        data = renderer.rendered[0]
        assert data.tax_id_label == "VAT Number"
        assert data.tax_label == "GST"
        assert data.business.name == "Acme Prints"
        assert data.client.billing_address == "1 Road"
        assert data.line_items[0].quantity == 2
        assert context.emitter.stats.quote_pdfs == 1

    @pytest.mark.asyncio
    async def test_failed_render_reported_with_pdf_label(self, storage, channel):
        # Arrange
        sources = FakeBackupSources(quotes=[{"quoteNumber": "Q-1"}, {"quoteNumber": "Q-2"}])
        context = make_context(storage, channel, sources)
        stage = QuoteDocumentStage(FakeDocumentRenderer(fail_numbers={"Q-1"}))

        # Act
        await stage.run(context)
        context.emitter.close()

        # Assert
        assert stage.completed_count == 1
        events = await collect_events(channel)
        error = [e for e in events if e["type"] == "error"][0]
        assert error["item"] == "Q-1.pdf"
        assert error["message"] == "cannot render Q-1"

    @pytest.mark.asyncio
    async def test_quote_without_number_is_an_item_error(self, storage, channel):
        # Arrange
        sources = FakeBackupSources(quotes=[{"lineItems": []}, {"quoteNumber": "Q-2", "lineItems": []}])
        context = make_context(storage, channel, sources)
        stage = QuoteDocumentStage(FakeDocumentRenderer())

        # Act
        await stage.run(context)
        context.emitter.close()

        # Assert
        assert stage.error_count == 1
        assert stage.completed_count == 1
        events = await collect_events(channel)
        assert events[1] == {"type": "progress", "phase": "quotes", "item": "quotes item 1", "current": 1, "total": 2}
        error = [e for e in events if e["type"] == "error"][0]
        assert error["item"] == "quotes item 1"
        quotes_folder = storage.folder_named("Quotes", "backup-folder")
        assert storage.child_names(quotes_folder) == ["Q-2.pdf"]

    @pytest.mark.asyncio
    async def test_no_invoices_means_no_folder_and_no_events(self, storage, channel):
        # Arrange
        context = make_context(storage, channel, FakeBackupSources())
        stage = InvoiceDocumentStage(FakeDocumentRenderer())

        # Act
        await stage.run(context)
        context.emitter.close()

        # Assert
        assert storage.folder_named("Invoices", "backup-folder") is None
        assert await collect_events(channel) == []
        assert stage.item_count == 0

    @pytest.mark.asyncio
    async def test_invoice_carries_bank_details_and_invoice_title(self, storage, channel):
        # Arrange
        sources = FakeBackupSources(
            settings={"bankBsb": "062-000", "taxLabel": "Tax"},
            invoices=[{"invoiceNumber": "INV-7", "status": "paid", "lineItems": []}],
        )
        renderer = FakeDocumentRenderer()
        context = make_context(storage, channel, sources)

        # Act
        await InvoiceDocumentStage(renderer).run(context)

        # Assert
        data = renderer.rendered[0]
        assert data.invoice_title == "TAX INVOICE"
        assert data.tax_id_label == "ABN"
        assert data.tax_label == "Tax"
        assert data.bank.bsb == "062-000"
        assert data.status == "paid"
        invoices_folder = storage.folder_named("Invoices", "backup-folder")
        assert storage.child_names(invoices_folder) == ["INV-7.pdf"]


class TestFileStages:

    @pytest.mark.asyncio
    async def test_design_files_share_one_subfolder_per_design(self, storage, channel):
        # Arrange
        sources = FakeBackupSources(design_files=[
            DesignFileRecord("d1", "D-0001", "a1.stl", "bracket.stl", "model/stl"),
            DesignFileRecord("d1", "D-0001", "a2.step", "bracket.step", "model/step"),
        ])
        files = FakeFileStorage({
            "designs/user-1/d1/a1.stl": b"solid",
            "designs/user-1/d1/a2.step": b"ISO-10303",
        })
        context = make_context(storage, channel, sources)
        stage = DesignFileStage(files)

        # Act
        await stage.run(context)
        context.emitter.close()

        # Assert
        designs_folder = storage.folder_named("Design Files", "backup-folder")
        assert storage.child_names(designs_folder) == ["D-0001"]
        design_folder = storage.folder_named("D-0001", designs_folder)
        assert storage.file_in(design_folder, "bracket.stl") == ("model/stl", b"solid")
        assert storage.file_in(design_folder, "bracket.step") == ("model/step", b"ISO-10303")
        assert len(storage.folders_named("D-0001")) == 1
        assert context.emitter.stats.design_files == 2
        events = await collect_events(channel)
        assert [e["item"] for e in events][1:] == ["D-0001/bracket.stl", "D-0001/bracket.step"]

    @pytest.mark.asyncio
    async def test_missing_design_file_is_an_item_error(self, storage, channel):
        # Arrange
        sources = FakeBackupSources(design_files=[
            DesignFileRecord("d1", "D-0001", "gone.stl", "gone.stl", "model/stl"),
        ])
        context = make_context(storage, channel, sources)
        stage = DesignFileStage(FakeFileStorage())

        # Act
        await stage.run(context)

        # Assert
        assert stage.error_count == 1
        assert context.emitter.errors[0].item == "D-0001/gone.stl"
        assert "gone.stl" in context.emitter.errors[0].error

    @pytest.mark.asyncio
    async def test_subfolder_resolution_failure_is_an_item_error(self, storage, channel):
        # Arrange
        storage.fail_folders.add("D-0009")
        sources = FakeBackupSources(design_files=[
            DesignFileRecord("d9", "D-0009", "x.stl", "x.stl", "model/stl"),
        ])
        context = make_context(storage, channel, sources)

        # Act
        await DesignFileStage(FakeFileStorage()).run(context)

        # Assert
        assert context.emitter.stats.errors == 1
        assert context.emitter.errors[0].phase == "designs"

    @pytest.mark.asyncio
    async def test_job_photo_defaults_to_jpeg(self, storage, channel):
        # Arrange
        sources = FakeBackupSources(job_photos=[
            JobPhotoRecord("job-1", "front.jpg"),
            JobPhotoRecord("job-1", "side.png", "image/png"),
        ])
        files = FakeFileStorage({
            "photos/user-1/job-1/front.jpg": b"jpg",
            "photos/user-1/job-1/side.png": b"png",
        })
        context = make_context(storage, channel, sources)

        # Act
        await JobPhotoStage(files).run(context)

        # Assert
        photos_folder = storage.folder_named("Job Photos", "backup-folder")
        job_folder = storage.folder_named("job-1", photos_folder)
        assert storage.file_in(job_folder, "front.jpg") == ("image/jpeg", b"jpg")
        assert storage.file_in(job_folder, "side.png") == ("image/png", b"png")
        assert context.emitter.stats.job_photos == 2
