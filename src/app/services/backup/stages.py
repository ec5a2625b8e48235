"""Export stages

Every stage follows the same template: load its items, skip entirely when
there are none, otherwise create its category folder under the run's backup
folder and export item by item. A failing item is reported through the
emitter and the stage moves on to the next one.
"""
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Sequence, Tuple
from uuid import UUID
from src.app.repositories.backup_source_repository import IBackupSourceRepository
from src.app.services.backup.documents import build_invoice_document, build_quote_document
from src.app.services.backup.emitter import BackupEmitter
from src.app.services.backup.folder_resolver import FolderResolver
from src.app.services.document_renderer import DocumentRenderer
from src.app.services.file_storage import FileStorage
from src.app.services.remote_storage import RemoteStorage
from src.domain.backup_run import ExportRun
from src.domain.backup_sources import DesignFileRecord, JobPhotoRecord
from src.domain.enums import BackupPhase
from src.domain.tax_regions import TaxRegionDefaults, get_tax_defaults

logger = logging.getLogger(__name__)

REDACTED = "***REDACTED***"
JSON_MIME_TYPE = "application/json"
PDF_MIME_TYPE = "application/pdf"
DEFAULT_PHOTO_MIME_TYPE = "image/jpeg"


@dataclass
class BackupContext:
    """Collaborators shared by every stage of one run"""
    user_id: str
    run: ExportRun
    storage: RemoteStorage
    folders: FolderResolver
    emitter: BackupEmitter
    sources: IBackupSourceRepository
    access_token: str = ""


def describe_error(error: Exception) -> str:
    return str(error) or type(error).__name__


class ExportStage(ABC):
    """One independently failing unit of work of the backup"""

    phase: BackupPhase
    folder_name: str
    intro: str

    def __init__(self):
        self.item_count = 0
        self.completed_count = 0
        self.error_count = 0

    @property
    def name(self) -> str:
        return self.phase.value

    @abstractmethod
    async def load_items(self, context: BackupContext) -> Sequence[Any]:
        pass

    @abstractmethod
    def item_label(self, item: Any) -> str:
        pass

    @abstractmethod
    async def export_item(self, context: BackupContext, folder_id: str, item: Any) -> None:
        pass

    def _label_or_default(self, item: Any, index: int) -> str:
        try:
            return self.item_label(item)
        except (KeyError, AttributeError, TypeError):
            return f"{self.name} item {index}"

    async def run(self, context: BackupContext) -> None:
        items = list(await self.load_items(context))
        self.item_count = len(items)
        if not items:
            logger.info(f"[Backup] Stage {self.name}: nothing to export, skipping")
            return

        folder_id = await context.folders.create(
            context.access_token, self.folder_name, context.run.backup_folder_id
        )
        emitter = context.emitter
        emitter.progress(self.phase, self.intro, 0, self.item_count)

        for index, item in enumerate(items, start=1):
            label = self._label_or_default(item, index)
            emitter.progress(self.phase, label, index, self.item_count)
            try:
                await self.export_item(context, folder_id, item)
            except Exception as e:
                self.error_count += 1
                emitter.error(self.phase, label, describe_error(e))
                continue
            self.completed_count += 1
            emitter.success(self.phase)

        logger.info(
            f"[Backup] Stage {self.name}: {self.completed_count}/{self.item_count} exported, "
            f"{self.error_count} failed"
        )


# ---------------------------------------------------------------------------
# Structured data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DataCategory:
    """
    One structured-data category exported as ``<name>.json``

    ``redact`` fields are always replaced by the placeholder, whatever their
    value. ``redact_if_set`` fields get the placeholder when they hold a
    value and an empty string otherwise.
    """
    name: str
    redact: Tuple[str, ...] = ()
    redact_if_set: Tuple[str, ...] = ()

    @property
    def filename(self) -> str:
        return f"{self.name}.json"


DATA_CATEGORIES: Tuple[DataCategory, ...] = (
    DataCategory("settings", redact_if_set=("stripeConnectAccountId",)),
    DataCategory("printers"),
    DataCategory("materials"),
    DataCategory("clients"),
    DataCategory("client-interactions"),
    DataCategory("quotes"),
    DataCategory("quote-line-items"),
    DataCategory("quote-events"),
    DataCategory("invoices"),
    DataCategory("invoice-line-items"),
    DataCategory("jobs"),
    DataCategory("job-events"),
    DataCategory("designs"),
    DataCategory("design-files"),
    DataCategory("design-revisions"),
    DataCategory("suppliers"),
    DataCategory("supplier-items"),
    DataCategory("consumables"),
    DataCategory("stock-transactions"),
    DataCategory("purchase-orders"),
    DataCategory("purchase-order-items"),
    DataCategory("calculator-presets"),
    DataCategory("webhooks", redact=("secret",)),
    DataCategory("drawings"),
    DataCategory("quote-templates"),
    DataCategory("upload-links", redact=("token",)),
    DataCategory("quote-requests"),
)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, bytes):
        return value.hex()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def flatten_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """Drop nested objects and lists, exported rows are flat"""
    return {key: value for key, value in row.items() if not isinstance(value, (dict, list, tuple))}


def redact_row(row: Dict[str, Any], category: DataCategory) -> Dict[str, Any]:
    redacted = dict(row)
    for field_name in category.redact:
        redacted[field_name] = REDACTED
    for field_name in category.redact_if_set:
        redacted[field_name] = REDACTED if row.get(field_name) else ""
    return redacted


def serialize_rows(rows: List[Dict[str, Any]]) -> bytes:
    return json.dumps(rows, indent=2, default=_json_default).encode("utf-8")


class DataExportStage(ExportStage):
    """Exports each structured-data category as one pretty-printed JSON file"""

    phase = BackupPhase.data
    folder_name = "Data"
    intro = "Exporting data files..."

    def __init__(self, categories: Sequence[DataCategory] = DATA_CATEGORIES):
        super().__init__()
        self.categories = tuple(categories)

    async def load_items(self, context: BackupContext) -> Sequence[DataCategory]:
        return self.categories

    def item_label(self, item: DataCategory) -> str:
        return item.filename

    async def export_item(self, context: BackupContext, folder_id: str, item: DataCategory) -> None:
        rows = await context.sources.list_rows(item.name, context.user_id)
        # Empty categories still count as exported, there is just nothing to upload
        if not rows:
            return
        payload = serialize_rows([redact_row(flatten_row(row), item) for row in rows])
        await context.storage.upload_file(
            context.access_token, item.filename, JSON_MIME_TYPE, payload, folder_id
        )


# ---------------------------------------------------------------------------
# Rendered documents
# ---------------------------------------------------------------------------


class _DocumentStage(ExportStage):
    number_field: str

    def __init__(self, renderer: DocumentRenderer):
        super().__init__()
        self.renderer = renderer
        self.settings: Dict[str, Any] = {}
        self.region: TaxRegionDefaults = get_tax_defaults(None)

    @abstractmethod
    async def _list_documents(self, context: BackupContext) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def _render(self, document: Dict[str, Any]) -> bytes:
        pass

    async def load_items(self, context: BackupContext) -> Sequence[Dict[str, Any]]:
        documents = await self._list_documents(context)
        if documents:
            self.settings = await context.sources.get_settings(context.user_id) or {}
            self.region = get_tax_defaults(self.settings.get("taxRegion"))
        return documents

    def item_label(self, item: Dict[str, Any]) -> str:
        return f"{item[self.number_field]}.pdf"

    async def export_item(self, context: BackupContext, folder_id: str, item: Dict[str, Any]) -> None:
        pdf = await self._render(item)
        await context.storage.upload_file(
            context.access_token, self.item_label(item), PDF_MIME_TYPE, pdf, folder_id
        )


class QuoteDocumentStage(_DocumentStage):
    phase = BackupPhase.quotes
    folder_name = "Quotes"
    intro = "Generating quote PDFs..."
    number_field = "quoteNumber"

    async def _list_documents(self, context: BackupContext) -> List[Dict[str, Any]]:
        return await context.sources.list_quotes(context.user_id)

    async def _render(self, document: Dict[str, Any]) -> bytes:
        return await self.renderer.render_quote(build_quote_document(document, self.settings, self.region))


class InvoiceDocumentStage(_DocumentStage):
    phase = BackupPhase.invoices
    folder_name = "Invoices"
    intro = "Generating invoice PDFs..."
    number_field = "invoiceNumber"

    async def _list_documents(self, context: BackupContext) -> List[Dict[str, Any]]:
        return await context.sources.list_invoices(context.user_id)

    async def _render(self, document: Dict[str, Any]) -> bytes:
        return await self.renderer.render_invoice(
            build_invoice_document(document, self.settings, self.region)
        )


# ---------------------------------------------------------------------------
# Stored files
# ---------------------------------------------------------------------------


class DesignFileStage(ExportStage):
    """Uploads design files into one sub-folder per design number"""

    phase = BackupPhase.designs
    folder_name = "Design Files"
    intro = "Uploading design files..."

    def __init__(self, files: FileStorage):
        super().__init__()
        self.files = files

    async def load_items(self, context: BackupContext) -> Sequence[DesignFileRecord]:
        return await context.sources.list_design_files(context.user_id)

    def item_label(self, item: DesignFileRecord) -> str:
        return f"{item.design_number}/{item.original_name}"

    async def export_item(self, context: BackupContext, folder_id: str, item: DesignFileRecord) -> None:
        sub_folder_id = await context.folders.resolve_cached(
            context.access_token, item.design_number, folder_id
        )
        content = await self.files.read(
            f"designs/{context.user_id}/{item.design_id}/{item.filename}"
        )
        await context.storage.upload_file(
            context.access_token, item.original_name, item.mime_type, content, sub_folder_id
        )


class JobPhotoStage(ExportStage):
    """Uploads job photos into one sub-folder per job"""

    phase = BackupPhase.photos
    folder_name = "Job Photos"
    intro = "Uploading job photos..."

    def __init__(self, files: FileStorage):
        super().__init__()
        self.files = files

    async def load_items(self, context: BackupContext) -> Sequence[JobPhotoRecord]:
        return await context.sources.list_job_photos(context.user_id)

    def item_label(self, item: JobPhotoRecord) -> str:
        return item.filename

    async def export_item(self, context: BackupContext, folder_id: str, item: JobPhotoRecord) -> None:
        sub_folder_id = await context.folders.resolve_cached(context.access_token, item.job_id, folder_id)
        content = await self.files.read(f"photos/{context.user_id}/{item.job_id}/{item.filename}")
        await context.storage.upload_file(
            context.access_token,
            item.filename,
            item.mime_type or DEFAULT_PHOTO_MIME_TYPE,
            content,
            sub_folder_id,
        )


def default_stages(renderer: DocumentRenderer, files: FileStorage) -> List[ExportStage]:
    """The five stages in run order"""
    return [
        DataExportStage(),
        QuoteDocumentStage(renderer),
        InvoiceDocumentStage(renderer),
        DesignFileStage(files),
        JobPhotoStage(files),
    ]
