"""Backup source queries

Reads the CRM's own tables (camelCase columns, one table per model) with
plain SQL. Table names only ever come from CATEGORY_TABLES.

Every statement runs inside its own SAVEPOINT. A failing read rolls back
to it and leaves the session's transaction usable for the next item.
"""
from collections import defaultdict
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import bindparam, text
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.backup_source_repository import IBackupSourceRepository
from src.domain.backup_sources import DesignFileRecord, JobPhotoRecord

CATEGORY_TABLES: Dict[str, str] = {
    "settings": "Settings",
    "printers": "Printer",
    "materials": "Material",
    "clients": "Client",
    "client-interactions": "ClientInteraction",
    "quotes": "Quote",
    "quote-line-items": "QuoteLineItem",
    "quote-events": "QuoteEvent",
    "invoices": "Invoice",
    "invoice-line-items": "InvoiceLineItem",
    "jobs": "Job",
    "job-events": "JobEvent",
    "designs": "Design",
    "design-files": "DesignFile",
    "design-revisions": "DesignRevision",
    "suppliers": "Supplier",
    "supplier-items": "SupplierItem",
    "consumables": "Consumable",
    "stock-transactions": "StockTransaction",
    "purchase-orders": "PurchaseOrder",
    "purchase-order-items": "PurchaseOrderItem",
    "calculator-presets": "CalculatorPreset",
    "webhooks": "Webhook",
    "drawings": "PartDrawing",
    "quote-templates": "QuoteTemplate",
    "upload-links": "UploadLink",
    "quote-requests": "QuoteRequest",
}

# Child tables carry no userId; they belong to the account through their parent
PARENT_KEYS: Dict[str, Tuple[str, str]] = {
    "client-interactions": ("Client", "clientId"),
    "quote-line-items": ("Quote", "quoteId"),
    "quote-events": ("Quote", "quoteId"),
    "invoice-line-items": ("Invoice", "invoiceId"),
    "job-events": ("Job", "jobId"),
    "design-files": ("Design", "designId"),
    "design-revisions": ("Design", "designId"),
    "supplier-items": ("Supplier", "supplierId"),
    "purchase-order-items": ("PurchaseOrder", "purchaseOrderId"),
}

CLIENT_COLUMNS = '"id", "name", "email", "phone", "company", "billingAddress"'


class SqlAlchemyBackupSourceRepository(IBackupSourceRepository):
    """SQLAlchemy implementation of the backup source repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _fetch(self, sql: str, **params) -> List[Dict[str, Any]]:
        stmt = text(sql)
        for name, value in params.items():
            if isinstance(value, (list, tuple)):
                stmt = stmt.bindparams(bindparam(name, expanding=True))
        async with self.session.begin_nested():
            result = await self.session.execute(stmt, params)
            return [dict(row) for row in result.mappings().all()]

    async def list_rows(self, category: str, user_id: str) -> List[Dict[str, Any]]:
        table = CATEGORY_TABLES.get(category)
        if not table:
            raise ValueError(f"Unknown data category: {category}")
        if category in PARENT_KEYS:
            parent, foreign_key = PARENT_KEYS[category]
            return await self._fetch(
                f'SELECT c.* FROM "{table}" c JOIN "{parent}" p ON c."{foreign_key}" = p."id" '
                f'WHERE p."userId" = :user_id',
                user_id=user_id,
            )
        return await self._fetch(f'SELECT * FROM "{table}" WHERE "userId" = :user_id', user_id=user_id)

    async def get_settings(self, user_id: str) -> Optional[Dict[str, Any]]:
        rows = await self._fetch('SELECT * FROM "Settings" WHERE "userId" = :user_id LIMIT 1', user_id=user_id)
        return rows[0] if rows else None

    async def list_quotes(self, user_id: str) -> List[Dict[str, Any]]:
        return await self._with_client_and_lines(
            "Quote", "QuoteLineItem", "quoteId", user_id
        )

    async def list_invoices(self, user_id: str) -> List[Dict[str, Any]]:
        return await self._with_client_and_lines(
            "Invoice", "InvoiceLineItem", "invoiceId", user_id
        )

    async def _with_client_and_lines(
        self, table: str, line_table: str, foreign_key: str, user_id: str
    ) -> List[Dict[str, Any]]:
        documents = await self._fetch(
            f'SELECT * FROM "{table}" WHERE "userId" = :user_id ORDER BY "createdAt" ASC',
            user_id=user_id,
        )
        if not documents:
            return []

        document_ids = [d["id"] for d in documents]
        line_items = await self._fetch(
            f'SELECT * FROM "{line_table}" WHERE "{foreign_key}" IN :ids',
            ids=document_ids,
        )
        lines_by_document = defaultdict(list)
        for line in line_items:
            lines_by_document[line[foreign_key]].append(line)

        client_ids = sorted({d["clientId"] for d in documents if d.get("clientId")})
        clients = {}
        if client_ids:
            rows = await self._fetch(
                f'SELECT {CLIENT_COLUMNS} FROM "Client" WHERE "id" IN :ids', ids=client_ids
            )
            clients = {row.pop("id"): row for row in rows}

        for document in documents:
            document["client"] = clients.get(document.get("clientId"))
            document["lineItems"] = lines_by_document.get(document["id"], [])
        return documents

    async def list_design_files(self, user_id: str) -> List[DesignFileRecord]:
        rows = await self._fetch(
            'SELECT d."id" AS "designId", d."designNumber", f."filename", f."originalName", f."mimeType" '
            'FROM "DesignFile" f JOIN "Design" d ON f."designId" = d."id" '
            'WHERE d."userId" = :user_id ORDER BY d."designNumber" ASC, f."id" ASC',
            user_id=user_id,
        )
        return [
            DesignFileRecord(
                design_id=row["designId"],
                design_number=row["designNumber"],
                filename=row["filename"],
                original_name=row["originalName"],
                mime_type=row["mimeType"],
            )
            for row in rows
        ]

    async def list_job_photos(self, user_id: str) -> List[JobPhotoRecord]:
        rows = await self._fetch(
            'SELECT "jobId", "filename", "mimeType" FROM "JobPhoto" WHERE "userId" = :user_id',
            user_id=user_id,
        )
        return [
            JobPhotoRecord(job_id=row["jobId"], filename=row["filename"], mime_type=row.get("mimeType"))
            for row in rows
        ]
