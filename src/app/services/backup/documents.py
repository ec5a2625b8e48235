"""Presentation models for quote and invoice PDFs

Builds renderer payloads from the rows returned by the backup source
repository (camelCase keys, as stored) and the account's business settings.
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from src.app.services.document_dtos import (
    BankDetails,
    BusinessProfile,
    ClientSnapshot,
    InvoiceDocumentData,
    InvoiceLineItem,
    QuoteDocumentData,
    QuoteLineItem,
)
from src.domain.tax_regions import TaxRegionDefaults

DEFAULT_TAX_LABEL = "GST"
DEFAULT_CURRENCY = "AUD"


def _iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _number(value: Any, default: float = 0) -> float:
    if value is None:
        return default
    return float(value)


def _tax_label(record: Dict[str, Any], settings: Dict[str, Any]) -> str:
    return record.get("taxLabel") or settings.get("taxLabel") or DEFAULT_TAX_LABEL


def build_business_profile(settings: Dict[str, Any]) -> BusinessProfile:
    return BusinessProfile(
        name=settings.get("businessName") or None,
        address=settings.get("businessAddress") or None,
        abn=settings.get("businessAbn") or None,
        phone=settings.get("businessPhone") or None,
        email=settings.get("businessEmail") or None,
        logo_url=settings.get("businessLogoUrl") or None,
    )


def build_client_snapshot(client: Optional[Dict[str, Any]]) -> Optional[ClientSnapshot]:
    if not client:
        return None
    return ClientSnapshot(
        name=client.get("name"),
        email=client.get("email"),
        phone=client.get("phone"),
        company=client.get("company"),
        billing_address=client.get("billingAddress"),
    )


def build_bank_details(settings: Dict[str, Any]) -> Optional[BankDetails]:
    """Bank block, only when at least one bank field is configured"""
    fields = ("bankName", "bankBsb", "bankAccountNumber", "bankAccountName")
    if not any(settings.get(f) for f in fields):
        return None
    return BankDetails(
        name=settings.get("bankName"),
        bsb=settings.get("bankBsb"),
        account_number=settings.get("bankAccountNumber"),
        account_name=settings.get("bankAccountName"),
    )


def build_quote_document(
    quote: Dict[str, Any], settings: Dict[str, Any], region: TaxRegionDefaults
) -> QuoteDocumentData:
    line_items: List[QuoteLineItem] = [
        QuoteLineItem(
            description=li.get("description") or "",
            material_cost=_number(li.get("materialCost")),
            machine_cost=_number(li.get("machineCost")),
            labour_cost=_number(li.get("labourCost")),
            overhead_cost=_number(li.get("overheadCost")),
            line_total=_number(li.get("lineTotal")),
            quantity=_number(li.get("quantity"), 1),
        )
        for li in quote.get("lineItems") or []
    ]
    return QuoteDocumentData(
        quote_number=quote["quoteNumber"],
        created_at=_iso(quote.get("createdAt")) or "",
        expiry_date=_iso(quote.get("expiryDate")),
        currency=quote.get("currency") or DEFAULT_CURRENCY,
        subtotal=_number(quote.get("subtotal")),
        markup_pct=_number(quote.get("markupPct")),
        tax_pct=_number(quote.get("taxPct")),
        tax_label=_tax_label(quote, settings),
        tax=_number(quote.get("tax")),
        tax_inclusive=bool(quote.get("taxInclusive")),
        tax_id_label=region.tax_id_label,
        total=_number(quote.get("total")),
        notes=quote.get("notes"),
        terms=quote.get("terms"),
        client=build_client_snapshot(quote.get("client")),
        line_items=line_items,
        business=build_business_profile(settings),
    )


def build_invoice_document(
    invoice: Dict[str, Any], settings: Dict[str, Any], region: TaxRegionDefaults
) -> InvoiceDocumentData:
    line_items = [
        InvoiceLineItem(
            description=li.get("description") or "",
            quantity=_number(li.get("quantity"), 1),
            unit_price=_number(li.get("unitPrice")),
            line_total=_number(li.get("lineTotal")),
        )
        for li in invoice.get("lineItems") or []
    ]
    return InvoiceDocumentData(
        invoice_number=invoice["invoiceNumber"],
        created_at=_iso(invoice.get("createdAt")) or "",
        due_date=_iso(invoice.get("dueDate")),
        currency=invoice.get("currency") or DEFAULT_CURRENCY,
        subtotal=_number(invoice.get("subtotal")),
        tax_pct=_number(invoice.get("taxPct")),
        tax_label=_tax_label(invoice, settings),
        tax=_number(invoice.get("tax")),
        tax_inclusive=bool(invoice.get("taxInclusive")),
        invoice_title=region.invoice_title,
        tax_id_label=region.tax_id_label,
        total=_number(invoice.get("total")),
        status=invoice.get("status"),
        notes=invoice.get("notes"),
        terms=invoice.get("terms"),
        client=build_client_snapshot(invoice.get("client")),
        line_items=line_items,
        business=build_business_profile(settings),
        bank=build_bank_details(settings),
    )
