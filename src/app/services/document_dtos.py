"""Document presentation models

Payloads handed to the document renderer for quote and invoice PDFs.
Serialized with camelCase keys, which is what the render service expects.
"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DocumentModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BusinessProfile(DocumentModel):
    name: Optional[str] = None
    address: Optional[str] = None
    abn: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    logo_url: Optional[str] = None


class ClientSnapshot(DocumentModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    billing_address: Optional[str] = None


class BankDetails(DocumentModel):
    name: Optional[str] = None
    bsb: Optional[str] = None
    account_number: Optional[str] = None
    account_name: Optional[str] = None


class QuoteLineItem(DocumentModel):
    description: str
    material_cost: float = 0
    machine_cost: float = 0
    labour_cost: float = 0
    overhead_cost: float = 0
    line_total: float = 0
    quantity: float = 1


class InvoiceLineItem(DocumentModel):
    description: str
    quantity: float = 1
    unit_price: float = 0
    line_total: float = 0


class QuoteDocumentData(DocumentModel):
    quote_number: str
    created_at: str
    expiry_date: Optional[str] = None
    currency: str
    subtotal: float = 0
    markup_pct: float = 0
    tax_pct: float = 0
    tax_label: str
    tax: float = 0
    tax_inclusive: bool = False
    tax_id_label: str
    total: float = 0
    notes: Optional[str] = None
    terms: Optional[str] = None
    client: Optional[ClientSnapshot] = None
    line_items: List[QuoteLineItem] = []
    business: BusinessProfile


class InvoiceDocumentData(DocumentModel):
    invoice_number: str
    created_at: str
    due_date: Optional[str] = None
    currency: str
    subtotal: float = 0
    tax_pct: float = 0
    tax_label: str
    tax: float = 0
    tax_inclusive: bool = False
    invoice_title: str
    tax_id_label: str
    total: float = 0
    status: Optional[str] = None
    notes: Optional[str] = None
    terms: Optional[str] = None
    client: Optional[ClientSnapshot] = None
    line_items: List[InvoiceLineItem] = []
    business: BusinessProfile
    bank: Optional[BankDetails] = None
