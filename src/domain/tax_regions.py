"""Tax region defaults used when assembling quote and invoice documents"""
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class TaxRegionDefaults:
    code: str
    name: str
    default_tax_pct: float
    tax_label: str
    invoice_title: str
    tax_id_label: str
    tax_inclusive: bool


DEFAULT_TAX_REGION = "AU"

TAX_REGIONS: Dict[str, TaxRegionDefaults] = {
    "AU": TaxRegionDefaults("AU", "Australia", 10, "GST", "TAX INVOICE", "ABN", True),
    "EU": TaxRegionDefaults("EU", "European Union", 20, "VAT", "VAT INVOICE", "VAT Number", True),
    "UK": TaxRegionDefaults("UK", "United Kingdom", 20, "VAT", "VAT INVOICE", "VAT Number", True),
    "US": TaxRegionDefaults("US", "United States", 0, "Sales Tax", "INVOICE", "EIN", False),
    "CA": TaxRegionDefaults("CA", "Canada", 5, "GST", "INVOICE", "BN/GST Number", False),
}


def get_tax_defaults(region: Optional[str]) -> TaxRegionDefaults:
    """Defaults for a configured region; unknown or empty regions resolve to AU"""
    return TAX_REGIONS.get((region or DEFAULT_TAX_REGION).upper(), TAX_REGIONS[DEFAULT_TAX_REGION])
