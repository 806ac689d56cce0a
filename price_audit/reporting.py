"""
Read-only reports over the audit ledger: dashboard figures, supplier
summaries, CSV export and item-name diagnostics.
"""

from typing import Dict, Iterable, List, Optional

import pandas as pd
from rapidfuzz import fuzz

from price_audit.config import get_config
from price_audit.engine.baselines import BaselineStore, match_key
from price_audit.engine.variance import summarize_variances
from price_audit.schemas.invoice import EnrichedInvoice, Invoice, InvoiceStatus
from price_audit.schemas.output import (
    DashboardStats,
    SimilarItemNames,
    SupplierSummary,
    TrendPoint,
)
from price_audit.state import AuditLedger
from price_audit.utils.dates import parse_calendar_date


config = get_config()

CSV_COLUMNS = ["Date", "Invoice Number", "Supplier", "Total Amount", "GST", "Status"]
TREND_WINDOW = 10


def variance_trend(enriched: List[EnrichedInvoice], window: int = TREND_WINDOW) -> List[TrendPoint]:
    """Totals and summed price change for the most recent invoices, oldest first."""
    recent = list(reversed(enriched[:window]))
    return [
        TrendPoint(
            date=invoice.date,
            total=invoice.total_amount,
            variance=sum(item.price_change for item in invoice.items),
        )
        for invoice in recent
    ]


def dashboard_stats(ledger: AuditLedger) -> DashboardStats:
    enriched = ledger.enriched_invoices()
    unpaid = [invoice for invoice in enriched if not invoice.is_paid and not invoice.is_hold]
    overcharge, savings = summarize_variances(enriched)

    return DashboardStats(
        total_payable=sum(invoice.total_amount for invoice in unpaid),
        variances=sum(
            1 for invoice in enriched
            if invoice.status in (InvoiceStatus.PRICE_INCREASE, InvoiceStatus.MIXED) and not invoice.is_paid
        ),
        total_gst=sum(invoice.gst_amount for invoice in enriched),
        total_count=len(enriched),
        overcharge_total=overcharge,
        savings_total=savings,
        pending_count=len(ledger.pending_variances()),
        trend=variance_trend(enriched),
    )


def supplier_summaries(ledger: AuditLedger) -> List[SupplierSummary]:
    """Per-supplier invoice count, volume and latest invoice date, largest volume first."""
    summaries: Dict[str, SupplierSummary] = {}

    for invoice in ledger.invoices:
        key = match_key(invoice.supplier_name, ledger.baselines.name_matching)
        summary = summaries.get(key)
        if summary is None:
            supplier = ledger.find_supplier(invoice.supplier_name)
            summary = SupplierSummary(
                name=supplier.name if supplier else invoice.supplier_name,
                latest_date=invoice.date,
                abn=supplier.abn if supplier else invoice.abn,
                tel=supplier.tel if supplier else invoice.tel,
                email=supplier.email if supplier else invoice.email,
            )
            summaries[key] = summary

        summary.invoice_count += 1
        summary.total_volume += invoice.total_amount

        current = parse_calendar_date(summary.latest_date)
        candidate = parse_calendar_date(invoice.date)
        if candidate is not None and (current is None or candidate > current):
            summary.latest_date = invoice.date

    return sorted(summaries.values(), key=lambda s: s.total_volume, reverse=True)


def export_frame(invoices: Iterable[Invoice], invoice_ids: Optional[Iterable[str]] = None) -> pd.DataFrame:
    selected = set(invoice_ids) if invoice_ids else None
    rows = [
        {
            "Date": invoice.date or "",
            "Invoice Number": invoice.invoice_number,
            "Supplier": invoice.supplier_name,
            "Total Amount": invoice.total_amount,
            "GST": invoice.gst_amount,
            "Status": invoice.payment_status().value,
        }
        for invoice in invoices
        if selected is None or invoice.id in selected
    ]
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def export_csv(invoices: Iterable[Invoice], invoice_ids: Optional[Iterable[str]] = None) -> str:
    """CSV of the selected invoices (all of them when no ids are given)."""
    return export_frame(invoices, invoice_ids).to_csv(index=False)


def similar_item_names(store: BaselineStore, threshold: float = None) -> List[SimilarItemNames]:
    """
    Baseline item names under the same supplier that are probably the same
    product spelled differently ("Widget 10mm" vs "Widget 10 mm"). Such pairs
    each get their own baseline, so variances between them go unnoticed.
    """
    if threshold is None:
        threshold = config.SIMILAR_NAME_THRESHOLD

    by_supplier: Dict[str, List[str]] = {}
    for item in store.items():
        by_supplier.setdefault(item.supplier_name, []).append(item.item_name)

    findings = []
    for supplier_name, names in by_supplier.items():
        for i, name in enumerate(names):
            for other in names[i + 1:]:
                similarity = fuzz.token_sort_ratio(name.upper(), other.upper()) / 100.0
                if similarity >= threshold:
                    findings.append(
                        SimilarItemNames(
                            supplier_name=supplier_name,
                            item_name=name,
                            similar_to=other,
                            similarity=round(similarity, 3),
                        )
                    )

    return sorted(findings, key=lambda f: f.similarity, reverse=True)
