"""Fetching records from the UCRM API."""
from billing_export.ingestion.api import CrmApi
from billing_export.ingestion.loader import LookupCache, enrich_payments, load_export_data

__all__ = [
    "CrmApi",
    "LookupCache",
    "enrich_payments",
    "load_export_data",
]
