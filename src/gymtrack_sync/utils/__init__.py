"""Sanitizing and merge helpers."""

from .merge import (
    PROFILE_MERGE_POLICY,
    FieldPolicy,
    MergePolicy,
    Reconciliation,
    merge_data,
    reconcile_records,
    record_timestamp,
)
from .sanitize import format_timestamp, is_sensitive_key, parse_timestamp, sanitize_document

__all__ = [
    "PROFILE_MERGE_POLICY",
    "FieldPolicy",
    "MergePolicy",
    "Reconciliation",
    "format_timestamp",
    "is_sensitive_key",
    "merge_data",
    "parse_timestamp",
    "reconcile_records",
    "record_timestamp",
    "sanitize_document",
]
