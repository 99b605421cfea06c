"""Feed parsing: unit tokens, incident-type classification, raw record normalization."""

from parsing.units import parse_units
from parsing.classifier import classify, normalize_incident_type, base_priority, escalate_priority
from parsing.records import normalize_record, normalize_batch, parse_timestamp

__all__ = [
    "parse_units",
    "classify",
    "normalize_incident_type",
    "base_priority",
    "escalate_priority",
    "normalize_record",
    "normalize_batch",
    "parse_timestamp",
]
