"""
Record classification: raw CAD incident-type text -> canonical type label + priority tier.
Unit-count escalation lives here too so normalization and reconciliation share one rule.
"""

import logging
from typing import Optional

from core.models import Priority

logger = logging.getLogger("dispatch_watch.parsing.classifier")

# Exact match first, then substring match in this order.
INCIDENT_TYPE_MAP = {
    "fire rescue - outdoor": "Outdoor Fire/Rescue",
    "fire rescue - indoor": "Indoor Fire/Rescue",
    "fire rescue - vehicle": "Vehicle Fire/Rescue",
    "fire rescue - structure": "Structure Fire/Rescue",
    "medical": "Medical Emergency",
    "ems": "Medical Emergency",
    "mva": "Motor Vehicle Accident",
    "mvc": "Motor Vehicle Collision",
    "alarm activation": "Alarm Activation",
    "hazmat": "Hazardous Materials",
}

CRITICAL_KEYWORDS = [
    "structure fire", "building fire", "house fire", "cardiac", "heart attack",
    "stroke", "unconscious", "not breathing", "explosion", "hazmat",
]
HIGH_KEYWORDS = [
    "medical emergency", "ems", "motor vehicle accident", "mva", "collision",
    "vehicle fire", "gas leak", "chest pain", "difficulty breathing",
]
MEDIUM_KEYWORDS = [
    "alarm", "grass fire", "brush fire", "lift assist", "welfare check",
]

PRIORITY_TIERS = [
    (Priority.CRITICAL, CRITICAL_KEYWORDS),
    (Priority.HIGH, HIGH_KEYWORDS),
    (Priority.MEDIUM, MEDIUM_KEYWORDS),
]

ALARM_CRITICAL_UNITS = 6
DEFAULT_CRITICAL_UNITS = 5


def normalize_incident_type(text: Optional[str]) -> str:
    """Canonical, human-presentable type. Empty -> "Unknown"; unmapped -> title-cased words."""
    if not text or not text.strip():
        return "Unknown"
    normalized = text.lower().strip()
    if normalized in INCIDENT_TYPE_MAP:
        return INCIDENT_TYPE_MAP[normalized]
    for key, label in INCIDENT_TYPE_MAP.items():
        if key in normalized:
            return label
    return " ".join(w[:1].upper() + w[1:].lower() for w in text.strip().split())


def base_priority(text: Optional[str]) -> Priority:
    """Keyword tiers on the raw type text: CRITICAL > HIGH > MEDIUM > LOW."""
    if not text or not text.strip():
        return Priority.LOW
    normalized = text.lower()
    for tier, keywords in PRIORITY_TIERS:
        if any(k in normalized for k in keywords):
            return tier
    return Priority.LOW


def escalate_priority(incident_type: str, unit_count: int, current: Priority) -> Priority:
    """
    Force CRITICAL once enough units are attached: 6+ for alarm calls, 5+ otherwise.
    Below the threshold the current priority is kept (never downgrades).
    """
    is_alarm = "alarm" in (incident_type or "").lower()
    threshold = ALARM_CRITICAL_UNITS if is_alarm else DEFAULT_CRITICAL_UNITS
    if unit_count >= threshold:
        if current != Priority.CRITICAL:
            logger.debug("priority escalated type=%r units=%d from=%s", incident_type, unit_count, current.value)
        return Priority.CRITICAL
    return current


def classify(text: Optional[str], unit_count: int) -> tuple[str, Priority]:
    """Canonical type plus base priority with unit-count escalation applied."""
    incident_type = normalize_incident_type(text)
    priority = escalate_priority(incident_type, unit_count, base_priority(text))
    return incident_type, priority
