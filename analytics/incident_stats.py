"""Dashboard counters over an incident snapshot."""

from collections import Counter
from typing import Iterable

from core.models import Incident, IncidentStatus, Priority


def incident_stats(incidents: Iterable[Incident]) -> dict:
    incidents = list(incidents)
    active = [i for i in incidents if i.status != IncidentStatus.RESOLVED]
    return {
        "total": len(incidents),
        "active": len(active),
        "critical": sum(1 for i in incidents if i.priority == Priority.CRITICAL),
        "resolved": len(incidents) - len(active),
        "units_deployed": len({u for i in active for u in i.units}),
    }


def call_type_counts(incidents: Iterable[Incident], resolved: bool = False) -> list[tuple[str, int]]:
    """(type, count) over active incidents (or resolved ones), by count desc then type name."""
    counts = Counter(
        i.type for i in incidents
        if (i.status == IncidentStatus.RESOLVED) == resolved
    )
    return sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
