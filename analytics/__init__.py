"""Analytics over incident snapshots (dashboard counters)."""

from analytics.incident_stats import incident_stats, call_type_counts

__all__ = ["incident_stats", "call_type_counts"]
