"""Tests for incident-type canonicalization, keyword priority tiers and unit-count escalation."""

from core.models import Priority
from parsing.classifier import base_priority, classify, escalate_priority, normalize_incident_type


class TestNormalizeIncidentType:
    def test_exact_match(self):
        assert normalize_incident_type("MVA") == "Motor Vehicle Accident"
        assert normalize_incident_type(" ems ") == "Medical Emergency"
        assert normalize_incident_type("medical") == "Medical Emergency"
        assert normalize_incident_type("Hazmat") == "Hazardous Materials"

    def test_substring_match(self):
        assert normalize_incident_type("Fire Rescue - Structure - Working") == "Structure Fire/Rescue"
        assert normalize_incident_type("Alarm Activation Commercial") == "Alarm Activation"

    def test_title_case_fallback(self):
        assert normalize_incident_type("lift ASSIST") == "Lift Assist"
        assert normalize_incident_type("structure fire") == "Structure Fire"

    def test_empty_is_unknown(self):
        assert normalize_incident_type("") == "Unknown"
        assert normalize_incident_type("   ") == "Unknown"
        assert normalize_incident_type(None) == "Unknown"


class TestBasePriority:
    def test_critical_keywords(self):
        assert base_priority("Structure Fire") == Priority.CRITICAL
        assert base_priority("Cardiac Arrest") == Priority.CRITICAL
        assert base_priority("patient not breathing") == Priority.CRITICAL

    def test_high_keywords(self):
        assert base_priority("Medical Emergency") == Priority.HIGH
        assert base_priority("MVA") == Priority.HIGH
        assert base_priority("Gas Leak") == Priority.HIGH

    def test_medium_keywords(self):
        assert base_priority("Alarm Activation") == Priority.MEDIUM
        assert base_priority("Grass Fire") == Priority.MEDIUM
        assert base_priority("Lift Assist") == Priority.MEDIUM

    def test_critical_beats_lower_tiers(self):
        assert base_priority("explosion with collision") == Priority.CRITICAL

    def test_other_and_empty_low(self):
        assert base_priority("Garbage Fire") == Priority.LOW
        assert base_priority("") == Priority.LOW
        assert base_priority(None) == Priority.LOW


class TestEscalatePriority:
    def test_non_alarm_five_units_critical(self):
        assert escalate_priority("Garbage Fire", 5, Priority.LOW) == Priority.CRITICAL

    def test_non_alarm_four_units_kept(self):
        assert escalate_priority("Garbage Fire", 4, Priority.LOW) == Priority.LOW

    def test_alarm_needs_six(self):
        assert escalate_priority("Alarm Activation", 5, Priority.MEDIUM) == Priority.MEDIUM
        assert escalate_priority("Alarm Activation", 6, Priority.MEDIUM) == Priority.CRITICAL

    def test_never_downgrades(self):
        assert escalate_priority("Garbage Fire", 0, Priority.CRITICAL) == Priority.CRITICAL
        assert escalate_priority("Medical Emergency", 1, Priority.HIGH) == Priority.HIGH


class TestClassify:
    def test_type_and_priority(self):
        assert classify("mva", 2) == ("Motor Vehicle Accident", Priority.HIGH)

    def test_escalation_applied(self):
        assert classify("Lift Assist", 5) == ("Lift Assist", Priority.CRITICAL)

    def test_empty(self):
        assert classify("", 0) == ("Unknown", Priority.LOW)
