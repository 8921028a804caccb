"""Roundtable: multi-role, phase-driven AI discussion orchestrator."""

__version__ = "0.1.0"
