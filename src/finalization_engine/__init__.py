"""Period finalization and leave-payroll reconciliation engine."""

__version__ = "0.1.0"
