"""HTTP API for the finalization engine."""
