"""Audit trail for workflow mutations."""
