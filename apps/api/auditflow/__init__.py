"""Audit form engine: form definitions, progress, review lifecycle and notifications."""
