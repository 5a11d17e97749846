"""Conversational skills (packages) built from step sequences."""
