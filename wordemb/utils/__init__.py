"""Shared helpers: exceptions, logging and trace context."""
