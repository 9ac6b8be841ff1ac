"""Logging and metrics for railwatch."""
