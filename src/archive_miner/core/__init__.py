"""Shared exceptions, value types and logging configuration."""
