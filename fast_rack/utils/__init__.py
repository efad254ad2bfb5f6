"""Shared utilities for fast-rack: logging, trace context and constants."""
