"""Shared infrastructure: configuration, logging, errors and retry."""
