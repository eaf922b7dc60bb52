"""Shared services: configuration, events, labels and logging setup."""
