"""Shared helpers used across the service."""
