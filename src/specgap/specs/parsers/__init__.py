"""Parsers for the supported specification schemas."""
