"""Scope graphs for reactive widget state: inheritance, provided attributes, listeners and small text helpers."""

__version__ = "0.1.0"