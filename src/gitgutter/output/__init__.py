"""Reporters — rich terminal tables, JSON and YAML."""
