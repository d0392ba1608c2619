"""Shared types, configuration, errors and clocks."""
