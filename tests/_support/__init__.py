"""Shared test helpers for changelog-spine."""
