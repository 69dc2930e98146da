"""Shared helpers for DevTask."""
