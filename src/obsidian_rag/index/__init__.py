"""Vault storage, scanning and search."""
