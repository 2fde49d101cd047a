"""Logging helpers for vault_kv."""
