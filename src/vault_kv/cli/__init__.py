"""Command line interface for the Vault key/value client."""
