"""CLI module for switchclaw."""
