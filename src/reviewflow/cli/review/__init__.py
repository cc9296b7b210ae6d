"""Review commands."""
