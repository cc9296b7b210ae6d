"""Configuration commands."""
