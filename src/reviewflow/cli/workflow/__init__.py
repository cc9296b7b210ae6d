"""Workflow resolution and enforcement commands."""
