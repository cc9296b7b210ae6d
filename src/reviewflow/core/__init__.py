"""Core library: configuration, records and the workflow engine."""
