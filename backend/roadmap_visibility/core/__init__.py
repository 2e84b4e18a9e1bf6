"""Core infrastructure: configuration, database, logging, admin identity."""
