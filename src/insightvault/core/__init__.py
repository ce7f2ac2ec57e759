"""Core infrastructure: configuration, logging, database, security and errors."""
