"""Core infrastructure: configuration, logging, database engine and errors."""
