"""Default generators for the server-level and entity-level events."""
