"""Pending change review and versioned publishing of project resources."""
