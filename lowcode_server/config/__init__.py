"""Configuration loading for the low-code platform server."""
