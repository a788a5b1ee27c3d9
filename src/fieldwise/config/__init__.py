"""Configuration — engine models, TOML discovery, settings, and logging."""
