"""Configuration models, settings sources, and logging setup."""
