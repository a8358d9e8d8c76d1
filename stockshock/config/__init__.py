"""Configuration, environment and logging setup."""
