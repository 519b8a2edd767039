# kartly/core/__init__.py
"""Configuration, logging, security and error types shared across the service."""
