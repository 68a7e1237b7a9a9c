"""
Core utilities and configuration for the cube export tool.

This package provides foundational components used throughout the pipeline:

Modules:
    config: Application configuration and environment variable management
    context: Explicit credentials/endpoint context for API access
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities

Usage:
    from core.config import settings
    from core.context import ExecutionContext
    from core.exceptions import AuthenticationError, UpstreamError
    from core.logging import setup_logging

Example:
    setup_logging()
    context = ExecutionContext.from_settings(email="me@example.com", password="...")
"""

__all__ = [
    "settings",
    "setup_logging",
    "ExecutionContext",
    # Exceptions
    "ExportException",
    "APIError",
    "AuthenticationError",
    "RateLimitError",
    "TransportError",
    "UpstreamError",
    "FilesystemError",
    "CheckpointError",
    "ConfigurationError",
    "RetryableError",
    "NonRetryableError",
]
