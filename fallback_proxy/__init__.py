"""Model fallback registry and management API for a multi-provider proxy."""

__version__ = "1.0.0"
