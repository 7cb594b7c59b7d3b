"""Core module - provider-neutral models, errors, config and observability.

Provider-specific logic (Jibble) belongs in /connectors/.
"""

__version__ = "1.0.0"
