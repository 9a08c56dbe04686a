"""
Person Registry Service

Ingests person records from a delimited text source, validates them against
the closed color enumeration and serves them over a small HTTP API.
"""

__version__ = "1.0.0"
__description__ = "Person record ingestion and lookup service"

__all__ = [
    "__version__",
    "__description__",
]
