"""Client Portal backend - multi-tenant project, ticket and invoice management."""

__version__ = "0.1.0"
