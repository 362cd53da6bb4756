"""Security tests for the client portal

This module contains security-focused tests including:
- Tenant escape through payload fields
- Tenant escape through relation connections
- Tenant escape through filters and query parameters
"""
