"""
HTTP API layer: routers for pages, records and operational endpoints.
"""
