"""
API server package: HTTP interface over the analytics engine.

Every route validates its input, creates a chain-data provider for the
request and returns camelCase JSON or {"error": message}.
"""
