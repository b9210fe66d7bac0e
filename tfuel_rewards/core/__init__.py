"""
Core utilities: unit conversion, address handling, response memoization
and the shared exception taxonomy used by the API server and the client.
"""
