"""
HTTP layer.

FastAPI routers, dependency providers and the JSON response envelope.
Routes stay thin: they parse the request, call into core, and map domain
errors to wire codes.
"""
