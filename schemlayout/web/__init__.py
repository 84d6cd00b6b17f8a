"""Web surface — one editing session served over HTTP.

Submodules:
  server  FastAPI app and request models (``python -m schemlayout serve``).
  naming  File names for exported documents.
"""
