"""
API Routes Package
==================
Shared pieces for the FastAPI app in api.py.

Modules:
  helpers  - DB utilities, the health record / goal source, JSON shaping
"""
