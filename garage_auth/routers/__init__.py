"""
FastAPI routers.

Each file inside this package exposes an APIRouter that is included by the
app factory (app.py). Routers only translate HTTP to service calls; typed
service failures are turned into responses by the app-level handler.
"""
