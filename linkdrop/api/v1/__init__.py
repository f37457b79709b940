"""
API v1 - LinkDrop REST API

Versioned endpoints with OpenAPI/Swagger documentation.
"""

import os

from flask import Blueprint
from flask_restx import Api

API_VERSION = os.getenv("API_VERSION", "v1")

api_v1_bp = Blueprint("api_v1", __name__, url_prefix=f"/api/{API_VERSION}")

# Swagger UI is served at /api/v1/docs
api = Api(
    api_v1_bp,
    version="1.0",
    title="LinkDrop API",
    description="File sharing with expiring, usage-bounded share links",
    doc="/docs",
)

# Namespaces import `api` for their models, so they come after it
from .namespaces import blobs_ns, files_ns, shares_ns  # noqa: E402

api.add_namespace(files_ns, path="/files")
api.add_namespace(shares_ns, path="/shares")
api.add_namespace(blobs_ns, path="/blobs")
