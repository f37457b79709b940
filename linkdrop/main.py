"""
main.py

Flask entry point for the LinkDrop sharing API.

Dependencies:
  - Python packages: Flask, flask-restx, flask-cors, redis, google-cloud-storage
  - Infrastructure: Redis server; a GCS bucket or a local STORAGE_DIR

API v1 endpoints are served at /api/v1/ with Swagger docs at /api/v1/docs.
"""

import os

from .app_factory import create_app

app = create_app()


def run() -> None:
    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", 8000))
    debug = os.getenv("FLASK_DEBUG", "false").lower() == "true"
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    run()
