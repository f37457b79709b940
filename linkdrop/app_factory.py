"""
Application Factory

Creates and configures the Flask application with all dependencies.
A pre-built DependencyContainer can be passed in so tests run without
Redis or cloud storage.
"""

import logging
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from .application.dependency_container import DependencyContainer
from .application.download_service import DownloadAuthorizationService
from .application.event_publisher import EventPublisher
from .application.file_service import FileService
from .config.app_config import AppConfig
from .config.redis_config import (
    RedisConfig,
    get_redis_repository,
    init_redis,
    redis_health_check,
)
from .domain.sharing.policy import AccessPolicyEvaluator
from .domain.sharing.repositories import (
    IDownloadLogRepository,
    IFileRepository,
    IShareLinkRepository,
)
from .domain.sharing.services import ShareLinkManager, SlugAllocator
from .domain.sharing.storage_repository import IObjectStorage
from .domain.sharing.validation import parse_type_policy
from .infrastructure.redis_policy_store import (
    RedisDownloadLogRepository,
    RedisFileRepository,
    RedisShareLinkRepository,
)
from .infrastructure.storage_factory import StorageFactory

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[AppConfig] = None,
    container: Optional[DependencyContainer] = None,
) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config: Application configuration, uses default if None
        container: Fully wired container; built from Redis and the storage
            factory when None

    Returns:
        Configured Flask application
    """
    if config is None:
        config = AppConfig()

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = Flask(__name__)

    CORS(
        app,
        resources={
            r"/*": {
                "origins": "*",
                "methods": ["GET", "POST", "DELETE", "OPTIONS"],
                "allow_headers": [
                    "Content-Type",
                    "Authorization",
                    "X-Tenant-Id",
                    "X-User-Id",
                    "X-User-Plans",
                ],
                "max_age": 3600,
            }
        },
    )

    if container is None:
        container = _build_container(config)
    app.container = container
    app.config["MAX_CONTENT_LENGTH"] = config.max_upload_bytes + 1024 * 1024

    _register_blueprints(app, config)
    _register_health_endpoint(app)

    return app


def register_services(
    container: DependencyContainer,
    config: AppConfig,
    file_repository: IFileRepository,
    link_repository: IShareLinkRepository,
    download_log: IDownloadLogRepository,
    object_storage: IObjectStorage,
) -> DependencyContainer:
    """
    Wire domain and application services on top of the given adapters.

    Infrastructure adapters are registered under their interfaces; services
    are singletons resolved by the API through ``current_app.container``.
    """
    event_publisher = EventPublisher()
    container.setup_event_handlers(event_publisher)

    container.register_singleton(EventPublisher, event_publisher)
    container.register_singleton(IFileRepository, file_repository)
    container.register_singleton(IShareLinkRepository, link_repository)
    container.register_singleton(IDownloadLogRepository, download_log)
    container.register_singleton(IObjectStorage, object_storage)

    allocator = SlugAllocator(
        link_repository,
        slug_length=config.slug_length,
        max_attempts=config.slug_max_attempts,
    )
    share_link_manager = ShareLinkManager(
        file_repository,
        link_repository,
        allocator,
        base_url=config.public_base_url,
        publish=event_publisher.publish,
    )
    container.register_singleton(SlugAllocator, allocator)
    container.register_singleton(ShareLinkManager, share_link_manager)

    container.register_singleton(
        DownloadAuthorizationService,
        DownloadAuthorizationService(
            file_repository,
            share_link_manager,
            object_storage,
            download_log,
            evaluator=AccessPolicyEvaluator(),
            event_publisher=event_publisher,
            url_ttl_seconds=config.signed_url_ttl_seconds,
        ),
    )
    container.register_singleton(
        FileService,
        FileService(
            file_repository,
            link_repository,
            download_log,
            object_storage,
            event_publisher=event_publisher,
            max_upload_bytes=config.max_upload_bytes,
            type_policy=parse_type_policy(config.allowed_file_types),
            preview_ttl_seconds=config.signed_url_ttl_seconds,
        ),
    )
    return container


def _build_container(config: AppConfig) -> DependencyContainer:
    """Build the production container: Redis policy store plus object storage."""
    redis_config = RedisConfig()
    init_redis(redis_config)
    redis_repo = get_redis_repository(redis_config.key_prefix)

    container = register_services(
        DependencyContainer(),
        config,
        RedisFileRepository(redis_repo),
        RedisShareLinkRepository(redis_repo),
        RedisDownloadLogRepository(redis_repo),
        StorageFactory.create_storage(public_base_url=config.public_base_url),
    )
    logger.info("Application services initialized with DependencyContainer")
    return container


def _register_blueprints(app: Flask, config: AppConfig) -> None:
    from .api.v1 import api_v1_bp

    app.register_blueprint(api_v1_bp)
    logger.info(
        f"API {config.api_version} registered at /api/{config.api_version} "
        f"with Swagger UI at /api/{config.api_version}/docs"
    )


def _get_health_status() -> tuple[dict, int]:
    """
    Get health status of the policy store.

    Returns:
        Tuple of (health_status_dict, http_status_code)
    """
    health_status = {"status": "ok", "message": "linkdrop ready", "redis": "unknown"}

    if redis_health_check():
        health_status["redis"] = "connected"
    else:
        health_status["redis"] = "disconnected"
        health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code


def _register_health_endpoint(app: Flask) -> None:
    @app.route("/health", methods=["GET"])
    def health():
        """Overall health of the application and its dependencies."""
        health_status, status_code = _get_health_status()
        return jsonify(health_status), status_code
