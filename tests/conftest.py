"""
Shared pytest fixtures and configuration for the LinkDrop test suite.

This module provides:
- Hypothesis configuration for property-based testing
- Automatic markers by test directory
- In-memory policy store and object storage
- Wired domain and application services
- A Flask test client backed by the same fakes
"""

import pytest
from hypothesis import HealthCheck, Phase, settings

from linkdrop.app_factory import create_app, register_services
from linkdrop.application.dependency_container import DependencyContainer
from linkdrop.application.download_service import DownloadAuthorizationService
from linkdrop.application.event_publisher import EventPublisher
from linkdrop.application.file_service import FileService
from linkdrop.domain.events import DomainEvent
from linkdrop.domain.sharing.policy import AccessPolicyEvaluator
from linkdrop.domain.sharing.services import ShareLinkManager, SlugAllocator

from tests.fixtures.app_fixtures import BASE_URL, build_config
from tests.fixtures.mock_repositories import (
    FakeObjectStorage,
    InMemoryDownloadLogRepository,
    InMemoryFileRepository,
    InMemoryShareLinkRepository,
)

settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.target, Phase.shrink],
)
settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.load_profile("default")


def pytest_collection_modifyitems(config, items):
    """
    Automatically mark tests based on their location.

    - tests/unit/* -> @pytest.mark.unit
    - tests/integration/* -> @pytest.mark.integration
    - tests/e2e/* -> @pytest.mark.e2e
    - tests/property/* -> @pytest.mark.property
    """
    for item in items:
        test_path = str(item.fspath)

        if "/unit/" in test_path or "\\unit\\" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path or "\\integration\\" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/e2e/" in test_path or "\\e2e\\" in test_path:
            item.add_marker(pytest.mark.e2e)
        elif "/property/" in test_path or "\\property\\" in test_path:
            item.add_marker(pytest.mark.property)


# =============================================================================
# In-memory collaborators
# =============================================================================

@pytest.fixture
def file_repo():
    return InMemoryFileRepository()


@pytest.fixture
def link_repo():
    return InMemoryShareLinkRepository()


@pytest.fixture
def download_log():
    return InMemoryDownloadLogRepository()


@pytest.fixture
def object_storage():
    return FakeObjectStorage()


@pytest.fixture
def published_events():
    """List collecting every event published through ``event_publisher``."""
    return []


@pytest.fixture
def event_publisher(published_events):
    publisher = EventPublisher()
    publisher.subscribe(DomainEvent, published_events.append)
    return publisher


# =============================================================================
# Services
# =============================================================================

@pytest.fixture
def allocator(link_repo):
    return SlugAllocator(link_repo)


@pytest.fixture
def manager(file_repo, link_repo, allocator, event_publisher):
    return ShareLinkManager(
        file_repo, link_repo, allocator, BASE_URL, publish=event_publisher.publish
    )


@pytest.fixture
def engine(file_repo, manager, object_storage, download_log, event_publisher):
    return DownloadAuthorizationService(
        file_repo,
        manager,
        object_storage,
        download_log,
        evaluator=AccessPolicyEvaluator(),
        event_publisher=event_publisher,
    )


@pytest.fixture
def file_service(file_repo, link_repo, download_log, object_storage, event_publisher):
    return FileService(
        file_repo, link_repo, download_log, object_storage, event_publisher=event_publisher
    )


# =============================================================================
# Flask application
# =============================================================================

@pytest.fixture(scope="session")
def api_app():
    """
    One Flask app per test session.

    The v1 blueprint carries a Flask-RESTX Api and can only be set up once,
    so tests swap the app's container instead of building new apps.
    """
    app = create_app(build_config(), container=DependencyContainer())
    app.config["TESTING"] = True
    return app


@pytest.fixture
def app(api_app, file_repo, link_repo, download_log, object_storage):
    api_app.container = register_services(
        DependencyContainer(),
        build_config(),
        file_repo,
        link_repo,
        download_log,
        object_storage,
    )
    return api_app


@pytest.fixture
def client(app):
    return app.test_client()
