"""
Unit tests for DependencyContainer.
"""

import pytest

from linkdrop.application.dependency_container import (
    DependencyContainer,
    DependencyNotFoundError,
)
from linkdrop.application.event_publisher import EventPublisher
from linkdrop.domain.events import ShareLinkUsedEvent
from linkdrop.domain.sharing.value_objects import utcnow


class Service:
    pass


class TestDependencyContainer:
    def test_singleton_resolves_same_instance(self):
        container = DependencyContainer()
        instance = Service()
        container.register_singleton(Service, instance)

        assert container.resolve(Service) is instance
        assert container.is_registered(Service)

    def test_transient_resolves_new_instances(self):
        container = DependencyContainer()
        container.register_transient(Service, Service)

        assert container.resolve(Service) is not container.resolve(Service)

    def test_unregistered_raises(self):
        with pytest.raises(DependencyNotFoundError):
            DependencyContainer().resolve(Service)

    def test_override_wins_until_cleared(self):
        container = DependencyContainer()
        original, replacement = Service(), Service()
        container.register_singleton(Service, original)

        container.override(Service, replacement)
        assert container.resolve(Service) is replacement

        container.clear_overrides()
        assert container.resolve(Service) is original

    def test_setup_event_handlers_subscribes_logging_handler(self, caplog):
        container = DependencyContainer()
        publisher = EventPublisher()
        container.setup_event_handlers(publisher)

        with caplog.at_level("DEBUG", logger="linkdrop.events"):
            publisher.publish(ShareLinkUsedEvent(
                aggregate_id="team-link", occurred_at=utcnow(), use_count=1
            ))

        assert any("team-link" in r.getMessage() for r in caplog.records)
