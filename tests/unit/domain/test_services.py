"""
Unit tests for SlugAllocator and ShareLinkManager.
"""

import threading
from unittest.mock import patch

import pytest

from linkdrop.domain.errors import (
    ConflictError,
    InvalidRequestError,
    InvalidSlugError,
    NotFoundError,
    SlugAllocationError,
)
from linkdrop.domain.events import ShareLinkCreatedEvent, ShareLinkUsedEvent
from linkdrop.domain.sharing.entities import ShareLink
from linkdrop.domain.sharing.repositories import ReservationStatus
from linkdrop.domain.sharing.services import SlugAllocator
from linkdrop.domain.sharing.value_objects import Slug

from tests.fixtures.domain_fixtures import OWNER, TENANT, build_file, build_link, future


def _factory(file_id="file-1"):
    return lambda slug: ShareLink.create(slug=slug, file_id=file_id, created_by=OWNER)


class TestSlugAllocator:
    def test_generated_slug_is_inserted(self, allocator, link_repo):
        link = allocator.allocate(_factory())

        assert len(link.slug) == 10
        assert link_repo.get(link.slug) == link

    def test_collision_triggers_redraw(self, allocator, link_repo):
        link_repo.insert_if_absent(build_link("file-1", slug="taken-slug"))
        draws = iter([Slug("taken-slug"), Slug("fresh-slug")])

        with patch.object(Slug, "generate", side_effect=lambda length: next(draws)):
            link = allocator.allocate(_factory())

        assert link.slug == "fresh-slug"
        assert link_repo.insert_attempts[-2:] == ["taken-slug", "fresh-slug"]

    def test_exhausted_attempts_raise(self, link_repo):
        allocator = SlugAllocator(link_repo, max_attempts=3)
        link_repo.insert_if_absent(build_link("file-1", slug="always-same"))

        with patch.object(Slug, "generate", return_value=Slug("always-same")):
            with pytest.raises(SlugAllocationError):
                allocator.allocate(_factory())

        # One seed insert plus three bounded attempts
        assert len(link_repo.insert_attempts) == 4

    def test_custom_slug_conflict(self, allocator, link_repo):
        link_repo.insert_if_absent(build_link("file-1", slug="team-link"))

        with pytest.raises(ConflictError):
            allocator.allocate(_factory("file-2"), custom_slug="team-link")

        assert link_repo.get("team-link").file_id == "file-1"

    def test_custom_slug_lost_race_is_conflict(self, allocator, link_repo):
        with patch.object(link_repo, "insert_if_absent", return_value=False):
            with pytest.raises(ConflictError):
                allocator.allocate(_factory(), custom_slug="team-link")

    def test_invalid_custom_slug(self, allocator):
        with pytest.raises(InvalidSlugError):
            allocator.allocate(_factory(), custom_slug="no spaces")

    def test_slug_length_never_below_ten(self, link_repo):
        assert SlugAllocator(link_repo, slug_length=4).slug_length == 10

    def test_slug_length_capped_at_maximum(self, link_repo):
        allocator = SlugAllocator(link_repo, slug_length=200)

        link = allocator.allocate(_factory())

        assert allocator.slug_length == 64
        assert len(link.slug) == 64
        assert link_repo.get(link.slug) == link

    def test_max_attempts_must_be_positive(self, link_repo):
        with pytest.raises(ValueError):
            SlugAllocator(link_repo, max_attempts=0)


class TestShareLinkManagerCreate:
    def test_create_with_generated_slug(self, manager, file_repo, published_events):
        shared_file = build_file()
        file_repo.save(shared_file)

        link = manager.create(shared_file.file_id, OWNER, max_uses=5, expires_at=future())

        assert link.max_uses == 5
        assert link.use_count == 0
        assert manager.build_url(link) == f"https://share.example.com/download/{link.slug}"
        created = [e for e in published_events if isinstance(e, ShareLinkCreatedEvent)]
        assert created[0].aggregate_id == link.slug
        assert created[0].custom_slug is False

    def test_create_with_custom_slug(self, manager, file_repo):
        shared_file = build_file()
        file_repo.save(shared_file)

        link = manager.create(shared_file.file_id, OWNER, slug="team-link")

        assert link.slug == "team-link"

    def test_duplicate_custom_slug_conflicts(self, manager, file_repo):
        shared_file = build_file()
        file_repo.save(shared_file)
        manager.create(shared_file.file_id, OWNER, slug="team-link")

        with pytest.raises(ConflictError):
            manager.create(shared_file.file_id, OWNER, slug="team-link")

    def test_unknown_file(self, manager):
        with pytest.raises(NotFoundError):
            manager.create("missing", OWNER)

    def test_other_tenant_cannot_share(self, manager, file_repo):
        shared_file = build_file()
        file_repo.save(shared_file)

        with pytest.raises(NotFoundError):
            manager.create(shared_file.file_id, "intruder", tenant_id="tenant-b")

    def test_max_uses_must_be_positive(self, manager, file_repo):
        shared_file = build_file()
        file_repo.save(shared_file)

        with pytest.raises(InvalidRequestError):
            manager.create(shared_file.file_id, OWNER, max_uses=0)

    def test_concurrent_generated_slugs_are_distinct(self, manager, file_repo):
        shared_file = build_file()
        file_repo.save(shared_file)
        slugs = []
        lock = threading.Lock()

        def create():
            link = manager.create(shared_file.file_id, OWNER)
            with lock:
                slugs.append(link.slug)

        threads = [threading.Thread(target=create) for _ in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(slugs) == 20
        assert len(set(slugs)) == 20


class TestShareLinkManagerLifecycle:
    def test_resolve_returns_link_and_file(self, manager, file_repo, link_repo):
        shared_file = build_file()
        file_repo.save(shared_file)
        link_repo.insert_if_absent(build_link(shared_file.file_id))

        link, resolved = manager.resolve("team-link")

        assert link.slug == "team-link"
        assert resolved.file_id == shared_file.file_id

    def test_resolve_unknown_slug(self, manager):
        with pytest.raises(NotFoundError):
            manager.resolve("nope-nope")

    def test_resolve_after_file_deleted(self, manager, file_repo, link_repo):
        shared_file = build_file()
        file_repo.save(shared_file)
        link_repo.insert_if_absent(build_link(shared_file.file_id))
        file_repo.delete(shared_file.file_id)

        with pytest.raises(NotFoundError):
            manager.resolve("team-link")

    def test_track_use_increments(self, manager, link_repo, published_events):
        link_repo.insert_if_absent(build_link("file-1"))

        assert manager.track_use("team-link") == 1
        assert manager.track_use("team-link") == 2
        assert link_repo.get("team-link").last_used_at is not None
        used = [e for e in published_events if isinstance(e, ShareLinkUsedEvent)]
        assert [e.use_count for e in used] == [1, 2]

    def test_track_use_ignores_quota(self, manager, link_repo):
        link_repo.insert_if_absent(build_link("file-1", max_uses=1, use_count=1))

        assert manager.track_use("team-link") == 2

    def test_track_use_unknown_slug_mutates_nothing(self, manager, link_repo):
        link_repo.insert_if_absent(build_link("file-1", slug="other-link"))
        before = link_repo.get("other-link")

        with pytest.raises(NotFoundError):
            manager.track_use("unknown-slug")

        assert link_repo.get("other-link") == before
        assert not link_repo.exists("unknown-slug")

    def test_reserve_use_enforces_quota(self, manager, link_repo):
        link_repo.insert_if_absent(build_link("file-1", max_uses=1))

        assert manager.reserve_use("team-link").reserved
        refused = manager.reserve_use("team-link")

        assert refused.status is ReservationStatus.LIMIT_REACHED
        assert link_repo.get("team-link").use_count == 1

    def test_list_for_file(self, manager, file_repo):
        shared_file = build_file()
        file_repo.save(shared_file)
        manager.create(shared_file.file_id, OWNER, slug="first-link")
        manager.create(shared_file.file_id, OWNER, slug="second-link")

        links = manager.list_for_file(shared_file.file_id, tenant_id=TENANT)

        assert {link.slug for link in links} == {"first-link", "second-link"}

    def test_list_for_other_tenant_is_not_found(self, manager, file_repo):
        shared_file = build_file()
        file_repo.save(shared_file)

        with pytest.raises(NotFoundError):
            manager.list_for_file(shared_file.file_id, tenant_id="tenant-b")
