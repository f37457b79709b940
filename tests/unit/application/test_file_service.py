"""
Unit tests for FileService

Tests upload validation and storage, owner details, paged listing, owner
previews and the storage-first deletion order.
"""

from datetime import timedelta
from io import BytesIO

import pytest

from linkdrop.application.file_service import FileService
from linkdrop.domain.errors import (
    FileValidationError,
    InvalidRequestError,
    NotFoundError,
    UnavailableError,
)
from linkdrop.domain.events import FileDeletedEvent, FileUploadedEvent
from linkdrop.domain.sharing.value_objects import AccessContext
from linkdrop.domain.sharing.validation import parse_type_policy

from tests.fixtures.domain_fixtures import OWNER, TENANT, build_file, build_link, past


def _upload(service, **overrides):
    kwargs = dict(
        tenant_id=TENANT,
        created_by=OWNER,
        content=b"%PDF-1.7 report",
        filename="Report.PDF",
        content_type="application/pdf",
        size=15,
    )
    kwargs.update(overrides)
    return service.upload(**kwargs)


class TestUpload:
    def test_upload_stores_bytes_and_record(
        self, file_service, file_repo, object_storage, published_events
    ):
        shared_file = _upload(file_service, name="Q3 report", password="Secret1")

        assert shared_file.storage_key.startswith(f"{TENANT}/")
        assert shared_file.storage_key.endswith(".pdf")
        assert object_storage.objects[shared_file.storage_key] == b"%PDF-1.7 report"
        assert object_storage.content_types[shared_file.storage_key] == "application/pdf"

        stored = file_repo.get(shared_file.file_id)
        assert stored.name == "Q3 report"
        assert stored.original_name == "Report.PDF"
        assert stored.file_extension == ".pdf"
        assert stored.has_password
        assert stored.check_password("Secret1")
        assert isinstance(published_events[-1], FileUploadedEvent)

    def test_upload_accepts_streams(self, file_service, object_storage):
        shared_file = _upload(file_service, content=BytesIO(b"streamed"), size=8)

        assert object_storage.objects[shared_file.storage_key] == b"streamed"

    def test_missing_content_type_defaults(self, file_service, object_storage):
        shared_file = _upload(file_service, content_type="")

        assert shared_file.mime_type == "application/octet-stream"

    def test_invalid_file_never_reaches_storage(self, file_service, object_storage):
        with pytest.raises(FileValidationError):
            _upload(file_service, filename="../evil.pdf")

        assert object_storage.objects == {}

    def test_type_policy_applied(self, file_repo, link_repo, download_log, object_storage):
        service = FileService(
            file_repo, link_repo, download_log, object_storage,
            type_policy=parse_type_policy(".zip"),
        )

        with pytest.raises(FileValidationError, match="not allowed"):
            _upload(service)

    def test_size_limit_applied(self, file_repo, link_repo, download_log, object_storage):
        service = FileService(
            file_repo, link_repo, download_log, object_storage, max_upload_bytes=10
        )

        with pytest.raises(FileValidationError):
            _upload(service)

    def test_max_downloads_must_be_positive(self, file_service):
        with pytest.raises(InvalidRequestError):
            _upload(file_service, max_downloads=0)

    def test_record_failure_removes_stored_bytes(self, file_service, file_repo, object_storage):
        file_repo.fail_with = UnavailableError("redis down")

        with pytest.raises(UnavailableError):
            _upload(file_service)

        assert object_storage.objects == {}

    def test_storage_failure_writes_no_record(self, file_service, file_repo, object_storage):
        object_storage.fail_put = True

        with pytest.raises(UnavailableError):
            _upload(file_service)

        assert file_repo.list_for_tenant(TENANT) == []


class TestDetails:
    def test_owner_sees_log_and_counts(self, file_service, engine, manager, file_repo):
        shared_file = build_file()
        file_repo.save(shared_file)
        manager.create(shared_file.file_id, OWNER, slug="team-link")
        engine.authorize(shared_file.file_id, AccessContext())
        engine.authorize_via_link("team-link", AccessContext())

        details = file_service.get_details(shared_file.file_id, tenant_id=TENANT)

        assert details["download_count"] == 2
        assert details["download_log_count"] == 2
        assert details["share_link_count"] == 1
        assert details["recent_downloads"][0]["method"] == "share_link"
        assert "storage_key" not in details

    def test_public_view_has_no_log(self, file_service, file_repo):
        shared_file = build_file()
        file_repo.save(shared_file)

        details = file_service.get_details(shared_file.file_id)

        assert "recent_downloads" not in details
        assert details["has_password"] is False

    def test_private_file_hidden_from_others(self, file_service, file_repo):
        shared_file = build_file(is_public=False)
        file_repo.save(shared_file)

        with pytest.raises(NotFoundError):
            file_service.get_details(shared_file.file_id, tenant_id="tenant-b")

    def test_unknown_file(self, file_service):
        with pytest.raises(NotFoundError):
            file_service.get_details("missing")

    def test_list_files_scoped_to_tenant(self, file_service, file_repo):
        mine = build_file()
        theirs = build_file(tenant_id="tenant-b")
        file_repo.save(mine)
        file_repo.save(theirs)

        page = file_service.list_files(TENANT)

        assert [f.file_id for f in page.files] == [mine.file_id]
        assert page.total == 1


class TestListFiles:
    @pytest.fixture
    def five_files(self, file_repo):
        start = past(3600)
        files = [build_file(created_at=start + timedelta(minutes=i)) for i in range(5)]
        for shared_file in files:
            file_repo.save(shared_file)
        return [f.file_id for f in reversed(files)]

    def test_first_page(self, file_service, five_files):
        page = file_service.list_files(TENANT, limit=2)

        assert [f.file_id for f in page.files] == five_files[:2]
        assert page.pagination() == {"total": 5, "limit": 2, "offset": 0, "has_more": True}

    def test_last_page(self, file_service, five_files):
        page = file_service.list_files(TENANT, limit=2, offset=4)

        assert [f.file_id for f in page.files] == five_files[4:]
        assert page.has_more is False

    def test_offset_past_end(self, file_service, five_files):
        page = file_service.list_files(TENANT, limit=2, offset=10)

        assert page.files == []
        assert page.total == 5
        assert page.has_more is False

    @pytest.mark.parametrize("limit,offset", [(0, 0), (101, 0), (10, -1)])
    def test_invalid_paging(self, file_service, limit, offset):
        with pytest.raises(InvalidRequestError):
            file_service.list_files(TENANT, limit=limit, offset=offset)


class TestPreview:
    def test_owner_gets_signed_url_without_counting(
        self, file_service, file_repo, download_log, object_storage
    ):
        shared_file = build_file(max_downloads=1, download_count=1, password="Secret1")
        file_repo.save(shared_file)

        url = file_service.preview_url(shared_file.file_id, TENANT)

        assert url == f"https://storage.test/{shared_file.storage_key}?ttl=3600"
        assert object_storage.signed == [shared_file.storage_key]
        assert file_repo.get(shared_file.file_id).download_count == 1
        assert download_log.records == []

    def test_expired_file_still_previewable(self, file_service, file_repo):
        shared_file = build_file(expires_at=past())
        file_repo.save(shared_file)

        assert file_service.preview_url(shared_file.file_id, TENANT)

    @pytest.mark.parametrize("tenant_id", [None, "tenant-b"])
    def test_only_owner_tenant(self, file_service, file_repo, object_storage, tenant_id):
        shared_file = build_file()
        file_repo.save(shared_file)

        with pytest.raises(NotFoundError):
            file_service.preview_url(shared_file.file_id, tenant_id)

        assert object_storage.signed == []

    def test_unknown_file(self, file_service):
        with pytest.raises(NotFoundError):
            file_service.preview_url("missing", TENANT)

    def test_signing_failure_propagates(self, file_service, file_repo, object_storage):
        shared_file = build_file()
        file_repo.save(shared_file)
        object_storage.fail_sign = True

        with pytest.raises(UnavailableError):
            file_service.preview_url(shared_file.file_id, TENANT)


class TestDelete:
    def test_delete_removes_object_then_record(
        self, file_service, file_repo, link_repo, object_storage, published_events
    ):
        shared_file = _upload(file_service)
        link_repo.insert_if_absent(build_link(shared_file.file_id))

        file_service.delete_file(shared_file.file_id, tenant_id=TENANT)

        assert shared_file.storage_key not in object_storage.objects
        assert file_repo.get(shared_file.file_id) is None
        # Links stay in the store; they resolve to NotFound
        assert link_repo.exists("team-link")
        assert isinstance(published_events[-1], FileDeletedEvent)

    def test_storage_failure_keeps_record(self, file_service, file_repo, object_storage):
        shared_file = _upload(file_service)
        object_storage.fail_delete = True

        with pytest.raises(UnavailableError):
            file_service.delete_file(shared_file.file_id, tenant_id=TENANT)

        assert file_repo.get(shared_file.file_id) is not None

    def test_other_tenant_cannot_delete(self, file_service, file_repo):
        shared_file = build_file()
        file_repo.save(shared_file)

        with pytest.raises(NotFoundError):
            file_service.delete_file(shared_file.file_id, tenant_id="tenant-b")

        assert file_repo.get(shared_file.file_id) is not None

    def test_unknown_file(self, file_service):
        with pytest.raises(NotFoundError):
            file_service.delete_file("missing", tenant_id=TENANT)
