"""
Sharing Domain Services

Slug allocation and the share-link lifecycle (create, resolve, track, list).
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from ..errors import (
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    SlugAllocationError,
)
from ..events import DomainEvent, ShareLinkCreatedEvent, ShareLinkUsedEvent
from .entities import ShareLink, SharedFile
from .repositories import (
    IFileRepository,
    IShareLinkRepository,
    Reservation,
    ReservationStatus,
)
from .value_objects import MAX_SLUG_LENGTH, MIN_GENERATED_SLUG_LENGTH, Slug, utcnow

logger = logging.getLogger(__name__)

DEFAULT_SLUG_ATTEMPTS = 5


class SlugAllocator:
    """
    Domain service producing collision-free share-link slugs.

    Generated slugs are drawn at random and inserted with insert-if-absent;
    a collision triggers a redraw, bounded by ``max_attempts``. A custom slug
    is never replaced: if it is taken the caller gets a ConflictError.
    """

    def __init__(
        self,
        link_repository: IShareLinkRepository,
        slug_length: int = MIN_GENERATED_SLUG_LENGTH,
        max_attempts: int = DEFAULT_SLUG_ATTEMPTS,
    ):
        """
        Initialize SlugAllocator.

        Args:
            link_repository: Share link store offering insert-if-absent
            slug_length: Generated slug length (clamped to 10..64)
            max_attempts: Upper bound on generate-and-insert attempts
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be positive, got {max_attempts}")
        self.link_repo = link_repository
        self.slug_length = min(max(slug_length, MIN_GENERATED_SLUG_LENGTH), MAX_SLUG_LENGTH)
        self.max_attempts = max_attempts

    def allocate(
        self,
        build_link: Callable[[str], ShareLink],
        custom_slug: Optional[str] = None,
    ) -> ShareLink:
        """
        Insert a new share link under a unique slug.

        Args:
            build_link: Factory creating the ShareLink for a given slug
            custom_slug: Slug explicitly requested by the caller

        Returns:
            The inserted ShareLink

        Raises:
            InvalidSlugError: If the custom slug is malformed
            ConflictError: If the custom slug is already taken
            SlugAllocationError: If every generated candidate collided
        """
        if custom_slug is not None:
            return self._allocate_custom(build_link, Slug(custom_slug))

        for attempt in range(1, self.max_attempts + 1):
            candidate = Slug.generate(self.slug_length)
            link = build_link(candidate.value)
            if self.link_repo.insert_if_absent(link):
                return link
            logger.warning(f"Slug collision on attempt {attempt}/{self.max_attempts}")

        raise SlugAllocationError(
            f"Could not allocate a unique slug after {self.max_attempts} attempts"
        )

    def _allocate_custom(
        self, build_link: Callable[[str], ShareLink], slug: Slug
    ) -> ShareLink:
        if self.link_repo.exists(slug.value):
            raise ConflictError(f"Slug already exists: {slug.value}")

        link = build_link(slug.value)
        # Lost a race with a concurrent create for the same slug.
        if not self.link_repo.insert_if_absent(link):
            raise ConflictError(f"Slug already exists: {slug.value}")
        return link


class ShareLinkManager:
    """
    Domain service for the share-link lifecycle.

    Links are never deleted here: expiry and quota are checked at access time
    by the policy evaluator, and a link whose file is gone resolves to
    NotFound.
    """

    def __init__(
        self,
        file_repository: IFileRepository,
        link_repository: IShareLinkRepository,
        slug_allocator: SlugAllocator,
        base_url: str,
        publish: Optional[Callable[[DomainEvent], None]] = None,
    ):
        """
        Initialize ShareLinkManager.

        Args:
            file_repository: File store
            link_repository: Share link store
            slug_allocator: Slug allocation service
            base_url: Public base address used to build link URLs
            publish: Optional event sink (e.g. EventPublisher.publish)
        """
        self.file_repo = file_repository
        self.link_repo = link_repository
        self.slug_allocator = slug_allocator
        self.base_url = base_url
        self._publish = publish

    def create(
        self,
        file_id: str,
        created_by: str,
        slug: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        max_uses: Optional[int] = None,
        tenant_id: Optional[str] = None,
    ) -> ShareLink:
        """
        Create a share link for a file.

        Args:
            file_id: File to share
            created_by: Creator identity
            slug: Optional custom slug
            expires_at: Optional link expiration
            max_uses: Optional maximum number of uses (>= 1)
            tenant_id: When given, the file must belong to this tenant

        Returns:
            The new ShareLink (use ``build_url`` for its public URL)

        Raises:
            NotFoundError: If the file does not exist for this tenant
            InvalidRequestError: If max_uses is not positive
            InvalidSlugError, ConflictError, SlugAllocationError: From allocation
        """
        if max_uses is not None and max_uses < 1:
            raise InvalidRequestError(f"max_uses must be at least 1, got {max_uses}")

        shared_file = self.file_repo.get(file_id)
        if shared_file is None or (tenant_id is not None and shared_file.tenant_id != tenant_id):
            raise NotFoundError(f"File not found: {file_id}")

        link = self.slug_allocator.allocate(
            lambda candidate: ShareLink.create(
                slug=candidate,
                file_id=file_id,
                created_by=created_by,
                expires_at=expires_at,
                max_uses=max_uses,
            ),
            custom_slug=slug,
        )

        self._emit(ShareLinkCreatedEvent(
            aggregate_id=link.slug,
            occurred_at=link.created_at,
            file_id=file_id,
            created_by=created_by,
            custom_slug=slug is not None,
        ))
        return link

    def build_url(self, link: ShareLink) -> str:
        return link.build_url(self.base_url)

    def resolve(self, slug: str) -> Tuple[ShareLink, SharedFile]:
        """
        Load a share link together with its file.

        Raises:
            NotFoundError: If the link or its file is missing
        """
        link = self.link_repo.get(slug)
        if link is None:
            raise NotFoundError(f"Share link not found: {slug}")

        shared_file = self.file_repo.get(link.file_id)
        if shared_file is None:
            raise NotFoundError(f"File for share link {slug} no longer exists")

        return link, shared_file

    def track_use(self, slug: str, at: Optional[datetime] = None) -> int:
        """
        Record one use of a share link.

        Args:
            slug: Share link slug
            at: Timestamp recorded as last_used_at (defaults to now)

        Returns:
            The use count after the increment

        Raises:
            NotFoundError: If the slug does not exist (nothing is mutated)
        """
        reservation = self.link_repo.increment_use(slug, at or utcnow(), enforce_limit=False)
        if reservation.status is ReservationStatus.NOT_FOUND:
            raise NotFoundError(f"Share link not found: {slug}")

        self._emit_used(slug, reservation.count)
        return reservation.count

    def reserve_use(self, slug: str, at: Optional[datetime] = None) -> Reservation:
        """
        Record one use of a share link unless its quota is already reached.

        Used by the download engine so a link can never exceed ``max_uses``.

        Returns:
            Reservation (RESERVED, NOT_FOUND or LIMIT_REACHED)
        """
        reservation = self.link_repo.increment_use(slug, at or utcnow(), enforce_limit=True)
        if reservation.reserved:
            self._emit_used(slug, reservation.count)
        return reservation

    def list_for_file(self, file_id: str, tenant_id: Optional[str] = None) -> List[ShareLink]:
        """
        List the share links of a file.

        Raises:
            NotFoundError: If the file does not exist for this tenant
        """
        shared_file = self.file_repo.get(file_id)
        if shared_file is None or (tenant_id is not None and shared_file.tenant_id != tenant_id):
            raise NotFoundError(f"File not found: {file_id}")
        return self.link_repo.list_for_file(file_id)

    def _emit_used(self, slug: str, use_count: int) -> None:
        self._emit(ShareLinkUsedEvent(
            aggregate_id=slug,
            occurred_at=utcnow(),
            use_count=use_count,
        ))

    def _emit(self, event: DomainEvent) -> None:
        if self._publish is not None:
            self._publish(event)
