"""
Download Authorization Service

Application service that decides whether a file may be delivered and, if so,
hands out a time-limited retrieval URL while keeping the download and
share-link counters within their limits.
"""

import logging
from typing import Optional

from ..domain.errors import NotFoundError, UnavailableError
from ..domain.events import AccessDeniedEvent, DownloadAuthorizedEvent
from ..domain.sharing.entities import DownloadRecord, SharedFile
from ..domain.sharing.policy import AccessPolicyEvaluator
from ..domain.sharing.repositories import (
    IDownloadLogRepository,
    IFileRepository,
    ReservationStatus,
)
from ..domain.sharing.services import ShareLinkManager
from ..domain.sharing.storage_repository import IObjectStorage
from ..domain.sharing.value_objects import AccessContext, DeliveryMethod, DenyReason
from .download_result import AuthorizationResult
from .event_publisher import EventPublisher

logger = logging.getLogger(__name__)

DEFAULT_URL_TTL_SECONDS = 3600


class DownloadAuthorizationService:
    """
    Application service orchestrating one download authorization.

    Workflow (direct and link paths share it):
    1. Load the file (and the share link on the link path)
    2. Evaluate the access policy
    3. Obtain a signed retrieval URL
    4. Reserve counter slots atomically in the policy store
    5. Append a download log entry
    6. Return the URL and file metadata

    The policy check in step 2 reads a possibly stale snapshot; the atomic
    reservation in step 4 is what actually bounds the counters. Counters only
    move after step 3 succeeds, and a link reservation lost to a concurrent
    request gives its file slot back.

    Denials are returned as results. Only store or storage failures raise
    (UnavailableError).
    """

    def __init__(
        self,
        file_repository: IFileRepository,
        share_link_manager: ShareLinkManager,
        object_storage: IObjectStorage,
        download_log: IDownloadLogRepository,
        evaluator: Optional[AccessPolicyEvaluator] = None,
        event_publisher: Optional[EventPublisher] = None,
        url_ttl_seconds: int = DEFAULT_URL_TTL_SECONDS,
    ):
        """
        Initialize Download Authorization Service with dependencies.

        Args:
            file_repository: Policy store for files
            share_link_manager: Domain service for share links
            object_storage: Gateway minting signed URLs
            download_log: Append-only download log
            evaluator: Access policy evaluator
            event_publisher: Optional event publisher for domain events
            url_ttl_seconds: Lifetime of generated retrieval URLs
        """
        self.file_repo = file_repository
        self.share_link_manager = share_link_manager
        self.object_storage = object_storage
        self.download_log = download_log
        self.evaluator = evaluator or AccessPolicyEvaluator()
        self.event_publisher = event_publisher
        self.url_ttl_seconds = url_ttl_seconds

    def authorize(self, file_id: str, context: AccessContext) -> AuthorizationResult:
        """
        Authorize direct access to a file.

        Args:
            file_id: File identifier
            context: Request context

        Returns:
            AuthorizationResult (allowed with URL, or denied with one reason)

        Raises:
            UnavailableError: If the policy store or object storage fails
        """
        shared_file = self.file_repo.get(file_id)

        decision = self.evaluator.evaluate(shared_file, context)
        if decision.denied:
            return self._deny(
                decision.reason, decision.scope, DeliveryMethod.DIRECT,
                aggregate_id=file_id, context=context,
            )

        url = self._sign(shared_file)

        reservation = self.file_repo.reserve_download(file_id, context.now)
        if not reservation.reserved:
            return self._deny(
                _reason_for(reservation.status), "file", DeliveryMethod.DIRECT,
                aggregate_id=file_id, context=context,
            )

        shared_file.download_count = reservation.count
        shared_file.last_download_at = context.now

        self._record(shared_file, DeliveryMethod.DIRECT, context)
        self._publish_authorized(shared_file, DeliveryMethod.DIRECT, context)

        logger.info(f"Authorized direct download of file {file_id}")
        return AuthorizationResult.create_allowed(shared_file, url, self.url_ttl_seconds)

    def authorize_via_link(self, slug: str, context: AccessContext) -> AuthorizationResult:
        """
        Authorize access to a file through a share link.

        Both the file's and the link's expiry and quota apply. The file slot
        is reserved first; if the link slot is then refused the file slot is
        released again.

        Args:
            slug: Share link slug
            context: Request context

        Returns:
            AuthorizationResult (allowed with URL and link metadata, or denied)

        Raises:
            UnavailableError: If the policy store or object storage fails
        """
        share_link, shared_file = self._resolve(slug)

        decision = self.evaluator.evaluate(shared_file, context, share_link, via_link=True)
        if decision.denied:
            return self._deny(
                decision.reason, decision.scope, DeliveryMethod.SHARE_LINK,
                aggregate_id=shared_file.file_id if shared_file else slug,
                context=context, slug=slug,
            )

        url = self._sign(shared_file)
        file_id = shared_file.file_id

        file_reservation = self.file_repo.reserve_download(file_id, context.now)
        if not file_reservation.reserved:
            return self._deny(
                _reason_for(file_reservation.status), "file", DeliveryMethod.SHARE_LINK,
                aggregate_id=file_id, context=context, slug=slug,
            )

        try:
            link_reservation = self.share_link_manager.reserve_use(slug, context.now)
        except UnavailableError:
            self._release(file_id)
            raise

        if not link_reservation.reserved:
            self._release(file_id)
            return self._deny(
                _reason_for(link_reservation.status), "link", DeliveryMethod.SHARE_LINK,
                aggregate_id=file_id, context=context, slug=slug,
            )

        shared_file.download_count = file_reservation.count
        shared_file.last_download_at = context.now
        share_link.use_count = link_reservation.count
        share_link.last_used_at = context.now

        self._record(shared_file, DeliveryMethod.SHARE_LINK, context, slug=slug)
        self._publish_authorized(shared_file, DeliveryMethod.SHARE_LINK, context, slug=slug)

        logger.info(f"Authorized download of file {file_id} via share link {slug}")
        return AuthorizationResult.create_allowed(
            shared_file, url, self.url_ttl_seconds, share_link=share_link
        )

    def _resolve(self, slug: str):
        try:
            return self.share_link_manager.resolve(slug)
        except NotFoundError:
            return None, None

    def _sign(self, shared_file: SharedFile) -> str:
        return self.object_storage.generate_signed_url(
            shared_file.storage_key, self.url_ttl_seconds
        )

    def _release(self, file_id: str) -> None:
        try:
            count = self.file_repo.release_download(file_id)
            logger.debug(f"Released download slot of file {file_id} (count={count})")
        except UnavailableError as e:
            logger.error(f"Failed to release download slot of file {file_id}: {e}")
            raise

    def _record(
        self,
        shared_file: SharedFile,
        method: DeliveryMethod,
        context: AccessContext,
        slug: Optional[str] = None,
    ) -> None:
        record = DownloadRecord.create(
            shared_file.file_id,
            method,
            caller_id=context.caller_id,
            slug=slug,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            country=context.country,
            city=context.city,
            created_at=context.now,
        )
        try:
            self.download_log.append(record)
        except UnavailableError as e:
            # Counters already advanced; the delivery stands.
            logger.error(
                f"Failed to append download record for file {shared_file.file_id}: {e}"
            )

    def _deny(
        self,
        reason: DenyReason,
        scope: Optional[str],
        method: DeliveryMethod,
        aggregate_id: str,
        context: AccessContext,
        slug: Optional[str] = None,
    ) -> AuthorizationResult:
        if self.event_publisher:
            self.event_publisher.publish(AccessDeniedEvent(
                aggregate_id=aggregate_id,
                occurred_at=context.now,
                reason=reason.value,
                scope=scope or "file",
                method=method.value,
                slug=slug,
            ))
        return AuthorizationResult.create_denied(
            reason,
            scope=scope,
            file_id=None if reason is DenyReason.NOT_FOUND else aggregate_id,
        )

    def _publish_authorized(
        self,
        shared_file: SharedFile,
        method: DeliveryMethod,
        context: AccessContext,
        slug: Optional[str] = None,
    ) -> None:
        if self.event_publisher:
            self.event_publisher.publish(DownloadAuthorizedEvent(
                aggregate_id=shared_file.file_id,
                occurred_at=context.now,
                method=method.value,
                download_count=shared_file.download_count,
                slug=slug,
                caller_id=context.caller_id,
            ))


def _reason_for(status: ReservationStatus) -> DenyReason:
    """Map a refused reservation onto the denial a caller sees."""
    if status is ReservationStatus.NOT_FOUND:
        return DenyReason.NOT_FOUND
    return DenyReason.QUOTA_EXCEEDED
