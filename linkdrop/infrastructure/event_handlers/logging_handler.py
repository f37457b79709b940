"""
Logging Event Handler

Infrastructure event handler for logging domain events.
Domain layer remains unaware of logging infrastructure.
"""

import logging

from ...domain.events import (
    AccessDeniedEvent,
    DomainEvent,
    DownloadAuthorizedEvent,
    FileDeletedEvent,
    FileUploadedEvent,
    ShareLinkCreatedEvent,
    ShareLinkUsedEvent,
)


class LoggingEventHandler:
    """
    Infrastructure event handler for logging domain events.

    Access denials are business outcomes and are logged at INFO so they stay
    apart from system errors.
    """

    def __init__(self, logger: logging.Logger):
        """
        Initialize with logger instance.

        Args:
            logger: Python logging.Logger instance
        """
        self.logger = logger

    def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event by logging it.

        Args:
            event: Domain event to log
        """
        try:
            if isinstance(event, DownloadAuthorizedEvent):
                self._handle_download_authorized(event)
            elif isinstance(event, AccessDeniedEvent):
                self._handle_access_denied(event)
            elif isinstance(event, ShareLinkUsedEvent):
                self._handle_link_used(event)
            elif isinstance(event, ShareLinkCreatedEvent):
                self._handle_link_created(event)
            elif isinstance(event, FileUploadedEvent):
                self._handle_file_uploaded(event)
            elif isinstance(event, FileDeletedEvent):
                self._handle_file_deleted(event)
            else:
                self.logger.debug(
                    f"Unhandled event: {event.__class__.__name__} "
                    f"(aggregate_id={event.aggregate_id})"
                )
        except Exception as e:
            self.logger.error(
                f"Error in logging event handler for {event.__class__.__name__}: {e}",
                exc_info=True,
            )

    def _handle_download_authorized(self, event: DownloadAuthorizedEvent) -> None:
        via = f", slug={event.slug}" if event.slug else ""
        self.logger.info(
            f"Download authorized: file_id={event.aggregate_id}, "
            f"method={event.method}, count={event.download_count}{via}"
        )

    def _handle_access_denied(self, event: AccessDeniedEvent) -> None:
        via = f", slug={event.slug}" if event.slug else ""
        self.logger.info(
            f"Access denied: id={event.aggregate_id}, reason={event.reason}, "
            f"scope={event.scope}, method={event.method}{via}"
        )

    def _handle_link_used(self, event: ShareLinkUsedEvent) -> None:
        self.logger.debug(
            f"Share link used: slug={event.aggregate_id}, use_count={event.use_count}"
        )

    def _handle_link_created(self, event: ShareLinkCreatedEvent) -> None:
        """Log share link creation."""
        self.logger.info(
            f"Share link created: slug={event.aggregate_id}, file_id={event.file_id}, "
            f"created_by={event.created_by}, custom={event.custom_slug}"
        )

    def _handle_file_uploaded(self, event: FileUploadedEvent) -> None:
        """Log file upload."""
        self.logger.info(
            f"File uploaded: file_id={event.aggregate_id}, tenant={event.tenant_id}, "
            f"name={event.name}, size={event.file_size} bytes"
        )

    def _handle_file_deleted(self, event: FileDeletedEvent) -> None:
        """Log file deletion."""
        self.logger.info(
            f"File deleted: file_id={event.aggregate_id}, tenant={event.tenant_id}"
        )
