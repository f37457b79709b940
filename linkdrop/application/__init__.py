"""
Application Services Layer

Orchestrates domain services and coordinates use cases.
"""

from .dependency_container import DependencyContainer
from .download_result import AuthorizationResult, AuthorizationState
from .download_service import DownloadAuthorizationService
from .event_publisher import EventPublisher
from .file_service import FilePage, FileService

__all__ = [
    'AuthorizationResult',
    'AuthorizationState',
    'DependencyContainer',
    'DownloadAuthorizationService',
    'EventPublisher',
    'FilePage',
    'FileService',
]
