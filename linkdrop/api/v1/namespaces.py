"""
API Namespaces - Organized endpoint groups
"""

import os
from pathlib import Path
from typing import Optional

from flask import current_app, redirect, request, send_file
from flask_restx import Namespace, Resource
from werkzeug.exceptions import RequestEntityTooLarge

from ...application.download_result import AuthorizationResult
from ...application.download_service import DownloadAuthorizationService
from ...application.file_service import DEFAULT_PAGE_SIZE, FileService
from ...domain.errors import (
    DomainError,
    ErrorCategory,
    FileValidationError,
    InvalidRequestError,
    category_for_error,
    create_error_response,
)
from ...domain.sharing.services import ShareLinkManager
from ...domain.sharing.storage_repository import IObjectStorage
from ...domain.sharing.value_objects import DenyReason, parse_datetime
from ...infrastructure.local_object_storage import LocalObjectStorage
from .identity import TENANT_HEADER, access_context, current_tenant_id, current_user_id
from .models import (
    authorization_response,
    error_response,
    file_page_response,
    file_response,
    password_request,
    share_link_request,
    share_link_response,
    track_response,
)

# Denials are business outcomes; each maps to one category and status
DENIAL_RESPONSES = {
    DenyReason.NOT_FOUND: (ErrorCategory.NOT_FOUND, 404),
    DenyReason.EXPIRED: (ErrorCategory.EXPIRED, 410),
    DenyReason.QUOTA_EXCEEDED: (ErrorCategory.QUOTA_EXCEEDED, 403),
    DenyReason.PASSWORD_REQUIRED: (ErrorCategory.PASSWORD_REQUIRED, 401),
    DenyReason.PASSWORD_INCORRECT: (ErrorCategory.PASSWORD_INCORRECT, 401),
    DenyReason.PLAN_REQUIRED: (ErrorCategory.PLAN_REQUIRED, 402),
}

STATUS_BY_CATEGORY = {
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.UNAVAILABLE: 503,
    ErrorCategory.INVALID_REQUEST: 400,
    ErrorCategory.FILE_NOT_ALLOWED: 400,
}


# =============================================================================
# Helpers
# =============================================================================


def _resolve(interface):
    return current_app.container.resolve(interface)


def _domain_error_response(error: DomainError):
    category = category_for_error(error)
    status_code = STATUS_BY_CATEGORY.get(category, 500)
    if category is ErrorCategory.UNAVAILABLE:
        current_app.logger.error(f"Dependency unavailable: {error}")
    return create_error_response(category, str(error), status_code=status_code)


def _unexpected_error_response(error: Exception, where: str):
    current_app.logger.exception(f"Unexpected error in {where}: {error}")
    return create_error_response(
        ErrorCategory.SYSTEM_ERROR,
        f"Unexpected error: {error}",
        status_code=500,
    )


def _authorization_response(result: AuthorizationResult):
    if result.allowed:
        return result.to_dict(), 200

    category, status_code = DENIAL_RESPONSES[result.reason]
    return create_error_response(
        category,
        f"Access denied: {result.reason.value}",
        context={"scope": result.scope},
        status_code=status_code,
    )


def _require_tenant() -> str:
    tenant_id = current_tenant_id()
    if not tenant_id:
        raise InvalidRequestError(f"{TENANT_HEADER} header is required")
    return tenant_id


def _optional_int(value, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidRequestError(f"{field_name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidRequestError(f"{field_name} must be an integer")


def _optional_datetime(value, field_name: str):
    if value is None or value == "":
        return None
    try:
        return parse_datetime(str(value))
    except ValueError:
        raise InvalidRequestError(f"{field_name} must be an ISO-8601 timestamp")


def _password_from_body() -> Optional[str]:
    data = request.get_json(silent=True) or {}
    password = data.get("password")
    return None if password is None else str(password)


def _stream_size(stream) -> int:
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


# =============================================================================
# Files Namespace - Owner operations and direct download
# =============================================================================

files_ns = Namespace("files", description="File upload, details and direct download")


@files_ns.route("")
class FileList(Resource):
    """Upload and list files"""

    @files_ns.doc("list_files", params={
        "limit": f"Page size, 1-100 (default {DEFAULT_PAGE_SIZE})",
        "offset": "Number of files to skip (default 0)",
    })
    @files_ns.response(200, "Success", file_page_response)
    @files_ns.response(400, "Bad Request", error_response)
    def get(self):
        """List the caller tenant's files, newest first, one page at a time"""
        try:
            tenant_id = _require_tenant()
            limit = _optional_int(request.args.get("limit"), "limit")
            offset = _optional_int(request.args.get("offset"), "offset")
            page = _resolve(FileService).list_files(
                tenant_id,
                limit=DEFAULT_PAGE_SIZE if limit is None else limit,
                offset=offset or 0,
            )
            return {
                "files": [shared_file.to_public_dict() for shared_file in page.files],
                "pagination": page.pagination(),
            }, 200
        except DomainError as e:
            return _domain_error_response(e)
        except Exception as e:
            return _unexpected_error_response(e, "GET /files")

    @files_ns.doc("upload_file")
    @files_ns.response(201, "Uploaded", file_response)
    @files_ns.response(400, "Bad Request", error_response)
    @files_ns.response(413, "Upload Too Large", error_response)
    @files_ns.response(503, "Service Unavailable", error_response)
    def post(self):
        """
        Upload a file (multipart/form-data)

        Form fields: file (required), name, description, is_public,
        requires_plan, expires_at, max_downloads, password.
        """
        try:
            tenant_id = _require_tenant()
            upload = request.files.get("file")
            if upload is None or not upload.filename:
                raise FileValidationError("No file provided")

            form = request.form
            shared_file = _resolve(FileService).upload(
                tenant_id=tenant_id,
                created_by=current_user_id() or tenant_id,
                content=upload.stream,
                filename=upload.filename,
                content_type=upload.mimetype or "application/octet-stream",
                size=_stream_size(upload.stream),
                name=form.get("name") or None,
                description=form.get("description") or None,
                is_public=form.get("is_public", "true").lower() not in ("false", "0", "no"),
                requires_plan=form.get("requires_plan") or None,
                expires_at=_optional_datetime(form.get("expires_at"), "expires_at"),
                max_downloads=_optional_int(form.get("max_downloads"), "max_downloads"),
                password=form.get("password") or None,
            )
            return shared_file.to_public_dict(), 201
        except DomainError as e:
            return _domain_error_response(e)
        except RequestEntityTooLarge:
            return create_error_response(
                ErrorCategory.FILE_NOT_ALLOWED,
                f"Request body exceeds {current_app.config['MAX_CONTENT_LENGTH']} bytes",
                status_code=413,
            )
        except Exception as e:
            return _unexpected_error_response(e, "POST /files")


@files_ns.route("/<string:file_id>")
@files_ns.param("file_id", "The file identifier")
class FileDetail(Resource):
    """File details and deletion"""

    @files_ns.doc("get_file")
    @files_ns.response(200, "Success", file_response)
    @files_ns.response(404, "Not Found", error_response)
    def get(self, file_id):
        """Get file details (owners also see recent downloads)"""
        try:
            return _resolve(FileService).get_details(file_id, current_tenant_id()), 200
        except DomainError as e:
            return _domain_error_response(e)
        except Exception as e:
            return _unexpected_error_response(e, f"GET /files/{file_id}")

    @files_ns.doc("delete_file")
    @files_ns.response(204, "File deleted")
    @files_ns.response(404, "Not Found", error_response)
    @files_ns.response(503, "Service Unavailable", error_response)
    def delete(self, file_id):
        """
        Delete a file

        The stored object is removed first, then the record. Share links of
        the file stop resolving.
        """
        try:
            _resolve(FileService).delete_file(file_id, _require_tenant())
            return "", 204
        except DomainError as e:
            return _domain_error_response(e)
        except Exception as e:
            return _unexpected_error_response(e, f"DELETE /files/{file_id}")


@files_ns.route("/<string:file_id>/download")
@files_ns.param("file_id", "The file identifier")
class FileDownload(Resource):
    """Direct download authorization"""

    def _authorize(self, file_id: str, password: Optional[str]):
        try:
            service = _resolve(DownloadAuthorizationService)
            result = service.authorize(file_id, access_context(password))
            return _authorization_response(result)
        except DomainError as e:
            return _domain_error_response(e)
        except Exception as e:
            return _unexpected_error_response(e, f"/files/{file_id}/download")

    @files_ns.doc("authorize_download")
    @files_ns.response(200, "Authorized", authorization_response)
    @files_ns.response(401, "Password Required", error_response)
    @files_ns.response(404, "Not Found", error_response)
    @files_ns.response(410, "Expired", error_response)
    def get(self, file_id):
        """Authorize a direct download without a password"""
        return self._authorize(file_id, None)

    @files_ns.doc("authorize_download_with_password")
    @files_ns.expect(password_request)
    @files_ns.response(200, "Authorized", authorization_response)
    @files_ns.response(401, "Password Required or Incorrect", error_response)
    @files_ns.response(402, "Plan Required", error_response)
    @files_ns.response(403, "Download Limit Reached", error_response)
    @files_ns.response(404, "Not Found", error_response)
    @files_ns.response(410, "Expired", error_response)
    @files_ns.response(503, "Service Unavailable", error_response)
    def post(self, file_id):
        """Authorize a direct download, submitting a password"""
        return self._authorize(file_id, _password_from_body())


@files_ns.route("/<string:file_id>/preview")
@files_ns.param("file_id", "The file identifier")
class FilePreview(Resource):
    """Owner preview"""

    @files_ns.doc("preview_file")
    @files_ns.response(302, "Redirect to a signed URL")
    @files_ns.response(404, "Not Found", error_response)
    @files_ns.response(503, "Service Unavailable", error_response)
    def get(self, file_id):
        """
        Preview a file as its owner

        Redirects to a signed URL without evaluating the access policy and
        without counting a download.
        """
        try:
            url = _resolve(FileService).preview_url(file_id, current_tenant_id())
            return redirect(url)
        except DomainError as e:
            return _domain_error_response(e)
        except Exception as e:
            return _unexpected_error_response(e, f"GET /files/{file_id}/preview")


@files_ns.route("/<string:file_id>/shares")
@files_ns.param("file_id", "The file identifier")
class FileShares(Resource):
    """Share links of a file"""

    @files_ns.doc("list_share_links")
    @files_ns.response(200, "Success", [share_link_response])
    @files_ns.response(404, "Not Found", error_response)
    def get(self, file_id):
        """List the share links of a file"""
        try:
            manager = _resolve(ShareLinkManager)
            links = manager.list_for_file(file_id, _require_tenant())
            return [link.to_public_dict(manager.base_url) for link in links], 200
        except DomainError as e:
            return _domain_error_response(e)
        except Exception as e:
            return _unexpected_error_response(e, f"GET /files/{file_id}/shares")

    @files_ns.doc("create_share_link")
    @files_ns.expect(share_link_request)
    @files_ns.response(201, "Created", share_link_response)
    @files_ns.response(400, "Bad Request", error_response)
    @files_ns.response(404, "Not Found", error_response)
    @files_ns.response(409, "Slug Already Exists", error_response)
    @files_ns.response(503, "Service Unavailable", error_response)
    def post(self, file_id):
        """Create a share link (custom slug optional)"""
        try:
            tenant_id = _require_tenant()
            data = request.get_json(silent=True) or {}
            slug = data.get("slug") or None

            manager = _resolve(ShareLinkManager)
            link = manager.create(
                file_id=file_id,
                created_by=current_user_id() or tenant_id,
                slug=str(slug) if slug is not None else None,
                expires_at=_optional_datetime(data.get("expires_at"), "expires_at"),
                max_uses=_optional_int(data.get("max_uses"), "max_uses"),
                tenant_id=tenant_id,
            )
            return link.to_public_dict(manager.base_url), 201
        except DomainError as e:
            return _domain_error_response(e)
        except Exception as e:
            return _unexpected_error_response(e, f"POST /files/{file_id}/shares")


# =============================================================================
# Shares Namespace - Link-based access
# =============================================================================

shares_ns = Namespace("shares", description="Share link resolution and download")


@shares_ns.route("/<string:slug>")
@shares_ns.param("slug", "The share link slug")
class ShareLinkDetail(Resource):
    """Share link metadata"""

    @shares_ns.doc("resolve_share_link")
    @shares_ns.response(200, "Success")
    @shares_ns.response(404, "Not Found", error_response)
    def get(self, slug):
        """
        Resolve a share link

        Returns the link and basic file metadata. Expiry and quota are not
        checked here; the download endpoint enforces them.
        """
        try:
            manager = _resolve(ShareLinkManager)
            link, shared_file = manager.resolve(slug)
            file_data = shared_file.to_summary_dict()
            file_data["has_password"] = shared_file.has_password
            file_data["description"] = shared_file.description
            return {
                "share_link": link.to_public_dict(manager.base_url),
                "file": file_data,
            }, 200
        except DomainError as e:
            return _domain_error_response(e)
        except Exception as e:
            return _unexpected_error_response(e, f"GET /shares/{slug}")


@shares_ns.route("/<string:slug>/download")
@shares_ns.param("slug", "The share link slug")
class ShareLinkDownload(Resource):
    """Link-based download authorization"""

    @shares_ns.doc("authorize_link_download")
    @shares_ns.expect(password_request)
    @shares_ns.response(200, "Authorized", authorization_response)
    @shares_ns.response(401, "Password Required or Incorrect", error_response)
    @shares_ns.response(402, "Plan Required", error_response)
    @shares_ns.response(403, "Download Limit Reached", error_response)
    @shares_ns.response(404, "Not Found", error_response)
    @shares_ns.response(410, "Expired", error_response)
    @shares_ns.response(503, "Service Unavailable", error_response)
    def post(self, slug):
        """Authorize a download through a share link"""
        try:
            service = _resolve(DownloadAuthorizationService)
            result = service.authorize_via_link(slug, access_context(_password_from_body()))
            return _authorization_response(result)
        except DomainError as e:
            return _domain_error_response(e)
        except Exception as e:
            return _unexpected_error_response(e, f"POST /shares/{slug}/download")


@shares_ns.route("/<string:slug>/track")
@shares_ns.param("slug", "The share link slug")
class ShareLinkTrack(Resource):
    """Share link usage tracking"""

    @shares_ns.doc("track_share_link_use")
    @shares_ns.response(200, "Tracked", track_response)
    @shares_ns.response(404, "Not Found", error_response)
    def post(self, slug):
        """Record one use of a share link"""
        try:
            use_count = _resolve(ShareLinkManager).track_use(slug)
            return {"use_count": use_count}, 200
        except DomainError as e:
            return _domain_error_response(e)
        except Exception as e:
            return _unexpected_error_response(e, f"POST /shares/{slug}/track")


# =============================================================================
# Blobs Namespace - Signed local object delivery
# =============================================================================

blobs_ns = Namespace("blobs", description="Signed delivery of locally stored objects")


@blobs_ns.route("/<path:key>")
@blobs_ns.param("key", "The storage key")
class Blob(Resource):
    """Serve a locally stored object behind a signed URL"""

    @blobs_ns.doc("get_blob", params={"expires": "Unix expiry", "signature": "HMAC signature"})
    @blobs_ns.response(200, "Object bytes")
    @blobs_ns.response(403, "Invalid or Expired Signature", error_response)
    @blobs_ns.response(404, "Not Found", error_response)
    def get(self, key):
        """Download an object using a signed URL"""
        storage = _resolve(IObjectStorage)
        if not isinstance(storage, LocalObjectStorage):
            return create_error_response(
                ErrorCategory.NOT_FOUND, "Blob endpoint serves local storage only",
                status_code=404,
            )

        if not storage.signer.validate(key, request.args.get("expires"), request.args.get("signature")):
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, "Invalid or expired signature",
                status_code=403,
            )

        path = storage.path_for(key)
        if path is None or not path.is_file():
            return create_error_response(
                ErrorCategory.NOT_FOUND, f"Object not found: {key}", status_code=404
            )

        return send_file(path, as_attachment=True, download_name=Path(key).name)
