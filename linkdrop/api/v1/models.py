"""
API Models for request/response validation and Swagger documentation
"""

from flask_restx import fields

from . import api

# =============================================================================
# Request Models
# =============================================================================

password_request = api.model(
    "PasswordRequest",
    {
        "password": fields.String(
            required=False,
            description="Password for protected files (case-sensitive)",
        ),
    },
)

share_link_request = api.model(
    "ShareLinkRequest",
    {
        "slug": fields.String(
            required=False,
            description="Custom slug (3-64 URL-safe characters); generated when omitted",
            example="team-report",
        ),
        "expires_at": fields.String(
            required=False,
            description="ISO-8601 expiration timestamp",
            example="2030-01-01T00:00:00Z",
        ),
        "max_uses": fields.Integer(
            required=False, description="Maximum number of downloads via this link", min=1
        ),
    },
)

# =============================================================================
# Response Models
# =============================================================================

file_summary = api.model(
    "FileSummary",
    {
        "id": fields.String(description="File identifier"),
        "name": fields.String(description="Display name"),
        "original_name": fields.String(description="Original filename"),
        "size": fields.Integer(description="Size in bytes"),
        "type": fields.String(description="Content type"),
    },
)

file_response = api.inherit(
    "File",
    file_summary,
    {
        "description": fields.String(allow_null=True),
        "file_extension": fields.String(),
        "is_public": fields.Boolean(),
        "requires_plan": fields.String(allow_null=True),
        "expires_at": fields.String(allow_null=True),
        "max_downloads": fields.Integer(allow_null=True),
        "download_count": fields.Integer(),
        "last_download_at": fields.String(allow_null=True),
        "has_password": fields.Boolean(),
        "created_by": fields.String(),
        "created_at": fields.String(),
    },
)

pagination_response = api.model(
    "Pagination",
    {
        "total": fields.Integer(description="Files owned by the tenant"),
        "limit": fields.Integer(description="Page size"),
        "offset": fields.Integer(description="Files skipped"),
        "has_more": fields.Boolean(description="Whether another page follows"),
    },
)

file_page_response = api.model(
    "FilePage",
    {
        "files": fields.List(fields.Nested(file_response)),
        "pagination": fields.Nested(pagination_response),
    },
)

share_link_response = api.model(
    "ShareLink",
    {
        "id": fields.String(description="Share link identifier"),
        "slug": fields.String(description="Public slug"),
        "url": fields.String(description="Caller-facing URL"),
        "file_id": fields.String(),
        "created_by": fields.String(),
        "expires_at": fields.String(allow_null=True),
        "max_uses": fields.Integer(allow_null=True),
        "use_count": fields.Integer(),
        "last_used_at": fields.String(allow_null=True),
        "created_at": fields.String(),
    },
)

authorization_response = api.model(
    "AuthorizationResponse",
    {
        "allowed": fields.Boolean(),
        "url": fields.String(description="Time-limited retrieval URL"),
        "expires_in": fields.Integer(description="URL lifetime in seconds"),
        "file": fields.Nested(file_summary),
        "share_link": fields.Nested(share_link_response, allow_null=True),
    },
)

track_response = api.model(
    "TrackResponse",
    {
        "use_count": fields.Integer(description="Use count after the increment"),
    },
)

error_response = api.model(
    "ErrorResponse",
    {
        "error": fields.String(description="Error category"),
        "title": fields.String(description="Error title"),
        "message": fields.String(description="User-friendly error message"),
        "action": fields.String(description="Suggested action"),
        "details": fields.Raw(description="Additional context", allow_null=True),
    },
)
