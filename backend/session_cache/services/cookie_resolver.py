"""Cookie Resolver — maps an inbound request to a session id.

Invariants:
    - Cookie wins when present and non-empty
    - Fallback order: request body form field, then query parameter, same name as the cookie
    - Returns "" when nothing is present (the registry then mints a new id)
    - A malformed form body raises RequestParseError; never a partial sid

Design Decisions:
    - Body form is only parsed for form content types: JSON/other bodies stay unread
    - Cookie values are URL-quoted on write, unquoted here
"""

import logging
from urllib.parse import unquote

from fastapi import Request
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException

from session_cache.core.errors import RequestParseError

logger = logging.getLogger(__name__)

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


class CookieResolver:
    """Extract the sid from a request by cookie name, with form/query fallback."""

    def __init__(self, cookie_name: str):
        self.cookie_name = cookie_name

    async def resolve(self, request: Request) -> str:
        raw = request.cookies.get(self.cookie_name)
        if raw:
            return unquote(raw)

        sid = await self._from_form(request)
        if sid:
            return sid
        return request.query_params.get(self.cookie_name, "")

    async def _from_form(self, request: Request) -> str:
        content_type = request.headers.get("content-type", "")
        if not content_type.startswith(_FORM_CONTENT_TYPES):
            return ""
        try:
            form = await request.form()
        except (MultiPartException, HTTPException) as e:
            detail = getattr(e, "message", None) or getattr(e, "detail", None) or str(e)
            logger.warning(f"Session form fallback failed: {detail}")
            raise RequestParseError(str(detail))
        value = form.get(self.cookie_name)
        # Uploaded files never carry a sid
        return value if isinstance(value, str) else ""
