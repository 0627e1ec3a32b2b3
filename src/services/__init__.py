"""
API services built on `common.http_client.HttpClient`.

Modules:
- auth: login/logout/registration and session maintenance
- users: administrative user management
- pdfs: PDF upload, listing, deletion and embedding
- search: question answering over embedded papers
"""

from .auth import AuthService, is_allowed
from .errors import ApiError, PaperDeskError
from .pdfs import PdfService
from .search import SearchService
from .users import UserService

__all__ = [
    "ApiError",
    "AuthService",
    "PaperDeskError",
    "PdfService",
    "SearchService",
    "UserService",
    "is_allowed",
]
