from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from common import messages
from common.http_client import HttpClient
from common.validation import is_numeric_pmid

from .errors import unwrap


logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"


class PdfService:
    """
    PDF records on the backend: listing, upload, deletion and embedding.

    PDF payloads are returned without an envelope, so responses pass through
    as parsed. Failures raise `ApiError`.
    """

    def __init__(self, http: HttpClient) -> None:
        self._http = http

    async def list_pdfs(self) -> List[Dict[str, Any]]:
        resp = await self._http.get("/pdf")
        return unwrap(resp, action="list PDFs")

    async def get_pdf(self, pdf_id: str) -> Dict[str, Any]:
        resp = await self._http.get(f"/pdf/{pdf_id}")
        return unwrap(resp, action=f"get PDF {pdf_id}")

    async def delete_pdf(self, pdf_id: str) -> Any:
        resp = await self._http.delete(f"/pdf/{pdf_id}")
        return unwrap(resp, action=f"delete PDF {pdf_id}")

    async def embed_pdf(self, pdf_id: str) -> Any:
        resp = await self._http.post("/pdf/embed", {"id": pdf_id})
        return unwrap(resp, action=f"embed PDF {pdf_id}")

    async def list_unembedded(self) -> List[Dict[str, Any]]:
        resp = await self._http.get("/pdf/unembedded")
        return unwrap(resp, action="list unembedded PDFs")

    async def upload_pdf(
        self,
        source: Union[str, Path, bytes],
        doi: str,
        *,
        pmid: Optional[str] = None,
        tags: Any = None,
        filename: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Upload a PDF with its DOI as a multipart form.

        - `source` is a file path or raw bytes (then `filename` names the part).
        - `pmid` is optional but must be numeric when given.
        - `tags` may be a pre-encoded string or any JSON-serializable value.

        Raises ValueError on invalid input before any request is made.
        """
        doi = (doi or "").strip()
        if not doi:
            raise ValueError(messages.DOI_REQUIRED)
        pmid_text = str(pmid).strip() if pmid is not None else ""
        if not is_numeric_pmid(pmid_text):
            raise ValueError(messages.PMID_NOT_NUMERIC)

        if isinstance(source, (str, Path)):
            path = Path(source)
            content = path.read_bytes()
            name = filename or path.name
        else:
            content = source
            name = filename or "document.pdf"

        form: Dict[str, str] = {"doi": doi}
        if pmid_text:
            form["pmid"] = pmid_text
        tags_text = _encode_tags(tags)
        if tags_text:
            form["tags"] = tags_text

        logger.debug("Uploading %s (%d bytes) with DOI %s", name, len(content), doi)
        resp = await self._http.post(
            "/pdf", form, files={"pdf": (name, content, PDF_MEDIA_TYPE)}
        )
        return unwrap(resp, action=f"upload {name}")


def _encode_tags(tags: Any) -> str:
    if tags is None:
        return ""
    if isinstance(tags, str):
        return tags.strip()
    if not tags:
        return ""
    return json.dumps(tags)
