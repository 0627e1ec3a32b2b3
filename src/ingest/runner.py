from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

from common.validation import is_numeric_pmid
from services.errors import ApiError
from services.pdfs import PdfService

from .sheet import IngestionRow


logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10


def batch_slice(rows: Sequence[IngestionRow], batch: int, batch_size: int = DEFAULT_BATCH_SIZE) -> Tuple[int, List[IngestionRow]]:
    """Return (start index, rows) for the 1-based `batch` of `batch_size` rows."""
    if batch < 1:
        raise ValueError("batch must be >= 1")
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    start = (batch - 1) * batch_size
    return start, list(rows[start:start + batch_size])


async def run_batch_upload(
    pdfs: PdfService,
    rows: Sequence[IngestionRow],
    papers_dir: os.PathLike[str] | str,
    *,
    batch: int = 1,
    batch_size: int = DEFAULT_BATCH_SIZE,
    delete_after: bool = True,
) -> Dict[str, Any]:
    """
    Upload one batch of spreadsheet rows, one request at a time.

    Rows are skipped when their file is missing or their PMID is not numeric.
    A failed upload is logged and counted; it never aborts the batch. Uploaded
    files are removed from `papers_dir` when `delete_after` is set.
    """
    total = len(rows)
    start, chunk = batch_slice(rows, batch, batch_size)
    summary: Dict[str, Any] = {
        "ok": True,
        "batch": batch,
        "total": total,
        "processed": len(chunk),
        "uploaded": 0,
        "skipped": 0,
        "failed": 0,
    }
    if not chunk:
        logger.info("Batch %d is empty (rows %d-%d out of %d total)", batch, start + 1, start + batch_size, total)
        summary["note"] = "Empty batch"
        return summary

    logger.info(
        "Processing batch %d: rows %d-%d (%d items)",
        batch, start + 1, min(start + batch_size, total), len(chunk),
    )
    base = Path(papers_dir)
    for offset, row in enumerate(chunk):
        position = f"[{start + offset + 1}/{total}]"
        if not row.file:
            logger.error("%s Skipping: row has no file name", position)
            summary["skipped"] += 1
            continue
        pdf_path = base / row.file
        if not pdf_path.exists():
            logger.error("%s Skipping: file not found %s", position, pdf_path)
            summary["skipped"] += 1
            continue
        if not (row.doi or "").strip():
            logger.error("%s Upload skipped: DOI is required", position)
            summary["skipped"] += 1
            continue
        if not is_numeric_pmid(row.pmid):
            logger.error("%s Upload skipped: PMID must be numeric", position)
            summary["skipped"] += 1
            continue

        try:
            result = await pdfs.upload_pdf(pdf_path, row.doi, pmid=row.pmid or None, tags=row.tags or None)
        except (ApiError, OSError, ValueError) as exc:
            logger.error("%s Upload error: %s", position, exc)
            summary["failed"] += 1
            continue

        summary["uploaded"] += 1
        name = result.get("fileName") if isinstance(result, dict) else None
        logger.info("%s Upload successful: %s", position, name or pdf_path.name)
        if delete_after:
            try:
                pdf_path.unlink()
            except OSError as exc:
                logger.warning("%s Could not delete %s: %s", position, pdf_path.name, exc)
            else:
                logger.info("%s Deleted local file: %s", position, pdf_path.name)

    logger.info("Batch %d complete", batch)
    return summary


def _pdf_id(record: Any) -> Any:
    if isinstance(record, dict):
        return record.get("_id") or record.get("id")
    return None


async def fetch_unembedded_ids(pdfs: PdfService, output: os.PathLike[str] | str) -> List[Any]:
    """Write the ids of every not-yet-embedded PDF to `output` as a JSON array."""
    records = await pdfs.list_unembedded()
    ids = [pid for pid in (_pdf_id(r) for r in records or []) if pid is not None]
    out_path = Path(output)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(ids, indent=2), encoding="utf-8")
    logger.info("Wrote %d unembedded PDF id(s) to %s", len(ids), out_path)
    return ids


def load_ids(path: os.PathLike[str] | str) -> List[Any]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON array of ids")
    return data


async def run_embed(pdfs: PdfService, ids: Sequence[Any]) -> Dict[str, Any]:
    """Embed each PDF id in turn; failures are logged and counted."""
    summary: Dict[str, Any] = {"ok": True, "total": len(ids), "embedded": 0, "failed": 0}
    for i, pdf_id in enumerate(ids, start=1):
        position = f"[{i}/{len(ids)}]"
        logger.info("%s Embedding PDF with ID: %s", position, pdf_id)
        try:
            await pdfs.embed_pdf(str(pdf_id))
        except ApiError as exc:
            logger.error("%s Error embedding PDF %s: %s", position, pdf_id, exc)
            summary["failed"] += 1
            continue
        summary["embedded"] += 1
    logger.info("All PDFs processed")
    return summary


__all__ = [
    "batch_slice",
    "fetch_unembedded_ids",
    "load_ids",
    "run_batch_upload",
    "run_embed",
]
