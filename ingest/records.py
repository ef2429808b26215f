"""
Record acquisition boundary.
Loads raw survey rows from CSV/JSON files or an HTTP endpoint. Failures are reported
through LoadResult instead of exceptions so callers decide what an empty load means.
"""
import csv
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from normalize.models import FIELD_COHORT
from storage.retry import perform_request_with_retries

log = logging.getLogger(__name__)

MAX_PAGES = 100


@dataclass
class LoadResult:
    ok: bool
    records: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> 'LoadResult':
        return cls(ok=False, records=[], error=error)


def _unwrap(payload: Any) -> Optional[List[Dict[str, Any]]]:
    """
    Accept a list of rows, {"records": [...]}, or Airtable-style
    {"records": [{"id": ..., "fields": {...}}]}. Returns None for anything else.
    """
    if isinstance(payload, Mapping):
        payload = payload.get('records')
    if not isinstance(payload, list):
        return None
    rows: List[Dict[str, Any]] = []
    for item in payload:
        if not isinstance(item, Mapping):
            continue
        fields = item.get('fields')
        rows.append(dict(fields) if isinstance(fields, Mapping) else dict(item))
    return rows


def _read_csv(path: str) -> List[Dict[str, Any]]:
    with open(path, newline='', encoding='utf-8-sig') as fh:
        return [dict(row) for row in csv.DictReader(fh)]


def load_records(path: str) -> LoadResult:
    if not path or not os.path.isfile(path):
        return LoadResult.failure(f"records file not found: {path}")
    ext = os.path.splitext(path)[1].lower()
    try:
        if ext == '.csv':
            rows = _read_csv(path)
        elif ext == '.json':
            with open(path, encoding='utf-8') as fh:
                rows = _unwrap(json.load(fh))
            if rows is None:
                return LoadResult.failure(f"{path}: expected a list of records or an object with 'records'")
        else:
            return LoadResult.failure(f"unsupported records format: {ext or path}")
    except (OSError, UnicodeDecodeError, csv.Error, ValueError) as ex:
        return LoadResult.failure(f"could not read {path}: {ex}")
    log.info("Loaded %d records from %s", len(rows), path)
    return LoadResult(ok=True, records=rows)


def fetch_records(url: str, headers: Optional[Dict[str, str]] = None, max_retries: Optional[int] = None) -> LoadResult:
    """Fetch rows over HTTP, following Airtable-style "offset" pagination."""
    if not url:
        return LoadResult.failure("records URL is required")
    rows: List[Dict[str, Any]] = []
    params: Dict[str, Any] = {}
    for _ in range(MAX_PAGES):
        result = perform_request_with_retries(url, headers=headers or {}, params=params, max_retries=max_retries)
        status = result.get('status', 0)
        if status != 200:
            return LoadResult.failure(f"fetching {url} failed with status {status}")
        body = result.get('response')
        page = _unwrap(body)
        if page is None:
            return LoadResult.failure(f"{url}: response does not contain records")
        rows.extend(page)
        offset = body.get('offset') if isinstance(body, Mapping) else None
        if not offset:
            break
        params = {'offset': offset}
    else:
        log.warning("Stopped following pagination for %s after %d pages", url, MAX_PAGES)
    log.info("Fetched %d records from %s", len(rows), url)
    return LoadResult(ok=True, records=rows)


def filter_by_cohort(records: List[Dict[str, Any]], cohort_id: Optional[str]) -> List[Dict[str, Any]]:
    """Keep rows whose cohortId matches; no cohort given means every row."""
    wanted = (cohort_id or '').strip()
    if not wanted:
        return list(records or [])
    out = []
    for row in records or []:
        if not isinstance(row, Mapping):
            continue
        value = row.get(FIELD_COHORT)
        if value is not None and str(value).strip() == wanted:
            out.append(row)
    return out
