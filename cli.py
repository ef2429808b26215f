"""
CLI entry point for engagement_pulse. Wires the pipeline: load -> (cache) -> assemble -> enrich -> render
"""

import argparse
import json
import logging
import os
import sys
import webbrowser
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from enrich import HeuristicInsightProvider, HttpInsightProvider, enrich_snapshot
from ingest.records import LoadResult, fetch_records, filter_by_cohort, load_records
from report.renderer import render
from scoring.utils import SettingsError, load_settings
from snapshot.assembler import assemble_snapshot
from storage.cache import DEFAULT_TTL_SECONDS, Cache, load_snapshot, store_snapshot
from storage.retry import configure_retry

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"
FILE_FORMATS = ("html", "md", "csv", "json")
DEFAULT_CACHE_PATH = "cache.db"


def _print_json(obj):
    print(json.dumps(obj, indent=2, default=str))


def _print_cache_get(cache: Cache, key: str):
    entry = cache.get(key)
    if entry is None:
        print(f"Cache key not found: {key}")
    else:
        _print_json(entry)


def _confirmed(prompt: str, force: bool) -> bool:
    if force:
        return True
    return input(prompt).strip().lower() in ("y", "yes")


def _remove_cache_key(cache: Cache, key: str, force: bool):
    if not _confirmed(f"Are you sure you want to remove cache key '{key}' from {cache.path}? [y/N]: ", force):
        print("Aborted cache key removal.")
        return
    removed = cache.delete_key(key)
    if removed:
        print(f"Removed {removed} row(s) for key: {key}")
    else:
        print(f"Cache key not found: {key}")


def _clear_cache(cache: Cache, force: bool):
    if not _confirmed(f"Are you sure you want to clear the cache at {cache.path}? This cannot be undone. [y/N]: ", force):
        print("Aborted cache clear.")
        return
    cache.clear()
    print(f"Cleared cache at {cache.path}")


def _cache_action_requested(args) -> bool:
    return bool(args.cache_info or args.cache_clear or args.cache_list or args.cache_get or args.cache_remove)


def _handle_cache_actions(args) -> bool:
    """Run the first requested cache inspection/management action. Returns True when one ran."""
    if not _cache_action_requested(args):
        return False
    with Cache(args.cache or DEFAULT_CACHE_PATH, ttl_seconds=args.cache_ttl) as cache:
        flag_actions = [
            (args.cache_info, lambda: _print_json(cache.stats())),
            (args.cache_clear, lambda: _clear_cache(cache, args.force)),
            (args.cache_list, lambda: _print_json(cache.list_keys(limit=1000))),
            (bool(args.cache_get), lambda: _print_cache_get(cache, args.cache_get)),
            (bool(args.cache_remove), lambda: _remove_cache_key(cache, args.cache_remove, args.force)),
        ]
        for enabled, handler in flag_actions:
            if enabled:
                handler()
                break
    return True


def _load_json_file(path: str, description: str):
    """Return the parsed JSON document, or None (after logging) when it cannot be read."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        log.error("Failed to read %s %s: %s", description, path, e)
        return None


def _acquire_records(args) -> LoadResult:
    if args.records_url:
        headers = {"Authorization": f"Bearer {args.records_token}"} if args.records_token else {}
        return fetch_records(args.records_url, headers=headers)
    if args.records:
        return load_records(args.records)
    return LoadResult.failure("no record source given (use --records or --records-url)")


def _insight_provider(args):
    mode = (args.insights or "auto").lower()
    if mode == "none":
        return None
    if mode == "local":
        return HeuristicInsightProvider()
    remote = HttpInsightProvider.from_env(args.insights_url, args.insights_token, timeout=args.insights_timeout)
    if remote is None and mode == "remote":
        log.warning("Remote insights requested but no URL configured (--insights-url or ENGAGE_INSIGHTS_URL)")
    return remote


def build_snapshot(args, settings, cache: Optional[Cache]) -> Optional[Dict[str, Any]]:
    """Return the snapshot dict for the requested cohort, from cache when fresh, else recomputed."""
    if cache is not None and not args.refresh:
        cached = load_snapshot(cache, args.cohort)
        if cached is not None:
            log.info("Using cached snapshot for cohort %s", args.cohort or "default")
            return cached

    loaded = _acquire_records(args)
    if not loaded.ok:
        log.error("Could not load records: %s", loaded.error)
        return None
    records = filter_by_cohort(loaded.records, args.cohort)

    tracker = _load_json_file(args.tracker, "tracker file") if args.tracker else None
    snapshot = assemble_snapshot(records, tracker=tracker, settings=settings)
    provider = _insight_provider(args)
    if provider is not None:
        snapshot = enrich_snapshot(snapshot, provider)

    data = snapshot.to_dict()
    store_snapshot(cache, data, args.cohort)
    return data


def _open_file_in_browser(path: str):
    """Open a file URL in the system default web browser."""
    webbrowser.open("file://" + os.path.abspath(path))


def _default_base(args) -> str:
    stamp = datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%SZ')
    return f"engagement_report_{args.cohort or 'all'}_{stamp}"


def _write_report_file(path_base: str, ext: str, content: str, open_html: bool = False) -> str:
    out_path = path_base if path_base.lower().endswith(f".{ext}") else f"{path_base}.{ext}"
    out_dir = os.path.dirname(out_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    # newline='' keeps csv line endings intact on Windows
    with open(out_path, 'w', encoding='utf-8', newline='') as fh:
        fh.write(content)
    print(f"Wrote report to {out_path}")
    if open_html:
        try:
            _open_file_in_browser(out_path)
        except webbrowser.Error:
            print("Failed to open browser automatically; file saved at", out_path)
    return out_path


def write_output(data: Dict[str, Any], args):
    """Write one or all report formats to files, or print text output to stdout."""
    generated_at = datetime.now(timezone.utc).isoformat()
    fmt = (args.output or "text").lower()
    formats = FILE_FORMATS if args.export_all else (fmt,)
    for ffmt in formats:
        rendered = render(data, fmt=ffmt, generated_at=generated_at, cohort=args.cohort or None)
        if ffmt in FILE_FORMATS:
            base = args.out_file.strip() or _default_base(args)
            _write_report_file(base, ffmt, rendered, open_html=(ffmt == "html" and args.open))
        else:
            print(rendered)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Program engagement analytics CLI")
    parser.add_argument("--records", type=str, default="", help="Path to survey records (.csv or .json)")
    parser.add_argument("--records-url", type=str, default="", help="HTTP endpoint returning survey records as JSON")
    parser.add_argument("--records-token", type=str, default=os.getenv("ENGAGE_RECORDS_TOKEN", ""), help="Bearer token for --records-url (env ENGAGE_RECORDS_TOKEN)")
    parser.add_argument("--tracker", type=str, default="", help="Path to an issue-tracker aggregate JSON file used to cross-check reported counts")
    parser.add_argument("--cohort", type=str, default="", help="Only include records with this cohortId; also keys the snapshot cache")
    parser.add_argument("--config", type=str, default=None, help="Settings YAML (defaults to ENGAGE_CONFIG or config/pipeline.yaml)")
    parser.add_argument("--output", type=str, default="text", help="Output format (text, md, csv, json, html)")
    parser.add_argument("--out-file", type=str, default="", help="Output file path for file formats. If omitted a default name will be used")
    parser.add_argument("--export-all", action="store_true", help="Write HTML, MD, CSV and JSON copies")
    parser.add_argument("--open", action="store_true", help="Open the generated HTML report in the default browser")
    parser.add_argument("--insights", choices=("auto", "none", "local", "remote"), default="auto",
                        help="Narrative insights: remote service when configured (auto), rule-based (local), or none")
    parser.add_argument("--insights-url", type=str, default=None, help="Insight service URL (env ENGAGE_INSIGHTS_URL)")
    parser.add_argument("--insights-token", type=str, default=None, help="Insight service token (env ENGAGE_INSIGHTS_TOKEN)")
    parser.add_argument("--insights-timeout", type=float, default=30.0, help="Insight service timeout in seconds")
    parser.add_argument("--cache", type=str, default="", help="Path to SQLite snapshot cache file (optional)")
    parser.add_argument("--cache-ttl", type=float, default=DEFAULT_TTL_SECONDS, help="Snapshot cache TTL in seconds")
    parser.add_argument("--refresh", action="store_true", help="Recompute the snapshot even when a fresh cached copy exists")
    # retry/backoff knobs: optional CLI overrides. Environment variables ENGAGE_MAX_RETRIES, ENGAGE_BACKOFF_BASE,
    # ENGAGE_BACKOFF_JITTER, ENGAGE_MAX_BACKOFF may also be used to set defaults.
    parser.add_argument("--max-retries", type=int, default=None, help="Maximum retry attempts for HTTP requests (overrides ENGAGE_MAX_RETRIES env)")
    parser.add_argument("--backoff-base", type=float, default=None, help="Base backoff seconds (overrides ENGAGE_BACKOFF_BASE env)")
    parser.add_argument("--backoff-jitter", type=float, default=None, help="Jitter seconds added to backoff (overrides ENGAGE_BACKOFF_JITTER env)")
    parser.add_argument("--max-backoff", type=float, default=None, help="Maximum backoff cap in seconds (overrides ENGAGE_MAX_BACKOFF env)")
    parser.add_argument("--cache-info", action="store_true", help="Show cache statistics (requires --cache or uses default cache.db)")
    parser.add_argument("--cache-clear", action="store_true", help="Clear the persistent cache (requires --cache or uses default cache.db)")
    parser.add_argument("--cache-list", action="store_true", help="List cache keys (requires --cache or uses default cache.db)")
    parser.add_argument("--cache-get", type=str, default="", help="Get a specific cache key value (requires --cache or uses default cache.db)")
    parser.add_argument("--cache-remove", type=str, default="", help="Remove a specific cache key (requires --cache or uses default cache.db)")
    parser.add_argument("--force", action="store_true", help="Force actions without confirmation (use with --cache-clear or --cache-remove)")
    parser.add_argument("--log-level", type=str, default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING), format=LOG_FORMAT)

    # CLI flags take precedence over environment variables
    configure_retry(max_retries=args.max_retries, backoff_base=args.backoff_base, backoff_jitter=args.backoff_jitter, max_backoff=args.max_backoff)

    if _handle_cache_actions(args):
        return 0

    if not (args.records or args.records_url):
        parser.error("one of --records or --records-url is required")

    try:
        settings = load_settings(args.config)
    except SettingsError as ex:
        log.error("%s", ex)
        return 2

    cache = Cache(args.cache, ttl_seconds=args.cache_ttl) if args.cache else None
    try:
        data = build_snapshot(args, settings, cache)
        if data is None:
            return 1
        write_output(data, args)
        return 0
    finally:
        if cache is not None:
            cache.close()


if __name__ == "__main__":
    sys.exit(main())
