#!/usr/bin/env python
"""Anchor legacy highlights for one article and audit the result.

Reads the article body from a file (the article store is not reachable from
here), runs the legacy migration against the configured database, then
prints any integrity issues that remain.

Constraints:
- Refuses to write in staging or prod unless --allow-remote is passed
- Idempotent: already positioned highlights are left untouched
- --dry-run reports what would be anchored without persisting

Usage:
    DATABASE_URL=... python scripts/migrate_legacy_highlights.py ARTICLE_ID body.txt
    python scripts/migrate_legacy_highlights.py ARTICLE_ID body.txt --dry-run

Exit status is 1 if integrity issues remain after migration.
"""

import argparse
import sys
from pathlib import Path


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("article_id", help="Article whose highlights to migrate")
    parser.add_argument("body_file", type=Path, help="Plain-text article body")
    parser.add_argument("--dry-run", action="store_true", help="Do not persist backfills")
    parser.add_argument(
        "--allow-remote", action="store_true", help="Permit writes in staging/prod"
    )
    args = parser.parse_args()

    from folio.config import Environment, get_settings
    from folio.db.session import get_session_factory, init_db
    from folio.logging import configure_logging, get_logger, set_article_context
    from folio.services.highlight_store import HighlightRepository, SqlHighlightStore
    from folio.services.migration import audit_highlights, migrate_legacy_highlights
    from folio.services.paragraphs import segment

    configure_logging(json_format=False)
    logger = get_logger("migrate_legacy_highlights")
    set_article_context(args.article_id)

    settings = get_settings()
    remote = settings.folio_env in (Environment.STAGING, Environment.PROD)
    if remote and not args.dry_run and not args.allow_remote:
        logger.error("refusing_remote_write", env=settings.folio_env.value)
        return 1

    body_text = args.body_file.read_text(encoding="utf-8")
    paragraphs = segment(body_text)

    init_db()
    db = get_session_factory()()
    try:
        repo = HighlightRepository(SqlHighlightStore(db))
        highlights = repo.get_for_article(args.article_id)
        migrated = migrate_legacy_highlights(
            highlights, paragraphs, None if args.dry_run else repo
        )
        issues = audit_highlights(migrated, paragraphs)
    finally:
        db.close()

    legacy_before = sum(1 for h in highlights if h.is_legacy)
    legacy_after = sum(1 for h in migrated if h.is_legacy)
    logger.info(
        "migration_summary",
        highlights=len(highlights),
        anchored=legacy_before - legacy_after,
        still_legacy=legacy_after,
        dry_run=args.dry_run,
    )
    for issue in issues:
        logger.warning(
            "integrity_issue",
            highlight_id=issue.highlight_id,
            kind=issue.kind.value,
            detail=issue.message,
        )

    return 1 if issues else 0


if __name__ == "__main__":
    sys.exit(main())
