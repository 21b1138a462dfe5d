"""Postgres-backed article store.

The pipeline only inserts rows and fills translated_* fields. Engagement
counters (likes/views) belong to the API layer and are never written here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import psycopg
from psycopg import errors as pg_errors

from aiwire.errors import PersistenceConflict
from aiwire.ingestion.article_types import NormalizedArticle

ARTICLE_COLUMNS = """
    id, title, body, summary, url, source, category, score, publish_date,
    is_translated, translated_title, translated_body, translated_summary,
    created_at, updated_at
"""


def _row_to_article(row) -> NormalizedArticle:
    (
        aid,
        title,
        body,
        summary,
        url,
        source,
        category,
        score,
        publish_date,
        is_translated,
        translated_title,
        translated_body,
        translated_summary,
        created_at,
        updated_at,
    ) = row
    return NormalizedArticle(
        id=int(aid),
        title=title,
        body=body or "",
        summary=summary or "",
        url=url,
        source=source,
        category=category,
        score=int(score or 0),
        publish_date=publish_date,
        is_translated=bool(is_translated),
        translated_title=translated_title,
        translated_body=translated_body,
        translated_summary=translated_summary,
        created_at=created_at,
        updated_at=updated_at,
    )


@dataclass
class PostgresArticleStore:
    pg_dsn: str

    def _connect(self, **kwargs):
        return psycopg.connect(self.pg_dsn, **kwargs)

    def _find_one(self, column: str, value: str) -> Optional[NormalizedArticle]:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"SELECT {ARTICLE_COLUMNS} FROM articles WHERE {column} = %s LIMIT 1",
                    (value,),
                )
                row = cur.fetchone()
        return _row_to_article(row) if row else None

    def find_by_url(self, url: str) -> Optional[NormalizedArticle]:
        return self._find_one("url", url)

    def find_by_title(self, title: str) -> Optional[NormalizedArticle]:
        return self._find_one("title", title)

    def insert(self, article: NormalizedArticle) -> int:
        """Insert a new article; raises PersistenceConflict if the url already exists."""
        try:
            with self._connect(autocommit=True) as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        INSERT INTO articles (
                          url, title, body, summary, source, category, score, publish_date
                        )
                        VALUES (
                          %(url)s, %(title)s, %(body)s, %(summary)s, %(source)s, %(category)s, %(score)s, %(publish_date)s
                        )
                        RETURNING id
                        """,
                        {
                            "url": article.url,
                            "title": article.title,
                            "body": article.body,
                            "summary": article.summary,
                            "source": article.source,
                            "category": article.category,
                            "score": int(article.score),
                            "publish_date": article.publish_date,
                        },
                    )
                    return int(cur.fetchone()[0])
        except pg_errors.UniqueViolation as e:
            raise PersistenceConflict(f"article already stored: {article.url}") from e

    def find_untranslated(self, *, limit: Optional[int] = None) -> List[NormalizedArticle]:
        sql = f"""
        SELECT {ARTICLE_COLUMNS}
        FROM articles
        WHERE is_translated = FALSE
        ORDER BY publish_date DESC NULLS LAST, id ASC
        """
        params: List[Any] = []
        if limit:
            sql += " LIMIT %s"
            params.append(int(limit))
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                rows = cur.fetchall()
        return [_row_to_article(row) for row in rows]

    def mark_translated(
        self,
        article_id: int,
        *,
        translated_title: str,
        translated_body: str,
        translated_summary: str,
    ) -> bool:
        """Write all translated fields in one statement. Returns False if the row was already translated."""
        with self._connect(autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE articles
                    SET translated_title=%s,
                        translated_body=%s,
                        translated_summary=%s,
                        is_translated=TRUE,
                        updated_at=now()
                    WHERE id=%s AND is_translated = FALSE
                    """,
                    (translated_title, translated_body, translated_summary, int(article_id)),
                )
                return cur.rowcount == 1

    def count_stats(self) -> Dict[str, Any]:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT COUNT(*),
                           COUNT(*) FILTER (WHERE is_translated),
                           COALESCE(SUM(likes), 0),
                           COALESCE(SUM(views), 0)
                    FROM articles
                    """
                )
                total, translated, likes, views = cur.fetchone()
                cur.execute("SELECT source, COUNT(*) FROM articles GROUP BY source ORDER BY COUNT(*) DESC")
                by_source = {src: int(n) for src, n in cur.fetchall()}
                cur.execute("SELECT category, COUNT(*) FROM articles GROUP BY category ORDER BY COUNT(*) DESC")
                by_category = {cat: int(n) for cat, n in cur.fetchall()}
        return {
            "total": int(total or 0),
            "translated": int(translated or 0),
            "untranslated": int((total or 0) - (translated or 0)),
            "likes": int(likes or 0),
            "views": int(views or 0),
            "by_source": by_source,
            "by_category": by_category,
        }

    def delete_older_than(self, days: int) -> int:
        with self._connect(autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "DELETE FROM articles WHERE COALESCE(publish_date, created_at) < now() - make_interval(days => %s::int)",
                    (int(days),),
                )
                return int(cur.rowcount or 0)

    def delete_all(self) -> int:
        with self._connect(autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM articles")
                return int(cur.rowcount or 0)
