"""Article storage and deduplication lookups."""

from typing import Iterable, List, Set, Tuple

from psycopg import Connection

from ..models import Article

ARTICLE_COLUMNS = (
    "title",
    "content",
    "source",
    "url",
    "image_url",
    "published_at",
    "created_at",
    "relevance_score",
    "category",
    "tags",
    "language",
    "source_id",
    "source_guid",
)

_INSERT_SQL = """
    INSERT INTO articles ({columns})
    VALUES ({placeholders})
    ON CONFLICT (source, source_guid) DO {conflict}
    RETURNING id
"""

_OVERWRITE_SET = ", ".join(
    f"{column} = EXCLUDED.{column}"
    for column in ARTICLE_COLUMNS
    if column not in ("source", "source_guid", "created_at")
)


class ArticleStorage:
    """Handle article inserts and existence checks."""

    def existing_keys(
        self,
        conn: Connection,
        pairs: Iterable[Tuple[str, str]],
    ) -> Set[Tuple[str, str]]:
        """Return the (source, source_guid) pairs already stored."""
        pairs = list(pairs)
        if not pairs:
            return set()

        sources = [source for source, _ in pairs]
        guids = [guid for _, guid in pairs]

        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT DISTINCT a.source, a.source_guid
                FROM articles a
                JOIN unnest(%s::text[], %s::text[]) AS k(source, source_guid)
                  ON a.source = k.source AND a.source_guid = k.source_guid
                """,
                (sources, guids),
            )
            return {(row["source"], row["source_guid"]) for row in cur.fetchall()}

    def insert_articles(
        self,
        conn: Connection,
        articles: List[Article],
        overwrite: bool = False,
    ) -> List[int]:
        """
        Insert a batch of articles.

        Rows that collide with an existing (source, source_guid) are skipped,
        or rewritten in place when ``overwrite`` is set.

        Returns:
            IDs of the rows the database actually wrote
        """
        if not articles:
            return []

        query = _INSERT_SQL.format(
            columns=", ".join(ARTICLE_COLUMNS),
            placeholders=", ".join(f"%({column})s" for column in ARTICLE_COLUMNS),
            conflict=f"UPDATE SET {_OVERWRITE_SET}" if overwrite else "NOTHING",
        )

        inserted: List[int] = []
        with conn.cursor() as cur:
            cur.executemany(query, [a.to_row() for a in articles], returning=True)
            while True:
                row = cur.fetchone()
                if row:
                    inserted.append(row["id"])
                if not cur.nextset():
                    break

        return inserted
