"""
Create (or reset) the ScholarMate tables in PostgreSQL.

Reads the DB_* variables from the environment or a local .env file and
applies scripts/schema.sql one statement at a time. Every statement in the
schema is idempotent, so running the script twice is harmless.

Usage:
  python scripts/init_db.py              # apply the schema
  python scripts/init_db.py --reset      # drop ScholarMate tables first
"""
import argparse
import logging
import os
import sys
from typing import Iterator, List, Tuple

import psycopg2
from dotenv import load_dotenv

from app.database.connection import dsn_from_env

logger = logging.getLogger("init_db")

UUID_EXTENSION = 'CREATE EXTENSION IF NOT EXISTS "uuid-ossp"'
DEFAULT_SCHEMA = os.path.join(os.path.dirname(os.path.abspath(__file__)), "schema.sql")

# Children before parents
TABLES = ["chat_messages", "flashcards", "flashcard_sets", "quizzes", "document_chunks", "documents"]


def iter_statements(sql: str) -> Iterator[str]:
    """
    Yield the statements of a SQL script.

    A semicolon only ends a statement outside single quotes and $$ blocks.
    """
    buf = []
    quote = None
    i = 0
    while i < len(sql):
        if quote is None and sql.startswith("$$", i):
            quote = "$$"
        elif quote == "$$" and sql.startswith("$$", i):
            quote = None
        elif quote is None and sql[i] == "'":
            quote = "'"
        elif quote == "'" and sql[i] == "'":
            quote = None

        if quote is None and sql[i] == ";":
            statement = "".join(buf).strip()
            if statement:
                yield statement
            buf = []
        else:
            token = sql[i:i + 2] if sql.startswith("$$", i) else sql[i]
            buf.append(token)
            i += len(token) - 1
        i += 1

    statement = "".join(buf).strip()
    if statement:
        yield statement


def apply_schema(cursor, statements: List[str]) -> Tuple[int, List[str]]:
    """
    Execute statements on an autocommit cursor, carrying on past failures.

    Returns: the number executed and the first line of each failed statement
    """
    executed, failures = 0, []
    for statement in statements:
        head = statement.splitlines()[0][:120]
        try:
            cursor.execute(statement)
            executed += 1
            logger.debug(f"OK   {head}")
        except psycopg2.Error as e:
            failures.append(head)
            logger.error(f"FAIL {head}: {str(e).strip()}")
    return executed, failures


def drop_tables(cursor) -> None:
    for table in TABLES:
        cursor.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
        logger.info(f"Dropped table {table}")


def main(argv=None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    load_dotenv(dotenv_path=".env")

    parser = argparse.ArgumentParser(description="Create the ScholarMate tables.")
    parser.add_argument("--sql", default=DEFAULT_SCHEMA, help="Schema file to apply.")
    parser.add_argument("--reset", action="store_true", help="Drop existing ScholarMate tables first.")
    args = parser.parse_args(argv)

    try:
        with open(args.sql, "r", encoding="utf-8") as f:
            statements = [UUID_EXTENSION] + list(iter_statements(f.read()))
    except OSError as e:
        logger.error(f"Cannot read schema file {args.sql}: {e}")
        return 1

    try:
        conn = psycopg2.connect(dsn_from_env())
    except (RuntimeError, psycopg2.Error) as e:
        logger.error(f"Cannot connect to PostgreSQL: {e}")
        return 2

    conn.autocommit = True
    try:
        with conn.cursor() as cursor:
            if args.reset:
                drop_tables(cursor)
            executed, failures = apply_schema(cursor, statements)
    finally:
        conn.close()

    logger.info(f"Applied {executed} of {len(statements)} statements from {args.sql}")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
