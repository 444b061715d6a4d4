import logging
from typing import List
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.dialects.postgresql import insert, JSONB
from sqlalchemy import Table, Column, String, Integer, BigInteger, DateTime, MetaData, text

from starred_exporter.domain.exceptions import DatabaseException
from starred_exporter.domain.models import RepositoryRecord

logger = logging.getLogger(__name__)

# SQLAlchemy core Table definition
metadata = MetaData()
starred_table = Table(
    'starred_repositories', metadata,
    Column('username', String, primary_key=True),
    Column('full_name', String, primary_key=True),
    Column('repo_id', BigInteger, nullable=False),
    Column('name', String, nullable=False),
    Column('html_url', String, nullable=False),
    Column('description', String, nullable=False, server_default=text("''")),
    Column('stargazers_count', Integer, nullable=False),
    Column('forks_count', Integer, nullable=False),
    Column('topics', JSONB, server_default=text("'[]'::jsonb")),
    Column('language', String, nullable=False, server_default=text("''")),
    Column('created_at', DateTime(timezone=True), nullable=False),
    Column('updated_at', DateTime(timezone=True), nullable=False),
    Column('fetched_at', DateTime(timezone=True), server_default=text('NOW()')),
    Column('metadata', JSONB, server_default=text("'{}'::jsonb")),
)

class PostgresStarSink:
    """
    Page sink that upserts a user's starred repositories into PostgreSQL.
    One batch statement per page.
    """

    def __init__(self, db_url: str, username: str):
        try:
            self.engine = create_async_engine(db_url, echo=False)
        except (SQLAlchemyError, ImportError) as e:
            raise DatabaseException(f"Cannot create database engine: {e}") from e
        self.username = username

    async def create_schema(self) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(metadata.create_all)
        except SQLAlchemyError as e:
            raise DatabaseException(f"Failed to create schema: {e}") from e

    async def write_page(self, repos: List[RepositoryRecord]) -> None:
        """
        Inserts a page of repositories in a single batch operation, refreshing rows already present.

        Args:
            repos (List[RepositoryRecord]): Repositories from one fetched page.
        """
        if not repos:
            return  # No rows to insert

        values = [
            {   'username': self.username,
                'full_name': repo.full_name,
                'repo_id': repo.id,
                'name': repo.name,
                'html_url': repo.html_url,
                'description': repo.description,
                'stargazers_count': repo.stargazers_count,
                'forks_count': repo.forks_count,
                'topics': list(repo.topics),
                'language': repo.language,
                'created_at': repo.created_at,
                'updated_at': repo.updated_at,
                'metadata': repo.metadata,
            } for repo in repos
        ]

        stmt = insert(starred_table).values(values)
        upsert_stmt = stmt.on_conflict_do_update(
            index_elements=['username', 'full_name'],
            set_={
                'stargazers_count': stmt.excluded.stargazers_count,
                'forks_count': stmt.excluded.forks_count,
                'description': stmt.excluded.description,
                'topics': stmt.excluded.topics,
                'language': stmt.excluded.language,
                'updated_at': stmt.excluded.updated_at,
                'metadata': stmt.excluded.metadata,
                'fetched_at': text('NOW()'),
            },
        )

        try:
            async with self.engine.begin() as conn:
                await conn.execute(upsert_stmt)
        except SQLAlchemyError as e:
            raise DatabaseException(f"Failed to upsert {len(repos)} repositories: {e}") from e
        logger.debug(f"Upserted {len(repos)} repositories for {self.username}.")

    async def close(self) -> None:
        await self.engine.dispose()
