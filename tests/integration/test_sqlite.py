"""Integration test for SQLite full workflow.

Covers: table resolution, single and batched writes, conditional reads and
deletes, pagination, reflective mapping and transactions end-to-end against
a real SQLite in-memory database.
"""

from __future__ import annotations

from dataclasses import dataclass

import pytest
import sqlalchemy as sa

from row_dao.core.context import ExecutionContext
from row_dao.core.exceptions import MissingConditionError
from row_dao.core.registry import EntityMapping, EntityRegistry
from row_dao.core.schema import Schema
from row_dao.mapping.reflective import ReflectiveMapper
from row_dao.repository.base import GenericDao
from row_dao.repository.pagination import PageResult

pytestmark = pytest.mark.integration

# --- Test models ---


class IArticle:
    pass


class ArticleRow(IArticle):
    pass


@dataclass
class Article(IArticle):
    id: int | None = None
    title: str | None = None
    user_name: str | None = None
    views: int | None = None
    status: str | None = None


class Author:
    """Read model populated through camel-case mutators."""

    def __init__(self) -> None:
        self.name = None

    def setUserName(self, value: str) -> None:
        self.name = value


@dataclass
class Strict:
    id: int


class Bean:
    """Entity with a no-argument constructor and camel-case mutators."""

    def __init__(self) -> None:
        self.id = None
        self.title = None
        self.user_name = None

    def setId(self, value: int) -> None:
        self.id = value

    def setTitle(self, value: str) -> None:
        self.title = value

    def setUserName(self, value: str | None) -> None:
        self.user_name = value


# --- Fixtures ---


@pytest.fixture
def dao(context: ExecutionContext, metadata: sa.MetaData, article_table: sa.Table) -> GenericDao[Article, int]:
    schema = Schema.from_metadata(metadata, {"article": ArticleRow})
    return GenericDao(Article, context, schema=schema)


@pytest.fixture
def seeded(dao: GenericDao[Article, int]) -> GenericDao[Article, int]:
    dao.insert_many(
        [
            Article(title=f"post {i}", user_name=f"user{i % 3}", views=i, status="draft" if i % 2 else "published")
            for i in range(1, 26)
        ]
    )
    return dao


def _titles(articles: list[Article]) -> list[str | None]:
    return [a.title for a in articles]


# --- Tests ---


class TestWrites:
    def test_insert_then_get(self, dao: GenericDao[Article, int]) -> None:
        article = dao.insert(Article(title="Hello", user_name="alice", views=3))
        assert article.id == 1
        assert dao.get(1) == Article(id=1, title="Hello", user_name="alice", views=3)

    def test_insert_keeps_explicit_key(self, dao: GenericDao[Article, int]) -> None:
        dao.insert(Article(id=42, title="Fixed"))
        assert dao.get(42).title == "Fixed"

    def test_update_ignoring_nulls_keeps_stored_values(self, dao: GenericDao[Article, int]) -> None:
        dao.insert(Article(title="Hello", user_name="alice", views=3))
        dao.update(Article(id=1, title="Changed"))
        assert dao.get(1) == Article(id=1, title="Changed", user_name="alice", views=3)

    def test_update_with_nulls_overwrites(self, dao: GenericDao[Article, int]) -> None:
        dao.insert(Article(title="Hello", user_name="alice", views=3))
        dao.update(Article(id=1, title="Changed"), ignore_null=False)
        assert dao.get(1) == Article(id=1, title="Changed")

    def test_batch_insert_matches_sequential(
        self, context: ExecutionContext, metadata: sa.MetaData, dao: GenericDao[Article, int]
    ) -> None:
        copy = dao.table.to_metadata(metadata, name="article_copy")
        copy.create(context.engine)
        sequential = GenericDao(Article, context, mapping=EntityMapping.build(Article, copy))

        articles = [
            Article(title="a", user_name="u1"),
            Article(title="b", views=2),
            Article(title="c", user_name="u3", status="draft"),
        ]
        dao.insert_many(articles)
        for article in articles:
            sequential.insert(Article(**vars(article)))

        order = [sa.column("id")]
        assert dao.fetch(order_by=order) == sequential.fetch(order_by=order)

    def test_batch_update_mixed_dirty_sets(self, seeded: GenericDao[Article, int]) -> None:
        seeded.update_many([Article(id=1, title="one"), Article(id=2, views=200), Article(id=3)])
        assert seeded.get(1).title == "one"
        assert seeded.get(1).views == 1
        assert seeded.get(2) == Article(id=2, title="post 2", user_name="user2", views=200, status="published")
        assert seeded.get(3).title == "post 3"

    def test_batch_update_with_nulls(self, seeded: GenericDao[Article, int]) -> None:
        seeded.update_many([Article(id=1, title="x"), Article(id=2, title="y")], ignore_null=False)
        assert seeded.get(1) == Article(id=1, title="x")
        assert seeded.get(2) == Article(id=2, title="y")

    def test_empty_batches_issue_nothing(self, dao: GenericDao[Article, int]) -> None:
        dao.insert_many([])
        dao.update_many([])
        assert dao.count() == 0

    def test_setter_entity_round_trip(self, context: ExecutionContext, article_table: sa.Table) -> None:
        registry = EntityRegistry()
        registry.register(Bean, article_table)
        dao = GenericDao(Bean, context, registry=registry)

        bean = Bean()
        bean.setTitle("Hello")
        bean.setUserName("alice")
        dao.insert(bean)

        found = dao.get(bean.id)
        assert (found.id, found.title, found.user_name) == (1, "Hello", "alice")
        [listed] = dao.fetch(article_table.c.user_name == "alice")
        assert listed.title == "Hello"

    def test_registered_entity(self, context: ExecutionContext, article_table: sa.Table) -> None:
        registry = EntityRegistry()
        registry.register(Article, article_table)
        registry.freeze()
        dao = GenericDao(Article, context, registry=registry)
        dao.insert(Article(title="registered"))
        assert dao.count() == 1


class TestReadsAndDeletes:
    def test_count_matches_fetch(self, seeded: GenericDao[Article, int]) -> None:
        drafts = seeded.table.c.status == "draft"
        assert seeded.count() == len(seeded.fetch()) == 25
        assert seeded.count(drafts) == len(seeded.fetch(drafts)) == 13

    def test_optional_conditions(self, seeded: GenericDao[Article, int]) -> None:
        c = seeded.table.c
        assert seeded.count_with_optional([None, c.user_name == "user0", None]) == 8
        assert seeded.count_with_optional([None]) == 25

    def test_fetch_order_and_conditions(self, seeded: GenericDao[Article, int]) -> None:
        c = seeded.table.c
        found = seeded.fetch(c.views > 20, c.status == "published", order_by=[c.views.desc()])
        assert _titles(found) == ["post 24", "post 22"]

    def test_fetch_one_and_get_many(self, seeded: GenericDao[Article, int]) -> None:
        c = seeded.table.c
        assert seeded.fetch_one(c.title == "post 7").views == 7
        assert seeded.fetch_one(c.title == "missing") is None
        assert sorted(a.id for a in seeded.get_many([3, 5, 99])) == [3, 5]

    def test_delete_requires_condition(self, seeded: GenericDao[Article, int]) -> None:
        with pytest.raises(MissingConditionError):
            seeded.delete_with_optional([None])
        assert seeded.count() == 25

    def test_deletes(self, seeded: GenericDao[Article, int]) -> None:
        assert seeded.delete(seeded.table.c.status == "draft") == 13
        assert seeded.delete_by_id(2) == 1
        assert seeded.delete_by_ids([4, 6, 1000]) == 2
        assert seeded.delete_by_ids([]) == 0
        assert seeded.count() == 9


class TestPagination:
    def test_last_partial_page(self, seeded: GenericDao[Article, int]) -> None:
        page = seeded.fetch_page(PageResult(start=20, page_size=10), order_by=[seeded.table.c.id])
        assert page.total == 25
        assert [a.id for a in page.data] == [21, 22, 23, 24, 25]
        assert page.has_next is False

    def test_page_with_conditions(self, seeded: GenericDao[Article, int]) -> None:
        c = seeded.table.c
        page = seeded.fetch_page_with_optional(
            PageResult(page_size=5), [None, c.status == "published"], order_by=[c.id.desc()]
        )
        assert page.total == 12
        assert [a.id for a in page.data] == [24, 22, 20, 18, 16]

    def test_field_selected_page_maps_reflectively(self, seeded: GenericDao[Article, int]) -> None:
        c = seeded.table.c
        page = seeded.fetch_page_query(
            PageResult(page_size=3),
            lambda _: sa.select(c.id, c.user_name).order_by(c.id),
            ReflectiveMapper(Author),
        )
        assert page.total == 25
        assert [a.name for a in page.data] == ["user1", "user2", "user0"]

    def test_default_page_mapper_tolerates_partial_columns(self, seeded: GenericDao[Article, int]) -> None:
        c = seeded.table.c
        page = seeded.fetch_page_query(PageResult(page_size=2), lambda _: sa.select(c.title).order_by(c.id))
        assert page.data == [Article(title="post 1"), Article(title="post 2")]

    def test_unmappable_rows_reported(self, seeded: GenericDao[Article, int]) -> None:
        c = seeded.table.c
        page = seeded.fetch_page_query(
            PageResult(page_size=4), lambda _: sa.select(c.id), ReflectiveMapper(Strict)
        )
        assert page.total == 25
        assert page.data == []
        assert len(page.failures) == 4


class TestTransactions:
    def test_commit(self, context: ExecutionContext, dao: GenericDao[Article, int]) -> None:
        with context.transaction() as tx:
            bound = dao.bind(tx.context)
            bound.insert(Article(title="a"))
            bound.insert_many([Article(title="b"), Article(title="c")])
        assert dao.count() == 3

    def test_rollback_discards_all_writes(self, context: ExecutionContext, dao: GenericDao[Article, int]) -> None:
        with pytest.raises(RuntimeError), context.transaction() as tx:
            bound = dao.bind(tx.context)
            bound.insert(Article(title="a"))
            bound.insert_many([Article(title="b"), Article(title="c")])
            assert bound.count() == 3
            raise RuntimeError("abort")
        assert dao.count() == 0

    def test_execute_callback(self, seeded: GenericDao[Article, int]) -> None:
        total = seeded.execute(lambda conn: conn.execute(sa.select(sa.func.sum(seeded.table.c.views))).scalar())
        assert total == sum(range(1, 26))
