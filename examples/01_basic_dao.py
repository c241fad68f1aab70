"""
Example 01: Basic DAO Operations

This example demonstrates CRUD and conditional queries with RowDAO's GenericDao.
The entity finds its table through the IArticle capability marker.
"""

from dataclasses import dataclass

import sqlalchemy as sa

from row_dao import ConnectionConfig, ExecutionContext, GenericDao, Schema

metadata = sa.MetaData()

article = sa.Table(
    "article",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("title", sa.String(200), nullable=False),
    sa.Column("user_name", sa.String(50)),
    sa.Column("views", sa.Integer, default=0),
)


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


def main():
    context = ExecutionContext.from_config(ConnectionConfig(driver="sqlite", database=":memory:"))
    metadata.create_all(context.engine)

    schema = Schema.from_metadata(metadata, {"article": ArticleRow})
    dao = GenericDao(Article, context, schema=schema)

    print("=== Basic DAO Operations ===\n")

    # insert: the generated key is written back
    hello = dao.insert(Article(title="Hello", user_name="alice", views=10))
    print(f"insert result: {hello}\n")

    # insert_many: one batch for all rows
    dao.insert_many(
        [
            Article(title="Second", user_name="bob", views=3),
            Article(title="Third", user_name="alice", views=42),
        ]
    )

    # update: null attributes keep their stored values
    dao.update(Article(id=hello.id, title="Hello, world"))
    print(f"after update: {dao.get(hello.id)}\n")

    # count / fetch with conditions and sorting
    by_alice = article.c.user_name == "alice"
    print(f"count(all) = {dao.count()}, count(alice) = {dao.count(by_alice)}")
    for item in dao.fetch(by_alice, order_by=[article.c.views.desc()]):
        print(f"  - {item.title} ({item.views} views)")
    print()

    # optional conditions: None entries are ignored
    min_views = None
    print(f"count_with_optional = {dao.count_with_optional([by_alice, min_views])}\n")

    # delete needs at least one condition
    deleted = dao.delete(article.c.views < 5)
    print(f"deleted {deleted} row(s), {dao.count()} left")

    context.engine.dispose()


if __name__ == "__main__":
    main()
