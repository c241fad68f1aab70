"""
Example 02: Pagination

This example demonstrates paged fetching, including a field-selected query
mapped onto a read model through its setter methods.
"""

from dataclasses import dataclass

import sqlalchemy as sa

from row_dao import ConnectionConfig, EntityRegistry, ExecutionContext, GenericDao, PageResult, ReflectiveMapper

metadata = sa.MetaData()

article = sa.Table(
    "article",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("title", sa.String(200), nullable=False),
    sa.Column("user_name", sa.String(50)),
)

registry = EntityRegistry()


@registry.entity(article)
@dataclass
class Article:
    id: int | None = None
    title: str | None = None
    user_name: str | None = None


class Byline:
    def __init__(self):
        self.author = None

    def setUserName(self, value):
        self.author = value.upper()


def main():
    registry.freeze()
    context = ExecutionContext.from_config(ConnectionConfig(driver="sqlite", database=":memory:"))
    metadata.create_all(context.engine)
    dao = GenericDao(Article, context, registry=registry)

    dao.insert_many([Article(title=f"Post {i}", user_name=f"user{i % 4}") for i in range(1, 26)])

    print("=== Pagination ===\n")

    page = dao.fetch_page(PageResult.of_page(3, page_size=10), order_by=[article.c.id])
    print(f"page {page.page_number}/{page.page_count}, total={page.total}, has_next={page.has_next}")
    for item in page.data:
        print(f"  - {item.id}: {item.title}")
    print()

    bylines = dao.fetch_page_query(
        PageResult(page_size=4),
        lambda _: sa.select(article.c.user_name).distinct().order_by(article.c.user_name),
        ReflectiveMapper(Byline),
    )
    print(f"authors: {[b.author for b in bylines.data]} (failures: {len(bylines.failures)})")

    context.engine.dispose()


if __name__ == "__main__":
    main()
