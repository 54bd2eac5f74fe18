"""
Reference population for display.

Documents only store identifiers of the entities they reference. These
helpers fetch the referenced documents and wrap everything in view
models. A reference whose document no longer exists resolves to None
(single references) or is left out (genre lists); it never raises.
"""

from typing import Iterable, List

from catalog.src.models.entities import Book, BookInstance
from catalog.src.models.views import BookInstanceView, BookView
from catalog.src.repositories import Repositories
from catalog.src.services.resolver import resolve


async def populate_book(book: Book, repos: Repositories) -> BookView:
    """Join a book's author and genres."""
    results = await resolve({
        "author": lambda: repos.authors.find_by_id(book.author),
        "genres": lambda: repos.genres.find_many_by_ids(book.genre),
    })
    return BookView(book=book, author=results["author"], genres=results["genres"])


async def populate_books(books: Iterable[Book], repos: Repositories) -> List[BookView]:
    """Join the author of every book with a single query."""
    books = list(books)
    authors = await repos.authors.find_many_by_ids({book.author for book in books})
    by_id = {author.id: author for author in authors}
    return [BookView(book=book, author=by_id.get(book.author)) for book in books]


async def populate_instances(
    instances: Iterable[BookInstance],
    repos: Repositories,
) -> List[BookInstanceView]:
    """Join the book (and that book's author) of every copy."""
    instances = list(instances)
    books = await repos.books.find_many_by_ids({instance.book for instance in instances})
    book_views = {view.book.id: view for view in await populate_books(books, repos)}

    views = []
    for instance in instances:
        view = book_views.get(instance.book)
        views.append(BookInstanceView(
            instance=instance,
            book=view.book if view else None,
            author=view.author if view else None,
        ))
    return views


async def populate_instance(instance: BookInstance, repos: Repositories) -> BookInstanceView:
    """Join the book of one copy."""
    views = await populate_instances([instance], repos)
    return views[0]
