"""Local library catalog web application.

Server-rendered CRUD over authors, books, book copies and genres,
backed by MongoDB.
"""

__version__ = "0.1.0"
