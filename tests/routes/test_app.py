"""
Route tests for the home page, service endpoints and error handling.
"""

from unittest.mock import AsyncMock

from bson import ObjectId

from catalog.src.main import app


class TestHome:
    """Test GET /catalog"""

    def test_root_redirects_to_catalog(self, client):
        response = client.get("/")

        assert response.status_code == 302
        assert response.headers["location"] == "/catalog"

    def test_counts(self, client, seed):
        author_id = seed.author()
        seed.genre("Poetry")
        book_id = seed.book(author_id)
        seed.book(author_id, title="Second")
        seed.book_instance(book_id, status="Available")
        seed.book_instance(book_id, status="Loaned")
        seed.book_instance(book_id, status="Available")

        response = client.get("/catalog")

        assert response.status_code == 200
        assert "<strong>Books:</strong> 2" in response.text
        assert "<strong>Copies:</strong> 3" in response.text
        assert "<strong>Copies available:</strong> 2" in response.text
        assert "<strong>Authors:</strong> 1" in response.text
        assert "<strong>Genres:</strong> 1" in response.text

    def test_count_failure_renders_error_page(self, client, repos):
        repos.genres.count = AsyncMock(side_effect=ConnectionError("store down"))

        response = client.get("/catalog")

        assert response.status_code == 500
        assert "Internal server error" in response.text


class TestServiceEndpoints:
    """Test health, readiness and metrics"""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_ready_without_document_store(self, client):
        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["checks"]["document_store"] == "unhealthy"

    def test_request_metrics_labelled_by_route_template(self, client):
        """One series per route, never one per document identifier"""
        author_id = str(ObjectId())
        client.get(f"/catalog/author/{author_id}")
        client.get("/catalog/no-such-page/at-all")

        text = client.get("/metrics").text

        assert 'http_requests_in_progress{method="GET",endpoint="/catalog/author/{author_id}"}' in text
        assert 'endpoint="unmatched"' in text
        assert author_id not in text
        assert "no-such-page" not in text

    def test_metrics(self, client, seed):
        client.post(f"/catalog/genre/{seed.genre('Poetry')}/delete")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "catalog_documents_written_total" in response.text


class TestErrorPages:
    """Test error rendering and response headers"""

    def test_unknown_route_is_404_page(self, client):
        response = client.get("/catalog/nowhere/at/all")

        assert response.status_code == 404
        assert "<h1>404</h1>" in response.text

    def test_server_error_renders_error_page(self, client, repos):
        """Unexpected failures use the error template, never a traceback page"""
        repos.books.find_all = AsyncMock(side_effect=RuntimeError("boom"))

        response = client.get("/catalog/books")

        assert not app.debug
        assert response.status_code == 500
        assert "<h1>500</h1>" in response.text
        assert "Traceback" not in response.text
        assert "boom" not in response.text

    def test_correlation_id_echoed(self, client):
        response = client.get("/catalog/authors", headers={"X-Correlation-ID": "req-42"})

        assert response.headers["X-Correlation-ID"] == "req-42"

    def test_security_headers(self, client):
        response = client.get("/catalog/authors")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
