"""
Tests for health check endpoint.
"""
import pytest


class TestHealthEndpoint:
    """Tests for /api/health endpoint."""

    def test_health_check_returns_200(self, client):
        """GET /api/health should return 200 OK."""
        response = client.get('/api/health')
        assert response.status_code == 200

    def test_health_check_returns_json(self, client):
        response = client.get('/api/health')
        assert response.content_type == 'application/json'

    def test_health_check_returns_status_ok(self, client):
        data = client.get('/api/health').get_json()
        assert data['status'] == 'ok'
        assert 'Veo3 Prompt Generator' in data['message']

    def test_health_check_lists_providers(self, client):
        """Health reports the configured provider chain."""
        data = client.get('/api/health').get_json()
        assert data['providers'] == {'configured': True, 'providers': ['Gemini']}

    def test_health_check_without_providers(self, make_client):
        data = make_client([]).get('/api/health').get_json()
        assert data['status'] == 'ok'
        assert data['providers']['configured'] is False

    def test_health_check_post_not_allowed(self, client):
        """POST /api/health should return 405 Method Not Allowed."""
        response = client.post('/api/health')
        assert response.status_code == 405
