from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import app


class TestAllowedHosts:

    def test_allowed_hosts_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("ALLOWED_HOSTS", '["api.example.com", "*.example.com"]')

        assert Settings().ALLOWED_HOSTS == ["api.example.com", "*.example.com"]

    def test_configured_host_reaches_the_api(self, monkeypatch, test_db):
        monkeypatch.setenv("ALLOWED_HOSTS", '["api.example.com"]')
        guarded = TrustedHostMiddleware(app, allowed_hosts=Settings().ALLOWED_HOSTS)

        with TestClient(guarded, base_url="http://api.example.com") as client:
            assert client.get("/health").status_code == 200

        with TestClient(guarded, base_url="http://evil.example.org") as client:
            assert client.get("/health").status_code == 400
