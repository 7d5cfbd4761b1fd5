from venue_crm import rate_limiter
from venue_crm.rate_limiter import check_rate_limit


class TestRateLimiter:
    def test_in_memory_window(self):
        results = [check_rate_limit("unit:1.2.3.4", 3, 60, None) for _ in range(4)]
        assert [allowed for allowed, _, _ in results] == [True, True, True, False]
        assert results[2][1] == 3
        assert 0 < results[3][2] <= 60

    def test_keys_are_independent(self):
        for _ in range(3):
            check_rate_limit("unit:a", 3, 60, None)
        allowed, count, _ = check_rate_limit("unit:b", 3, 60, None)
        assert allowed is True
        assert count == 1


class TestAuthRateLimit:
    def test_sixth_login_attempt_is_throttled(self, client):
        for _ in range(5):
            assert client.get("/auth/google", follow_redirects=False).status_code == 307

        response = client.get("/auth/google", follow_redirects=False)
        assert response.status_code == 429
        error = response.json()["error"]
        assert error["code"] == "RATE_LIMIT_EXCEEDED"
        assert error["details"]["limit"] == 5
        assert int(response.headers["Retry-After"]) > 0

    def test_clients_are_keyed_by_forwarded_ip(self, client):
        for _ in range(5):
            client.get("/auth/google", headers={"X-Forwarded-For": "10.0.0.1"}, follow_redirects=False)

        blocked = client.get("/auth/google", headers={"X-Forwarded-For": "10.0.0.1"}, follow_redirects=False)
        other = client.get("/auth/google", headers={"X-Forwarded-For": "10.0.0.2"}, follow_redirects=False)
        assert blocked.status_code == 429
        assert other.status_code == 307

    def test_forwarded_header_ignored_without_trusted_proxy(self, client, monkeypatch):
        monkeypatch.setattr(rate_limiter, "TRUSTED_PROXIES", frozenset())
        for n in range(5):
            client.get("/auth/google", headers={"X-Forwarded-For": f"10.0.1.{n}"}, follow_redirects=False)

        spoofed = client.get("/auth/google", headers={"X-Forwarded-For": "10.0.1.99"}, follow_redirects=False)
        assert spoofed.status_code == 429

    def test_trusted_proxy_chain_uses_nearest_untrusted_hop(self, client):
        for _ in range(5):
            client.get("/auth/google", headers={"X-Forwarded-For": "1.1.1.1, 10.0.2.1"}, follow_redirects=False)

        forged_origin = client.get(
            "/auth/google", headers={"X-Forwarded-For": "2.2.2.2, 10.0.2.1"}, follow_redirects=False
        )
        assert forged_origin.status_code == 429

    def test_api_limit_is_separate(self, client, consultant_headers):
        for _ in range(6):
            client.get("/auth/google", follow_redirects=False)
        assert client.get("/api/clients", headers=consultant_headers).status_code == 200
