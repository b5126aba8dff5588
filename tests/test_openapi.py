from __future__ import annotations

from tiered_ratelimit.main import app


def test_security_scheme_on_protected_routes():
    schema = app.openapi()

    assert schema["components"]["securitySchemes"]["ApiKeyAuth"]["name"] == "X-API-Key"
    assert schema["paths"]["/v1/profile"]["get"]["security"] == [{"ApiKeyAuth": []}]
    assert schema["paths"]["/v1/admin/dashboard"]["get"]["security"] == [{"ApiKeyAuth": []}]
    assert "security" not in schema["paths"]["/v1/public/info"]["get"]


def test_rate_limit_headers_documented():
    schema = app.openapi()

    ok = schema["paths"]["/v1/search"]["get"]["responses"]["200"]
    assert set(ok["headers"]) == {"X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"}
    assert "429" in schema["paths"]["/v1/search"]["get"]["responses"]
    assert "headers" not in schema["paths"]["/health"]["get"]["responses"]["200"]


def test_tags_listed():
    names = {tag["name"] for tag in app.openapi()["tags"]}

    assert {"Public", "Authenticated", "Admin", "Health"} <= names
