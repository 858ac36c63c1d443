from fastapi import status


async def test_health_check(client):
    client_instance, _ = client
    response = await client_instance.get("/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == "healthy"


async def test_cors_preflight_allows_upload_headers(client):
    client_instance, _ = client
    response = await client_instance.options(
        "/api/v1/upload",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "X-Connection-ID",
        },
    )
    assert response.status_code == status.HTTP_200_OK
    assert "x-connection-id" in response.headers[
        "access-control-allow-headers"
    ].lower()
