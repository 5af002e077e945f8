"""HTTP-level tests: routes, status codes and JSON envelopes."""

import pytest
from fastapi.testclient import TestClient

from voxgate.dependencies import get_provider, get_settings
from voxgate.main import app


@pytest.fixture
def make_client(config):
    """Build a TestClient whose provider handle is the given fake (or None)."""

    def _make(provider, raise_server_exceptions: bool = True) -> TestClient:
        app.dependency_overrides[get_settings] = lambda: config
        app.dependency_overrides[get_provider] = lambda: provider
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)

    yield _make
    app.dependency_overrides.clear()


class TestHealth:
    def test_ready(self, make_client, make_provider, config) -> None:
        resp = make_client(make_provider()).get("/")

        assert resp.status_code == 200
        body = resp.json()
        assert body["ready"] is True
        assert body["status"] == "online"
        assert body["defaultVoice"] == config.default_voice_id
        assert body["serviceName"] == config.service_name
        assert body["endpoints"]["generateTTS"] == "POST /tts"

    def test_not_ready(self, make_client) -> None:
        body = make_client(None).get("/").json()

        assert body["ready"] is False
        assert body["status"] == "degraded"

    def test_docs_payload(self, make_client) -> None:
        resp = make_client(None).get("/docs")

        assert resp.status_code == 200
        body = resp.json()
        assert "POST /tts" in body["endpoints"]
        assert "3000" in body["endpoints"]["POST /tts"]["requestBody"]["text"]


class TestSynthesizeEndpoint:
    def test_end_to_end(self, make_client, make_provider, config, audio_src) -> None:
        provider = make_provider(result={"src": audio_src}, delay=0.01)

        resp = make_client(provider).post("/tts", json={"text": "Hello"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["audioUrl"] == audio_src
        assert body["usedVoice"] == config.default_voice_id
        assert body["textLength"] == 5
        assert body["model"] == config.default_model
        assert body["outputFormat"] == config.default_output_format
        assert body["generationTime"].endswith("ms")
        assert body["message"]

    def test_no_credentials_needed(self, make_client, make_provider, audio_src) -> None:
        client = make_client(make_provider(result={"src": audio_src}))

        anonymous = client.post("/tts", json={"text": "Hello"})
        bogus = client.post(
            "/tts", json={"text": "Hello"}, headers={"Authorization": "Bearer wrong"}
        )

        assert anonymous.status_code == 200
        assert bogus.status_code == 200
        assert bogus.json()["audioUrl"] == audio_src

    def test_supplied_parameters_are_echoed(self, make_client, make_provider) -> None:
        provider = make_provider(result={"url": "https://cdn/a.mp3"})

        body = make_client(provider).post(
            "/tts",
            json={
                "text": "Hi",
                "voice_id": "abc",
                "model": "eleven_flash_v2_5",
                "output_format": "pcm_16000",
            },
        ).json()

        assert body["audioUrl"] == "https://cdn/a.mp3"
        assert body["usedVoice"] == "abc"
        assert body["model"] == "eleven_flash_v2_5"
        assert body["outputFormat"] == "pcm_16000"

    def test_missing_text(self, make_client, make_provider) -> None:
        provider = make_provider(result={"src": "data:x"})

        resp = make_client(provider).post("/tts", json={})

        assert resp.status_code == 400
        body = resp.json()
        assert body == {
            "success": False,
            "error": "Text is required",
            "example": {"text": "Hello world!", "voice_id": "gmnazjXOFoOcWA59sd5m"},
        }
        assert provider.calls == []

    def test_no_body_is_missing_text(self, make_client, make_provider) -> None:
        provider = make_provider(result={"src": "data:x"})

        resp = make_client(provider).post("/tts")

        assert resp.status_code == 400
        assert resp.json()["error"] == "Text is required"
        assert "example" in resp.json()
        assert provider.calls == []

    def test_empty_model_and_format_are_forwarded(self, make_client, make_provider, config) -> None:
        provider = make_provider(result={"src": "data:x"})

        body = make_client(provider).post(
            "/tts", json={"text": "hi", "model": "", "output_format": ""}
        ).json()

        assert body["model"] == ""
        assert body["outputFormat"] == ""
        assert body["usedVoice"] == config.default_voice_id
        assert provider.calls[0]["model"] == ""
        assert provider.calls[0]["output_format"] == ""

    def test_text_too_long(self, make_client, make_provider) -> None:
        provider = make_provider(result={"src": "data:x"})

        resp = make_client(provider).post("/tts", json={"text": "x" * 3500})

        assert resp.status_code == 400
        body = resp.json()
        assert body["textLength"] == 3500
        assert body["maxLength"] == 3000
        assert provider.calls == []

    def test_wrong_type_is_bad_request(self, make_client, make_provider) -> None:
        resp = make_client(make_provider()).post("/tts", json={"text": 123})

        assert resp.status_code == 400
        assert resp.json()["success"] is False
        assert resp.json()["error"] == "Invalid request body"

    def test_not_initialized(self, make_client) -> None:
        resp = make_client(None).post("/tts", json={"text": "Hello"})

        assert resp.status_code == 503
        assert resp.json()["error"] == "Puter service not initialized"

    def test_provider_error(self, make_client, make_provider) -> None:
        provider = make_provider(error=RuntimeError("Invalid voice"))

        resp = make_client(provider).post("/tts", json={"text": "Hello"})

        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Failed to generate audio"
        assert body["details"] == "Invalid voice"

    def test_timeout(self, make_client, make_provider) -> None:
        provider = make_provider(result={"src": "data:x"}, delay=1.0)

        resp = make_client(provider).post("/tts", json={"text": "Hello"})

        assert resp.status_code == 500
        body = resp.json()
        assert body["error"].startswith("TTS generation timeout")
        assert body["timeoutSeconds"] == 0.05

    def test_malformed_response(self, make_client, make_provider) -> None:
        provider = make_provider(result={"duration": 2})

        resp = make_client(provider).post("/tts", json={"text": "Hello"})

        assert resp.status_code == 500
        assert resp.json()["error"] == "Audio URL not found in response"
        assert resp.json()["audioObject"] == ["duration"]


class TestProbeEndpoint:
    def test_probe(self, make_client, make_provider) -> None:
        provider = make_provider(result={"src": "data:abc"})

        resp = make_client(provider).post("/test")

        assert resp.status_code == 200
        assert resp.json() == {
            "success": True,
            "audio": {"isValid": True, "hasSrc": True, "srcLength": 8, "audioKeys": ["src"]},
        }

    def test_probe_not_initialized(self, make_client) -> None:
        resp = make_client(None).post("/test")

        assert resp.status_code == 503
        assert resp.json()["error"] == "Puter not initialized"

    def test_probe_failure(self, make_client, make_provider) -> None:
        resp = make_client(make_provider(error=RuntimeError("nope"))).post("/test")

        assert resp.status_code == 500
        assert resp.json()["details"] == "nope"


class TestFallbacks:
    def test_unknown_path(self, make_client) -> None:
        resp = make_client(None).get("/nope")

        assert resp.status_code == 404
        body = resp.json()
        assert body["error"] == "Endpoint not found"
        assert body["path"] == "/nope"
        assert body["method"] == "GET"
        assert "POST /tts" in body["availableEndpoints"]

    def test_wrong_method(self, make_client) -> None:
        resp = make_client(None).get("/tts")

        assert resp.status_code == 404
        assert resp.json()["error"] == "Endpoint not found"

    def test_unhandled_error_hides_message(self, make_client) -> None:
        def broken_settings():
            raise RuntimeError("secret internals")

        client = make_client(None, raise_server_exceptions=False)
        app.dependency_overrides[get_settings] = broken_settings

        resp = client.post("/tts", json={"text": "Hello"})

        assert resp.status_code == 500
        assert resp.json()["error"] == "Internal server error"
        assert "secret internals" not in resp.text

