"""Tests for the FastAPI web adapter."""

import pytest
from fastapi.testclient import TestClient

from web.app import app

HELLO = [0xE002, 0xF022, 0xF025, 0x48, 0x49, 0x00]


@pytest.fixture
def client():
    return TestClient(app)


class TestRunEndpoint:
    """POST /api/run."""

    def test_run_words(self, client):
        """Words at the default origin run to HALT."""
        response = client.post("/api/run", json={"words": HELLO})
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["output_text"] == "HIHALT\n"
        assert body["trace"][0]["instr_text"] == "LEA R0, x3003"

    def test_run_with_input(self, client):
        """Input buffer feeds GETC."""
        response = client.post("/api/run", json={"words": [0xF020, 0xF021, 0xF025], "input": "w"})
        assert response.json()["output_text"] == "wHALT\n"

    def test_multiple_images(self, client):
        """Extra images load after the primary words."""
        payload = {
            "words": [0x2002, 0xF022, 0xF025, 0x4000],
            "images": [{"origin": 0x4000, "words": [0x6F, 0x6B, 0]}],
        }
        response = client.post("/api/run", json=payload)
        assert response.json()["output_text"] == "okHALT\n"

    def test_initial_memory_hex_keys(self, client):
        """initial_memory accepts x-prefixed hex keys."""
        payload = {
            "words": [0x2001, 0xF025, 0x0000],
            "options": {"initial_memory": {"x3002": 5}},
        }
        body = client.post("/api/run", json=payload).json()
        assert body["final_state"]["r0"] == 5
        assert body["trace_watch"] == [0x3002]

    def test_error_result(self, client):
        """VM errors are reported in the body, not as HTTP errors."""
        response = client.post("/api/run", json={"words": [0xD000]})
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "error"
        assert body["error"]["type"] == "ReservedOpcodeError"

    def test_no_words(self, client):
        response = client.post("/api/run", json={})
        assert response.status_code == 400

    def test_word_out_of_range(self, client):
        response = client.post("/api/run", json={"words": [0x10000]})
        assert response.status_code == 400

    def test_bad_memory_key(self, client):
        payload = {"words": [0xF025], "options": {"initial_memory": {"nope": 1}}}
        response = client.post("/api/run", json=payload)
        assert response.status_code == 400

    def test_max_steps_validated(self, client):
        payload = {"words": [0xF025], "options": {"max_steps": 0}}
        response = client.post("/api/run", json=payload)
        assert response.status_code == 422
