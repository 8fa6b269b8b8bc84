"""Tests for the command-line client."""

import json

import httpx
import pytest

from rezkyoo.cli import MAX_POLLS, RezkyooCLI


def make_cli(handler):
    client = httpx.Client(base_url="http://server.test", transport=httpx.MockTransport(handler))
    return RezkyooCLI(client=client)


class TestRezkyooCLI:
    """Tests for RezkyooCLI against a mock server."""

    def test_search_returns_batch_id(self, config):
        requests = []

        def handler(request):
            requests.append((request.url.path, json.loads(request.content)))
            return httpx.Response(200, json={"ok": True, "batchId": "b1"})

        cli = make_cli(handler)

        batch_id = cli.search("pizza", "Chicago", party_size=2)

        path, body = requests[0]
        assert batch_id == "b1"
        assert path == "/api/mcp/find-restaurants"
        assert body["craving_text"] == "pizza"
        assert body["party_size"] == 2
        assert body["client_id"].startswith("cli-")
        assert "date" not in body

    def test_error_response_raises(self, config):
        cli = make_cli(lambda r: httpx.Response(502, json={"ok": False, "error": "Search failed"}))

        with pytest.raises(RuntimeError, match="Search failed"):
            cli.search("pizza", "Chicago")

    def test_follow_until_completed(self, config, capsys):
        replies = iter(
            [
                {"ok": True, "status": "calling", "items": [{"id": "r1", "name": "Luigi's", "status": "pending"}]},
                {"ok": True, "status": "calling", "items": [{"id": "r1", "name": "Luigi's", "status": "pending"}]},
                {"ok": True, "status": "completed", "items": [{"id": "r1", "name": "Luigi's", "status": "completed"}]},
            ]
        )
        sleeps = []
        cli = make_cli(lambda r: httpx.Response(200, json=next(replies)))

        final = cli.follow("b1", sleep=sleeps.append)

        output = capsys.readouterr().out
        assert final["status"] == "completed"
        assert len(sleeps) == 2
        assert output.count("Luigi's: pending") == 1
        assert "Luigi's: completed" in output

    def test_follow_gives_up(self, config):
        cli = make_cli(lambda r: httpx.Response(200, json={"ok": True, "status": "calling", "items": []}))
        sleeps = []

        final = cli.follow("b1", sleep=sleeps.append)

        assert final["status"] == "calling"
        assert len(sleeps) == MAX_POLLS

    def test_print_results(self, capsys):
        RezkyooCLI.print_results(
            {
                "items": [
                    {
                        "id": "r1",
                        "name": "Luigi's",
                        "status": "completed",
                        "result": {"outcome": "not_available", "alt_time": "6:30 PM"},
                    },
                    {"id": "r2", "name": "Diner", "status": "skipped", "result": {"outcome": "skipped"}},
                ]
            }
        )

        output = capsys.readouterr().out
        assert "Luigi's: not_available (alternative: 6:30 PM)" in output
        assert "Diner: skipped" in output
