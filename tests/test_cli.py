"""Tests for the pd-onboard CLI.

Directory calls go through a MockTransport-backed client; no network.
"""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from helpers import full_values, make_entities, make_sync_client, paged_handler, tracked_values
from pd_onboard.cli import cli
from pd_onboard.codecs import CsvCodec
from pd_onboard.schema import COLUMNS


def _write_csv(path, rows):
    data = CsvCodec().encode(COLUMNS, rows)
    path.write_bytes(data)
    return path


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def fake_client(monkeypatch):
    """Replace PagerDutyClient with a MockTransport-backed one; returns the request log."""
    calls = []
    directory = {
        "teams": make_entities("teams", 120),
        "users": make_entities("users", 2),
        "services": make_entities("services", 3),
    }

    def handler(request):
        resource = request.url.path.strip("/")
        return paged_handler(resource, directory.get(resource, []), calls)(request)

    def factory(**kwargs):
        return make_sync_client(handler, api_token=kwargs.get("api_token"), page_size=kwargs.get("page_size", 100))

    monkeypatch.setattr("pd_onboard.client.PagerDutyClient", factory)
    return calls


class TestFetchCommand:
    def test_lists_all_teams(self, runner, fake_client, monkeypatch):
        monkeypatch.setenv("PAGERDUTY_API_TOKEN", "t")
        result = runner.invoke(cli, ["fetch", "teams"])
        assert result.exit_code == 0, result.output
        assert "PT0000\tteam-0" in result.output
        assert "PT0119\tteam-119" in result.output
        assert len(fake_client) == 2

    def test_json_output_and_filters(self, runner, fake_client, monkeypatch):
        monkeypatch.setenv("PAGERDUTY_API_TOKEN", "t")
        result = runner.invoke(cli, ["fetch", "users", "--json", "--query", "ada", "--team-id", "PT1"])
        assert result.exit_code == 0, result.output
        start = result.output.index("[")
        payload = json.loads(result.output[start:result.output.rindex("]") + 1])
        assert [u["id"] for u in payload] == ["PU0000", "PU0001"]
        assert fake_client[0].url.params["query"] == "ada"
        assert fake_client[0].url.params.get_list("team_ids[]") == ["PT1"]

    def test_services_request_teams_and_escalation_policies(self, runner, fake_client, monkeypatch):
        monkeypatch.setenv("PAGERDUTY_API_TOKEN", "t")
        result = runner.invoke(cli, ["fetch", "services", "--query", "pay"])
        assert result.exit_code == 0, result.output
        assert "PS0002" in result.output
        params = fake_client[0].url.params
        assert params["include[]"] == "teams,escalation_policies"
        assert params["query"] == "pay"

    def test_missing_token(self, runner, fake_client, monkeypatch):
        monkeypatch.delenv("PAGERDUTY_API_TOKEN", raising=False)
        result = runner.invoke(cli, ["fetch", "teams"])
        assert result.exit_code == 2

    def test_unknown_resource(self, runner):
        result = runner.invoke(cli, ["fetch", "incidents"])
        assert result.exit_code != 0


class TestProgressCommand:
    def test_summary(self, runner, tmp_path):
        path = _write_csv(tmp_path / "services.csv", [
            full_values(mp_service_name="A"), {"prime_vp": "x"}, tracked_values(2),
        ])
        result = runner.invoke(cli, ["progress", str(path), "--rows"])
        assert result.exit_code == 0, result.output
        assert "Total:       3" in result.output
        assert "Completed:   1" in result.output
        assert "Average:     50%" in result.output
        assert "100%  A" in result.output

    def test_dataset_path_from_config(self, runner, tmp_path):
        data = _write_csv(tmp_path / "services.csv", [tracked_values(4)])
        cfg = tmp_path / "cfg.yaml"
        cfg.write_text(f"dataset:\n  path: {data}\n")
        result = runner.invoke(cli, ["progress", "--config", str(cfg)])
        assert result.exit_code == 0, result.output
        assert "Completed:   1" in result.output

    def test_unreadable_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["progress", str(tmp_path / "missing.xlsx")])
        assert result.exit_code == 1


class TestValidateCommand:
    def test_clean(self, runner, tmp_path):
        path = _write_csv(tmp_path / "services.csv", [full_values()])
        result = runner.invoke(cli, ["validate", str(path)])
        assert result.exit_code == 0
        assert "no issues" in result.output

    def test_issues_exit_1(self, runner, tmp_path):
        path = _write_csv(tmp_path / "services.csv", [full_values(mp_service_name="", user_acknowledge="perhaps")])
        result = runner.invoke(cli, ["validate", str(path)])
        assert result.exit_code == 1
        assert "Row 1: Missing service name" in result.output
        assert "user_acknowledge" in result.output
