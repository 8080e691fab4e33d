"""Tests for the JSON, YAML and terminal reporters."""

import json

import yaml
from rich.console import Console

from gitgutter.config.schema import GitGutterConfig
from gitgutter.engine.conflicts import parse_conflicts
from gitgutter.engine.signs import project
from gitgutter.git.diff_parser import parse_diff
from gitgutter.git.models import SignSummary
from gitgutter.output import json_report, terminal


def _make_data(sample_diff, conflicts=None):
    hunks = parse_diff(sample_diff)
    return json_report.to_dict("src/app.py", hunks, project(hunks), conflicts)


def _capture() -> Console:
    return Console(record=True, width=100, color_system=None)


class TestJsonReport:
    def test_valid_json(self, sample_diff):
        data = json.loads(json_report.render(_make_data(sample_diff)))
        assert data["version"] == "1.0"
        assert data["file"] == "src/app.py"
        assert data["status"] == "+2 ~1 -2"
        assert (data["added"], data["changed"], data["removed"]) == (2, 1, 2)

    def test_hunks_and_signs(self, sample_diff):
        data = json.loads(json_report.render(_make_data(sample_diff)))
        assert [h["type"] for h in data["hunks"]] == ["change", "add", "delete"]
        assert data["hunks"][1]["added"] == {"start": 5, "count": 2}
        assert data["hunks"][0]["lines"] == ["-two", "+TWO"]
        assert data["signs"][0] == {"line": 2, "kind": "change"}

    def test_conflicts(self, sample_diff, diff3_conflict_lines):
        data = _make_data(sample_diff, parse_conflicts(diff3_conflict_lines))
        (conflict,) = json.loads(json_report.render(data))["conflicts"]
        assert conflict["common"] == 3
        assert conflict["regions"] == {"current": [2, 2], "base": [4, 4], "incoming": [6, 6]}

    def test_two_way_conflict_has_no_common(self, sample_diff, conflict_lines):
        (conflict,) = _make_data(sample_diff, parse_conflicts(conflict_lines))["conflicts"]
        assert "common" not in conflict
        assert conflict["regions"]["base"] is None

    def test_empty_result(self):
        data = json.loads(json_report.render(json_report.to_dict("a.txt", [], SignSummary())))
        assert data["hunks"] == []
        assert data["status"] == ""
        assert data["conflicts"] == []


class TestYamlReport:
    def test_round_trips_through_yaml(self, sample_diff):
        data = _make_data(sample_diff)
        assert yaml.safe_load(json_report.render_yaml(data)) == data

    def test_key_order_kept(self, sample_diff):
        first_line = json_report.render_yaml(_make_data(sample_diff)).splitlines()[0]
        assert first_line.startswith("version:")


class TestTerminalReport:
    def test_signs_table(self, sample_diff):
        console = _capture()
        lines = ["one", "TWO", "three", "four", "new a", "new b", "five", "six"]
        summary = project(parse_diff(sample_diff))
        terminal.render_signs(
            "src/app.py", summary, lines, GitGutterConfig().sign_texts(), console=console,
        )
        out = console.export_text()
        assert "TWO" in out
        assert "new b" in out
        assert "three" not in out
        assert "+2 ~1 -2" in out

    def test_markup_in_buffer_is_literal(self, single_change_diff):
        console = _capture()
        summary = project(parse_diff(single_change_diff))
        terminal.render_signs(
            "a.txt", summary, ["", "", "[bold]x[/bold]"], GitGutterConfig().sign_texts(),
            show_summary=False, console=console,
        )
        assert "[bold]x[/bold]" in console.export_text()

    def test_no_changes(self):
        console = _capture()
        terminal.render_signs("a.txt", SignSummary(), [], {}, console=console)
        assert "no changes" in console.export_text()

    def test_chunk_preview(self, single_change_diff):
        console = _capture()
        terminal.render_chunk(parse_diff(single_change_diff)[0], console=console)
        assert console.export_text().splitlines() == ["@@ -3,1 +3,1 @@", "-old", "+new"]

    def test_conflict_table(self, diff3_conflict_lines):
        console = _capture()
        terminal.render_conflicts("m.txt", parse_conflicts(diff3_conflict_lines), console=console)
        out = console.export_text()
        assert "feature/x" in out
        assert "1-7" in out

    def test_no_conflicts(self):
        console = _capture()
        terminal.render_conflicts("m.txt", [], console=console)
        assert "No conflicts" in console.export_text()
