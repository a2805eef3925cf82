# tests/test_report_and_cli.py
"""
Tests for report rendering and the ``arc_tailcall`` command-line driver.
"""

import io
import json
import logging

import pytest

from arc_tailcall import analyze
from arc_tailcall.main import EXIT_BLOCKED, EXIT_INFRA, EXIT_OK, main
from arc_tailcall.report import render_json, render_text, summarize, write_reports

from conftest import V6_ACCUMULATOR_ACCESSOR, V7_ACCUMULATOR_IVAR, all_variants_module


@pytest.fixture
def reports(scenario_a, scenario_c, scenario_d):
    return [analyze(scenario_a), analyze(scenario_c), analyze(scenario_d)]


class TestRendering:

    def test_text_header(self, scenario_c):
        text = render_text(analyze(scenario_c))
        header, detail = text.splitlines()
        assert header == "length: BlockedByCleanup (2 paths, 1 recursive call)"
        assert detail.startswith("  path 1 [!(!node)]: BlockedByCleanup at 'release(node.next)'")

    def test_text_override_marker(self, scenario_d):
        header = render_text(analyze(scenario_d)).splitlines()[0]
        assert header.endswith("[BlockedByPotentialOverride]")

    def test_summary(self, reports):
        assert summarize(reports) == {
            "TailCallOptimizable": 2,
            "BlockedByCleanup": 1,
            "BlockedByNonTailPosition": 0,
            "BlockedByPotentialOverride": 1,
        }

    def test_json(self, reports):
        doc = json.loads(render_json(reports))
        assert [f["classification"] for f in doc["functions"]] == [
            "TailCallOptimizable", "BlockedByCleanup", "TailCallOptimizable",
        ]
        assert doc["summary"]["BlockedByCleanup"] == 1

    def test_write_text(self, reports):
        out = io.StringIO()
        write_reports(reports, out)
        assert out.getvalue().count("length:") == 3
        assert out.getvalue().endswith("\n")

    def test_write_nothing(self):
        out = io.StringIO()
        write_reports([], out)
        assert out.getvalue() == ""

    def test_unknown_format(self, reports):
        with pytest.raises(ValueError):
            write_reports(reports, io.StringIO(), fmt="xml")


class TestCli:

    def _write(self, tmp_path, name, text):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)

    def test_all_optimizable(self, tmp_path, capsys):
        src = self._write(tmp_path, "v7.sexp", V7_ACCUMULATOR_IVAR)
        assert main(["classify", src]) == EXIT_OK
        out = capsys.readouterr().out
        assert "lengthOfListWithHead_v7: TailCallOptimizable" in out

    def test_blocked(self, tmp_path, capsys):
        src = self._write(tmp_path, "v6.sexp", V6_ACCUMULATOR_ACCESSOR)
        assert main(["classify", src]) == EXIT_BLOCKED
        assert "BlockedByCleanup" in capsys.readouterr().out

    def test_json_output(self, tmp_path, capsys):
        src = self._write(tmp_path, "all.sexp", all_variants_module())
        assert main(["classify", src, "--format", "json", "-j", "2"]) == EXIT_BLOCKED
        doc = json.loads(capsys.readouterr().out)
        assert len(doc["functions"]) == 8
        assert doc["summary"]["TailCallOptimizable"] == 4

    def test_missing_file(self, tmp_path):
        assert main(["classify", str(tmp_path / "nope.sexp")]) == EXIT_INFRA

    def test_malformed_body(self, tmp_path, capsys):
        src = self._write(tmp_path, "bad.sexp", "(function f (return) (stmt dead))")
        assert main(["classify", src]) == EXIT_INFRA
        assert "TCO-1001" in capsys.readouterr().err

    def test_syntax_error(self, tmp_path):
        src = self._write(tmp_path, "bad.sexp", "(function f (return)")
        assert main(["classify", src]) == EXIT_INFRA

    def test_invalid_max_paths(self, tmp_path):
        src = self._write(tmp_path, "v7.sexp", V7_ACCUMULATOR_IVAR)
        assert main(["classify", src, "--max-paths", "0"]) == EXIT_INFRA

    def test_paths_command(self, tmp_path, capsys):
        src = self._write(tmp_path, "v6.sexp", V6_ACCUMULATOR_ACCESSOR)
        assert main(["paths", src]) == EXIT_OK
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "lengthOfListWithHead_v6:"
        assert lines[1].startswith("  0: ControlPath[(!node): ")
        assert lines[2].startswith("  1: ControlPath[!(!node): recurse(node.next, count + 1)")

    def test_classify_is_the_default_command(self, tmp_path, capsys):
        src = self._write(tmp_path, "v7.sexp", V7_ACCUMULATOR_IVAR)
        assert main([src]) == EXIT_OK
        assert "TailCallOptimizable" in capsys.readouterr().out

    def test_default_command_with_options_first(self, tmp_path, capsys):
        src = self._write(tmp_path, "v6.sexp", V6_ACCUMULATOR_ACCESSOR)
        assert main(["--max-paths", "16", src, "--format", "json"]) == EXIT_BLOCKED
        doc = json.loads(capsys.readouterr().out)
        assert doc["summary"]["BlockedByCleanup"] == 1

    @pytest.mark.parametrize("argv", [
        ["-v", "classify", "{src}"],
        ["classify", "{src}", "-v"],
        ["-v", "{src}"],
    ])
    def test_verbose_before_or_after_command(self, tmp_path, caplog, argv):
        src = self._write(tmp_path, "v7.sexp", V7_ACCUMULATOR_IVAR)
        with caplog.at_level(logging.INFO, logger="arc_tailcall"):
            assert main([a.format(src=src) for a in argv]) == EXIT_OK
        assert any("1 function(s)" in r.getMessage() for r in caplog.records)

    def test_no_command(self, capsys):
        assert main([]) == EXIT_INFRA
