"""End-to-end tests for the command line entry point."""
import json

import pytest

from main import cli

CPP23 = "auto n = 42uz;\n"
CPP20 = "int main() { return 0; }\n"


@pytest.fixture
def cpp23_file(tmp_path):
    path = tmp_path / "new.cpp"
    path.write_text(CPP23, encoding="utf-8")
    return str(path)


@pytest.fixture
def cpp20_file(tmp_path):
    path = tmp_path / "old.cpp"
    path.write_text(CPP20, encoding="utf-8")
    return str(path)


class TestCli:
    def test_list_features(self, capsys):
        assert cli(["--list-features"]) == 0
        out = capsys.readouterr().out
        assert "size-literal-suffix" in out
        assert len(out.splitlines()) == 22

    def test_violation(self, cpp23_file, capsys):
        assert cli([cpp23_file]) == 1
        assert "size-literal-suffix" in capsys.readouterr().out

    def test_clean_file(self, cpp20_file):
        assert cli([cpp20_file]) == 0

    def test_missing_path(self, tmp_path):
        assert cli([str(tmp_path / "missing.cpp")]) == 2

    def test_failure_wins_over_violation(self, cpp23_file, tmp_path):
        assert cli([cpp23_file, str(tmp_path / "missing.cpp")]) == 2

    def test_machine_output(self, cpp23_file, capsys):
        assert cli(["-o", "json", cpp23_file]) == 1
        data = json.loads(capsys.readouterr().out)
        assert data["summary"]["requiredStandard"] == 23
        assert [r["featureId"] for r in data["records"]] == ["size-literal-suffix"]

    def test_floor(self, cpp23_file):
        assert cli(["--floor", "c++23", cpp23_file]) == 0

    def test_bad_floor(self, cpp23_file):
        with pytest.raises(SystemExit) as exc_info:
            cli(["--floor", "c++17", cpp23_file])
        assert exc_info.value.code == 2

    def test_disable(self, cpp23_file):
        assert cli(["--disable", "size-literal-suffix", cpp23_file]) == 0

    def test_disable_unknown_feature(self, cpp23_file):
        assert cli(["--disable", "nope", cpp23_file]) == 2

    def test_no_paths(self):
        with pytest.raises(SystemExit) as exc_info:
            cli([])
        assert exc_info.value.code == 2

    def test_output_file(self, cpp23_file, tmp_path, capsys):
        target = tmp_path / "report.json"
        assert cli(["-o", "machine", "-O", str(target), cpp23_file]) == 1
        printed = capsys.readouterr().out
        assert json.loads(target.read_text(encoding="utf-8")) == json.loads(printed)

    def test_directory(self, tmp_path, cpp23_file, cpp20_file, capsys):
        assert cli(["-o", "json", "-j", "2", str(tmp_path)]) == 1
        data = json.loads(capsys.readouterr().out)
        assert [f["file"] for f in data["files"]] == sorted([cpp23_file, cpp20_file])

    def test_env_floor(self, cpp23_file, monkeypatch):
        monkeypatch.setenv("STDGATE_FLOOR", "23")
        assert cli([cpp23_file]) == 0

    def test_fail_on_unknown(self, tmp_path):
        path = tmp_path / "bad.cpp"
        path.write_text('const char* s = "abc;\nint y;', encoding="utf-8")
        assert cli([str(path)]) == 0
        assert cli(["--fail-on-unknown", str(path)]) == 1
