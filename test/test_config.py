"""Tests for configuration and standard parsing."""
import pytest

from core.config import Config, OutputFormat
from core.standards import KNOWN_STANDARDS, LOWEST_STANDARD, parse_standard, standard_label


class TestStandards:
    @pytest.mark.parametrize("text", ["23", "c++23", "C++23", "cxx23", " cpp23 "])
    def test_parse(self, text):
        assert parse_standard(text) == 23

    @pytest.mark.parametrize("text", ["17", "c++26", "latest", ""])
    def test_unknown(self, text):
        with pytest.raises(ValueError, match="Unknown standard"):
            parse_standard(text)

    def test_known(self):
        assert KNOWN_STANDARDS == (20, 23)
        assert LOWEST_STANDARD == 20
        assert standard_label(23) == "C++23"


class TestOutputFormat:
    def test_aliases(self):
        assert OutputFormat.from_string("json") == OutputFormat.MACHINE
        assert OutputFormat.from_string("text") == OutputFormat.HUMAN
        assert OutputFormat.from_string(" Machine ") == OutputFormat.MACHINE

    def test_unknown(self):
        with pytest.raises(ValueError):
            OutputFormat.from_string("xml")


class TestConfig:
    def test_defaults(self):
        config = Config.from_env({})
        assert config.floor_standard == 20
        assert config.output_format == OutputFormat.HUMAN
        assert config.fail_on_unknown is False
        assert config.jobs >= 1
        assert config.disabled_features == ()

    def test_from_env(self):
        config = Config.from_env(
            {
                "STDGATE_FLOOR": "c++23",
                "STDGATE_FORMAT": "machine",
                "STDGATE_FAIL_ON_UNKNOWN": "yes",
                "STDGATE_JOBS": "0",
                "STDGATE_ENCODING": "latin-1",
                "STDGATE_DISABLE": "size-literal-suffix, warning-directive,",
            }
        )
        assert config.floor_standard == 23
        assert config.output_format == OutputFormat.MACHINE
        assert config.fail_on_unknown is True
        assert config.jobs == 1
        assert config.encoding == "latin-1"
        assert config.disabled_features == ("size-literal-suffix", "warning-directive")

    def test_bad_jobs(self):
        with pytest.raises(ValueError, match="STDGATE_JOBS"):
            Config.from_env({"STDGATE_JOBS": "many"})

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("STDGATE_FLOOR", "23")
        assert Config.from_env().floor_standard == 23
