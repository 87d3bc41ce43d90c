"""
命令行集成测试

通过 main(argv) 运行完整子命令，检查输出文件与退出码
"""

import json

import pytest

from swiftloc import cli
from swiftloc.cli import EXIT_FAILURE, EXIT_OK, EXIT_QUALITY_FAILED, main
from swiftloc.core import catalog as xliff
from swiftloc.core.reviewer import OllamaClient
from swiftloc.utils.logger import get_logger


@pytest.fixture
def translated_xliff(tmp_path, make_catalog):
    path = tmp_path / "Localizable.xliff"
    xliff.write(make_catalog(
        ("app_title", "app_title", "Titre", "Main window title"),
        ("home_greeting", "Hello, %@!", "Bonjour, %@ !", "Greeting"),
        ("home_count", "home_count", None, None),
    ), path)
    return path


class TestExtractCommand:

    def test_creates_catalog(self, tmp_path, swift_project):
        out = tmp_path / "build" / "Localizable.xliff"

        code = main(["extract", "-s", str(swift_project), "-o", str(out), "--target-language", "de"])

        assert code == EXIT_OK
        catalog = xliff.read(out)
        assert catalog.target_language == "de"
        assert [u.id for u in catalog.files[0].units] == ["app_title", "home_greeting", "home_count"]
        assert catalog.files[0].units[1].source == "Hello, %@!"

    def test_missing_source_fails(self, tmp_path):
        out = tmp_path / "out.xliff"

        assert main(["extract", "-s", str(tmp_path / "nope"), "-o", str(out)]) == EXIT_FAILURE
        assert not out.exists()

    def test_merge_keeps_translations(self, swift_project, translated_xliff):
        (swift_project / "Extra.swift").write_text('String(localized: "extra")\n', encoding="utf-8")

        code = main(["extract", "-s", str(swift_project), "-o", str(translated_xliff), "--merge"])

        assert code == EXIT_OK
        units = xliff.read(translated_xliff).files[0].units
        assert [u.id for u in units] == ["app_title", "home_greeting", "home_count", "extra"]
        assert units[1].target == "Bonjour, %@ !"

    def test_overwrite_without_merge(self, swift_project, translated_xliff):
        assert main(["extract", "-s", str(swift_project), "-o", str(translated_xliff)]) == EXIT_OK

        assert all(u.target is None for u in xliff.read(translated_xliff).files[0].units)

    def test_json_output_is_clean(self, tmp_path, swift_project, capsys):
        out = tmp_path / "out.xliff"

        main(["extract", "-s", str(swift_project), "-o", str(out), "--json"])

        data = json.loads(capsys.readouterr().out)
        assert [s["key"] for s in data["strings"]] == ["app_title", "home_greeting", "home_count"]
        assert len(data["sourceFiles"]) == 2

    def test_config_file_supplies_languages(self, tmp_path, swift_project):
        (tmp_path / "swiftloc.json").write_text('{"target_language": "pt"}', encoding="utf-8")
        out = tmp_path / "out.xliff"

        main(["extract", "-s", str(swift_project), "-o", str(out)])

        assert xliff.read(out).target_language == "pt"


class TestValidateCommand:

    def test_clean_catalog_passes(self, translated_xliff, swift_project, capsys):
        code = main(["validate", "-x", str(translated_xliff), "-s", str(swift_project), "--all"])

        assert code == EXIT_OK
        assert "No validation errors found." in capsys.readouterr().out

    def test_placeholder_mismatch_fails(self, tmp_path, make_catalog, capsys):
        path = tmp_path / "bad.xliff"
        xliff.write(make_catalog(("count", "You have %d items", "Vous avez %@ articles", None)), path)

        code = main(["validate", "-x", str(path), "--placeholders"])

        assert code == EXIT_FAILURE
        out = capsys.readouterr().out
        assert "Placeholder Errors (1):" in out
        assert "Type mismatch: source has [%d], target has [%@]" in out

    def test_missing_keys_reported_with_location(self, tmp_path, make_catalog, swift_project, capsys):
        path = tmp_path / "partial.xliff"
        xliff.write(make_catalog(("app_title", "app_title", None, None)), path)

        code = main(["validate", "-x", str(path), "-s", str(swift_project), "--missing-keys", "--json"])

        assert code == EXIT_FAILURE
        data = json.loads(capsys.readouterr().out)
        assert [e["key"] for e in data["missingKeys"]] == ["home_greeting", "home_count"]
        assert data["missingKeys"][0]["line"] == 3

    def test_missing_keys_without_source_only_warns(self, translated_xliff):
        assert main(["validate", "-x", str(translated_xliff), "--missing-keys"]) == EXIT_OK

    def test_missing_xliff_fails(self, tmp_path):
        assert main(["validate", "-x", str(tmp_path / "none.xliff"), "--all"]) == EXIT_FAILURE

    def test_malformed_xliff_fails(self, tmp_path):
        path = tmp_path / "broken.xliff"
        path.write_text("<xliff><file>", encoding="utf-8")

        assert main(["validate", "-x", str(path), "--placeholders"]) == EXIT_FAILURE

    def test_quality_with_unreachable_service(self, translated_xliff, monkeypatch, capsys):
        monkeypatch.setattr(OllamaClient, "is_available", lambda self: False)

        code = main(["validate", "-x", str(translated_xliff), "--placeholders", "--quality"])

        assert code == EXIT_QUALITY_FAILED
        # 已完成的检查结果仍然输出
        assert "Validation Report" in capsys.readouterr().out

    def test_quality_flagged_translation_fails(self, translated_xliff, monkeypatch, capsys):
        responses = iter([
            '{"meaning": 5, "tone": 5, "completeness": 5, "issues": []}',
            '{"meaning": 2, "tone": 4, "completeness": 4, "issues": ["Lost the name"]}',
        ])
        monkeypatch.setattr(OllamaClient, "is_available", lambda self: True)
        monkeypatch.setattr(OllamaClient, "generate", lambda self, prompt, model: next(responses))

        code = main(["validate", "-x", str(translated_xliff), "--quality", "--model", "tiny", "--json"])

        assert code == EXIT_FAILURE
        data = json.loads(capsys.readouterr().out)
        assert data["quality"]["model"] == "tiny"
        assert data["quality"]["flaggedTranslations"] == 1
        assert data["validation"]["missingKeys"] == []


class TestReportCommand:

    def test_text_report(self, translated_xliff, capsys):
        assert main(["report", "-x", str(translated_xliff)]) == EXIT_OK

        out = capsys.readouterr().out
        assert "Total Strings: 3" in out
        assert "Coverage: 66.7%" in out

    def test_json_report_to_file(self, tmp_path, translated_xliff):
        out = tmp_path / "reports" / "coverage.json"

        assert main(["report", "-x", str(translated_xliff), "-f", "json", "-o", str(out)]) == EXIT_OK

        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["translatedStrings"] == 2
        assert data["untranslatedStrings"] == 1

    def test_missing_xliff(self, tmp_path):
        assert main(["report", "-x", str(tmp_path / "none.xliff")]) == EXIT_FAILURE


class TestMain:

    def test_no_command_prints_help(self, capsys):
        assert main([]) == EXIT_OK
        assert "usage: swiftloc" in capsys.readouterr().out

    def test_missing_config_file_fails(self, tmp_path):
        assert main(["--config", str(tmp_path / "nope.json"), "report", "-x", "x.xliff"]) == EXIT_FAILURE

    def test_command_errors_go_through_configured_logger(self, tmp_path, caplog):
        main(["report", "-x", str(tmp_path / "none.xliff")])

        records = [r for r in caplog.records if "XLIFF file not found" in r.getMessage()]
        assert [r.name for r in records] == ["swiftloc"]
        assert get_logger().logger.name == "swiftloc"

    def test_unexpected_error_is_logged_and_raised(self, translated_xliff, monkeypatch, caplog):
        def boom(args, config):
            raise RuntimeError("catalog exploded")

        monkeypatch.setitem(cli.COMMANDS, "report", boom)

        with pytest.raises(RuntimeError):
            main(["report", "-x", str(translated_xliff)])

        records = [r for r in caplog.records if "unexpected error" in r.getMessage()]
        assert records and records[0].exc_info is not None
