"""Tests for CLI module."""

import json
from unittest.mock import MagicMock, patch

import pytest

from genmatch.cli import cli_main, load_subject
from genmatch.errors import ConfigurationError
from genmatch.models.results import SearchOutcome, SearchStatus

SUBJECT = {
    "id": "I1",
    "givenNames": "William",
    "familyNames": "Smith",
    "birthDate": "1920-03-15",
    "birthPlace": "Boston, Massachusetts, USA",
}


@pytest.fixture(autouse=True)
def no_log_files():
    """Keep CLI runs from configuring real log sinks."""
    with patch("genmatch.cli.configure_logging") as mock_configure:
        yield mock_configure


@pytest.fixture
def subject_file(tmp_path):
    path = tmp_path / "subject.json"
    path.write_text(json.dumps(SUBJECT), encoding="utf-8")
    return str(path)


class TestCLIBasics:
    """Test help, version and argument handling."""

    def test_cli_help(self, capsys: pytest.CaptureFixture, no_log_files: MagicMock) -> None:
        """Test help command."""
        exit_code = cli_main(["help"])

        assert exit_code == 0
        captured = capsys.readouterr()
        assert "Usage: genmatch" in captured.out
        assert "Commands:" in captured.out
        assert "search" in captured.out
        assert "reject" in captured.out
        no_log_files.assert_not_called()

    def test_cli_no_args(self, capsys: pytest.CaptureFixture) -> None:
        """Test CLI with no arguments shows help."""
        assert cli_main([]) == 0
        assert "Usage: genmatch" in capsys.readouterr().out

    def test_cli_version(self, capsys: pytest.CaptureFixture) -> None:
        """Test version command."""
        assert cli_main(["version"]) == 0
        assert "GenMatch v" in capsys.readouterr().out

    def test_cli_unknown_command(self, capsys: pytest.CaptureFixture) -> None:
        """Test unknown command shows error."""
        assert cli_main(["invalid_command"]) == 1
        assert "Unknown command" in capsys.readouterr().err

    def test_missing_arguments(self, capsys: pytest.CaptureFixture) -> None:
        assert cli_main(["analyze", "subject.json"]) == 1
        assert "needs 2 argument(s)" in capsys.readouterr().err

    def test_missing_file(self, capsys: pytest.CaptureFixture, tmp_path) -> None:
        assert cli_main(["validate", str(tmp_path / "nope.json")]) == 1
        assert "File not found" in capsys.readouterr().err


class TestLoadSubject:
    """Test reading subjects from single-object and dataset files."""

    def test_single_subject(self, subject_file):
        subject = load_subject(subject_file)

        assert subject.id == "I1"
        assert subject.full_name == "William Smith"

    def test_dataset_requires_person_id(self, tmp_path):
        path = tmp_path / "tree.json"
        path.write_text(json.dumps({"individuals": [SUBJECT], "families": []}), encoding="utf-8")

        with pytest.raises(ConfigurationError, match="person id"):
            load_subject(str(path))

    def test_dataset_with_person_id(self, tmp_path):
        path = tmp_path / "tree.json"
        path.write_text(json.dumps({"individuals": [SUBJECT], "families": []}), encoding="utf-8")

        assert load_subject(str(path), "I1").id == "I1"

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            load_subject(str(path))


class TestCLICommands:
    """Test command execution."""

    def test_validate_valid_subject(self, capsys: pytest.CaptureFixture, subject_file) -> None:
        assert cli_main(["validate", subject_file]) == 0
        assert "✓ William Smith" in capsys.readouterr().out

    def test_validate_invalid_subject(self, capsys: pytest.CaptureFixture, tmp_path) -> None:
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({**SUBJECT, "deathDate": "1900"}), encoding="utf-8")

        assert cli_main(["validate", str(path)]) == 1
        assert "invalid_lifespan" in capsys.readouterr().out

    def test_suggest(self, capsys: pytest.CaptureFixture, subject_file) -> None:
        assert cli_main(["suggest", subject_file]) == 0
        assert "Newspaper Research" in capsys.readouterr().out

    @patch("genmatch.cli.ResearchPipeline")
    def test_search(self, mock_pipeline_cls: MagicMock, capsys: pytest.CaptureFixture, subject_file) -> None:
        pipeline = mock_pipeline_cls.from_config.return_value

        async def fake_search(subject):
            return SearchOutcome(status=SearchStatus.ZERO_RESULTS, subject_id=subject.id)

        async def fake_close():
            return None

        pipeline.search.side_effect = fake_search
        pipeline.close.side_effect = fake_close

        assert cli_main(["search", subject_file]) == 0
        assert "zero_results" in capsys.readouterr().out
        pipeline.close.assert_called_once()

    @patch("genmatch.cli.ResearchPipeline")
    def test_reject(self, mock_pipeline_cls: MagicMock, capsys: pytest.CaptureFixture) -> None:
        assert cli_main(["reject", "I1", "LZX1-ABC", "different", "parents"]) == 0

        mock_pipeline_cls.from_config.return_value.reject.assert_called_once_with(
            "I1", "LZX1-ABC", "different parents"
        )
        assert "Rejected LZX1-ABC" in capsys.readouterr().out

    @patch("genmatch.cli.ResearchPipeline")
    def test_rejections_empty(self, mock_pipeline_cls: MagicMock, capsys: pytest.CaptureFixture) -> None:
        mock_pipeline_cls.from_config.return_value.ledger.list_rejections.return_value = []

        assert cli_main(["rejections"]) == 0
        assert "No rejections recorded" in capsys.readouterr().out
