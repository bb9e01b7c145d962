import json
from pathlib import Path
from unittest.mock import patch

import yaml
from click.testing import CliRunner

from crest_openapi.cli import main
from crest_openapi.transform.errors import UnsupportedValueError

FIXTURES = Path(__file__).parent / "fixtures"


def _transform_args(output: Path, *extra: str) -> list[str]:
    return [
        "transform", str(FIXTURES / "users.json"),
        "-e", str(FIXTURES / "common.json"),
        "-o", str(output),
        *extra,
    ]


class TestCliTransform:
    def test_transform_to_json(self, tmp_path):
        output_file = tmp_path / "openapi.json"
        runner = CliRunner()
        result = runner.invoke(main, _transform_args(output_file, "--title", "Users API"))

        assert result.exit_code == 0, result.output
        assert "Registered 1 external descriptor(s)." in result.output
        assert "Built 4 paths and 3 definitions." in result.output
        document = json.loads(output_file.read_text())
        assert document["info"]["title"] == "Users API"
        assert "/users/{userId}" in document["paths"]

    def test_transform_to_yaml_by_suffix(self, tmp_path):
        output_file = tmp_path / "out" / "openapi.yaml"
        runner = CliRunner()
        result = runner.invoke(main, _transform_args(output_file, "--secure"))

        assert result.exit_code == 0, result.output
        document = yaml.safe_load(output_file.read_text())
        assert document["swagger"] == "2.0"
        assert document["schemes"] == ["https"]

    def test_format_overrides_suffix(self, tmp_path):
        output_file = tmp_path / "openapi.txt"
        runner = CliRunner()
        result = runner.invoke(main, _transform_args(output_file, "--format", "json"))

        assert result.exit_code == 0, result.output
        assert json.loads(output_file.read_text())["swagger"] == "2.0"

    def test_options_from_environment(self, tmp_path):
        output_file = tmp_path / "openapi.json"
        runner = CliRunner()
        result = runner.invoke(
            main, _transform_args(output_file),
            env={"CREST_OPENAPI_HOST": "api.example.com", "CREST_OPENAPI_BASE_PATH": "v1"},
        )

        assert result.exit_code == 0, result.output
        document = json.loads(output_file.read_text())
        assert document["host"] == "api.example.com"
        assert document["basePath"] == "/v1"

    def test_missing_external_descriptor_fails(self, tmp_path):
        output_file = tmp_path / "openapi.json"
        runner = CliRunner()
        result = runner.invoke(main, [
            "transform", str(FIXTURES / "users.json"), "-o", str(output_file),
        ])

        assert result.exit_code == 1
        assert "frapi:common" in result.output
        assert not output_file.exists()

    def test_invalid_descriptor_fails(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "transform", str(FIXTURES / "invalid.yaml"), "-o", str(tmp_path / "openapi.json"),
        ])

        assert result.exit_code == 1
        assert "Error:" in result.output

    @patch("crest_openapi.cli.execute")
    def test_transformer_error_is_reported(self, mock_execute, tmp_path):
        mock_execute.side_effect = UnsupportedValueError("Unsupported QueryType: GRAPH")
        runner = CliRunner()
        result = runner.invoke(main, _transform_args(tmp_path / "openapi.json"))

        assert result.exit_code == 1
        assert "Unsupported QueryType: GRAPH" in result.output


    def test_wrongly_typed_schema_keyword_is_reported(self, tmp_path):
        doc_path = tmp_path / "bad.json"
        doc_path.write_text('{"id": "bad", "definitions": {"n": {"type": "integer", "exclusiveMinimum": 5}}}')
        runner = CliRunner()
        result = runner.invoke(main, ["transform", str(doc_path), "-o", str(tmp_path / "openapi.json")])

        assert result.exit_code == 1
        assert "Error: Invalid JSON schema value" in result.output


class TestCliCheck:
    def test_check(self):
        runner = CliRunner()
        result = runner.invoke(main, [
            "check", str(FIXTURES / "users.json"), "-e", str(FIXTURES / "common.json"),
        ])

        assert result.exit_code == 0, result.output
        assert "OK: 4 paths, 3 definitions." in result.output

    def test_check_missing_file(self):
        runner = CliRunner()
        result = runner.invoke(main, ["check", str(FIXTURES / "missing.json")])

        assert result.exit_code == 2
