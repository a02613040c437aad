"""Tests for the prompt-manager command line."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from prompt_manager.cli import cli

pytestmark = pytest.mark.unit


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def populated_dir(prompts_dir: Path) -> Path:
    (prompts_dir / "common").mkdir()
    (prompts_dir / "common" / "header.txt").write_text("Header\n")
    (prompts_dir / "greeting.txt").write_text(
        "# greeting prompt\n//include common/header.txt\nBody [X]\n__END__\nnotes"
    )
    (prompts_dir / "greeting.json").write_text(json.dumps({"[X]": ["old", "ok"]}))
    (prompts_dir / "calc.txt").write_text("Total: <%= 2 * 3 %> for $PM_CLI_USER")
    return prompts_dir


def invoke(runner: CliRunner, prompts_dir: Path, *args: str, **kwargs):
    return runner.invoke(cli, ["--prompts-dir", str(prompts_dir), *args], obj={}, **kwargs)


class TestCli:
    def test_help(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("render", "show", "keywords", "list", "search"):
            assert command in result.output

    def test_missing_prompts_dir(self, runner: CliRunner, temp_dir: Path) -> None:
        result = invoke(runner, temp_dir / "missing", "list")
        assert result.exit_code == 1
        assert "not a directory" in result.output


class TestRenderCommand:
    def test_render_saved_values(self, runner: CliRunner, populated_dir: Path) -> None:
        result = invoke(runner, populated_dir, "render", "greeting")
        assert result.exit_code == 0
        assert result.output == "Header\nBody ok\n"

    def test_render_with_param(self, runner: CliRunner, populated_dir: Path) -> None:
        result = invoke(runner, populated_dir, "render", "greeting", "-p", "[X]=fresh")
        assert result.exit_code == 0
        assert "Body fresh" in result.output

        saved = json.loads((populated_dir / "greeting.json").read_text())
        assert saved == {"[X]": ["old", "ok"]}

    def test_render_and_save(self, runner: CliRunner, populated_dir: Path) -> None:
        result = invoke(runner, populated_dir, "render", "greeting", "-p", "[X]=fresh", "--save")
        assert result.exit_code == 0

        saved = json.loads((populated_dir / "greeting.json").read_text())
        assert saved == {"[X]": ["old", "ok", "fresh"]}

    def test_expressions_and_env(
        self, runner: CliRunner, populated_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PM_CLI_USER", "ann")
        result = invoke(runner, populated_dir, "render", "calc", "--expressions", "--env")
        assert result.exit_code == 0
        assert result.output == "Total: 6 for ann\n"

    def test_unresolved_reported(self, runner: CliRunner, prompts_dir: Path) -> None:
        (prompts_dir / "hi.txt").write_text("Hi [UNSET]")
        result = invoke(runner, prompts_dir, "render", "hi")
        assert result.exit_code == 0
        assert "Hi [UNSET]" in result.output
        assert "Unresolved keywords: [UNSET]" in result.output

    def test_strict_fails(self, runner: CliRunner, prompts_dir: Path) -> None:
        (prompts_dir / "hi.txt").write_text("Hi [UNSET]")
        result = invoke(runner, prompts_dir, "render", "hi", "--strict")
        assert result.exit_code == 1
        assert "Missing values for: [UNSET]" in result.output

    def test_bad_param(self, runner: CliRunner, populated_dir: Path) -> None:
        result = invoke(runner, populated_dir, "render", "greeting", "-p", "novalue")
        assert result.exit_code == 2
        assert "TOKEN=VALUE" in result.output

    def test_missing_prompt(self, runner: CliRunner, prompts_dir: Path) -> None:
        result = invoke(runner, prompts_dir, "render", "nope")
        assert result.exit_code == 1
        assert "Prompt not found" in result.output

    def test_cycle(self, runner: CliRunner, prompts_dir: Path) -> None:
        (prompts_dir / "a.txt").write_text("//include b")
        (prompts_dir / "b.txt").write_text("//include a")
        result = invoke(runner, prompts_dir, "render", "a")
        assert result.exit_code == 1
        assert "a -> b -> a" in result.output


class TestOtherCommands:
    def test_show(self, runner: CliRunner, populated_dir: Path) -> None:
        result = invoke(runner, populated_dir, "show", "greeting")
        assert result.exit_code == 0
        assert result.output.startswith("# greeting prompt\n")
        assert "notes" in result.output

    def test_keywords(self, runner: CliRunner, populated_dir: Path) -> None:
        (populated_dir / "mixed.txt").write_text("[X] and [Y]")
        (populated_dir / "mixed.json").write_text(json.dumps({"[X]": ["one", "two"]}))

        result = invoke(runner, populated_dir, "keywords", "mixed")

        assert result.exit_code == 0
        assert result.output == "[X] = two\n[Y] (no value)\n"

    def test_list(self, runner: CliRunner, populated_dir: Path) -> None:
        result = invoke(runner, populated_dir, "list")
        assert result.exit_code == 0
        assert result.output.split() == ["calc", "common/header", "greeting"]

    def test_search(self, runner: CliRunner, populated_dir: Path) -> None:
        result = invoke(runner, populated_dir, "search", "HEADER")
        assert result.exit_code == 0
        assert result.output.split() == ["common/header", "greeting"]

    def test_config_file(self, runner: CliRunner, populated_dir: Path, temp_dir: Path) -> None:
        config_file = temp_dir / "config.yaml"
        config_file.write_text("render:\n  evaluate_expressions: true\n")

        result = runner.invoke(
            cli,
            ["--config", str(config_file), "--prompts-dir", str(populated_dir), "render", "calc"],
            obj={},
        )

        assert result.exit_code == 0
        assert result.output.startswith("Total: 6 for ")
