"""Tests for runner.py."""

import sys

from sandboxer.runner import COMMAND_NOT_FOUND, CommandRunner


def _py(code: str) -> list[str]:
    return [sys.executable, "-c", code]


class TestCommandRunner:
    def test_streamed_output_appended(self, tmp_path):
        log = tmp_path / "logs" / "run.log"
        runner = CommandRunner(log)

        result = runner.run(_py("import sys; print('out'); print('err', file=sys.stderr)"))

        assert result.ok
        text = log.read_text()
        assert "out" in text
        assert "err" in text
        assert "[exit 0]" in text

    def test_non_zero_exit(self, tmp_path):
        runner = CommandRunner(tmp_path / "run.log")

        result = runner.run(_py("import sys; sys.exit(3)"))

        assert not result.ok
        assert result.returncode == 3
        assert "[exit 3]" in (tmp_path / "run.log").read_text()

    def test_capture_keeps_stdout_separate(self, tmp_path):
        runner = CommandRunner(tmp_path / "run.log")

        result = runner.run(
            _py("import sys; print('[1, 2]'); print('noise', file=sys.stderr)"),
            capture=True,
        )

        assert result.stdout.strip() == "[1, 2]"
        assert "noise" in (tmp_path / "run.log").read_text()

    def test_secrets_masked(self, tmp_path):
        runner = CommandRunner(tmp_path / "run.log", secrets=["tok-123"])
        runner.add_secret("pw-456")

        runner.run(_py("print('https://tok-123@example.com pw-456')"))

        text = (tmp_path / "run.log").read_text()
        assert "tok-123" not in text
        assert "pw-456" not in text
        assert "https://***@example.com ***" in text

    def test_missing_binary(self, tmp_path):
        runner = CommandRunner(tmp_path / "run.log")

        result = runner.run(["definitely-not-a-real-binary-xyz"])

        assert result.returncode == COMMAND_NOT_FOUND
        assert "command not found" in (tmp_path / "run.log").read_text()

    def test_log_is_append_only(self, tmp_path):
        log = tmp_path / "run.log"
        log.write_text("earlier\n")
        runner = CommandRunner(log)

        runner.section("Fetch")
        runner.write("later")

        text = log.read_text()
        assert text.startswith("earlier\n")
        assert "==== Fetch" in text
        assert text.rstrip().endswith("later")
