import asyncio
import json
import logging

import pytest

import main


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Detach the console and file handlers the CLI installs on the root logger."""
    root = logging.getLogger()
    before, level = set(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in before and type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


class TestParseArgs:
    def test_defaults(self):
        args = main.parse_args(["rain on glass"])
        assert args.prompt == "rain on glass"
        assert args.energy == 0.5
        assert args.generations == 5
        assert args.temperature == 0.5
        assert not args.use_ai

    def test_emotion_flags(self):
        args = main.parse_args(["x", "--chaos", "0.9", "--darkness", "0.1", "-n", "2"])
        assert args.chaos == 0.9
        assert args.darkness == 0.1
        assert args.generations == 2


class TestRun:
    def test_writes_outputs(self, tmp_path, capsys):
        asyncio.run(
            main.main(["rain on glass", "--seed", "3", "-n", "2", "--feedback", "darker", "--output-dir", str(tmp_path)])
        )
        session = json.loads((tmp_path / "session.json").read_text())
        assert [g["generationNumber"] for g in session["generations"]] == [0, 1, 2]
        assert session["generations"][1]["mutations"] == ["harmonic"]
        assert (tmp_path / "creative_log.md").read_text().startswith("# Creative Process Log")
        assert json.loads((tmp_path / "params.json").read_text())["seed"] == 3
        assert (tmp_path / "execution.log").exists()
        assert '"tempo"' in capsys.readouterr().out

    def test_invalid_mood_exits(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            asyncio.run(main.main(["x", "--energy", "1.5", "--output-dir", str(tmp_path)]))
        assert exc.value.code == 1
