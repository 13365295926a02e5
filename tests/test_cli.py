import io
import json

import pytest

from pixel_sprout import cli
from pixel_sprout.narrative import settings as narrative_settings
from pixel_sprout.narrative.settings import NarrativeSettings


@pytest.fixture(autouse=True)
def offline(monkeypatch, tmp_path):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("PIXEL_SPROUT_SEED", raising=False)
    monkeypatch.setattr(narrative_settings, "default_settings_path", lambda: tmp_path / "narrative.yaml")


def run(argv, stdin=""):
    out = io.StringIO()
    code = cli.main(argv, stdin=io.StringIO(stdin), out=out)
    return code, out.getvalue()


def test_generate_prints_level_json():
    code, text = run(["--seed", "7", "generate", "--level", "2"])
    assert code == 0
    data = json.loads(text)
    assert data["level"] == 2
    assert data["name"] == "The Sewers"
    assert (data["width"], data["height"]) == (25, 18)
    assert len(data["map"]) == 18
    assert any(e["kind"] == "rat" for e in data["entities"])


def test_generate_is_deterministic_per_seed():
    assert run(["--seed", "7", "generate"])[1] == run(["--seed", "7", "generate"])[1]
    assert run(["--seed", "7", "generate"])[1] != run(["--seed", "8", "generate"])[1]


def test_generate_unknown_level():
    code, text = run(["--seed", "7", "generate", "--level", "9"])
    assert code == 2
    assert text == ""


def test_bad_levels_file_is_reported(tmp_path):
    bad = tmp_path / "levels.yaml"
    bad.write_text("levels: []\n", encoding="utf-8")
    code, _ = run(["--levels", str(bad), "generate"])
    assert code == 1


def test_play_loop_renders_and_quits():
    code, text = run(["--seed", "7", "play"], stdin="\n.\nq\n")
    assert code == 0
    assert "The Damp Cellar | HP 20/20 | turn 0" in text
    assert "turn 1" in text
    assert "@" in text


def test_narrator_reports_missing_key_without_writing():
    code, text = run(["narrator"])
    assert code == 0
    assert text == "Narrator: missing\n"


def test_narrator_set_and_clear_key(tmp_path):
    stored = tmp_path / "narrative.yaml"
    code, text = run(["narrator", "--set-key", "abc123"])
    assert code == 0
    assert text.endswith("Narrator: ready\n")
    assert NarrativeSettings.load(stored).api_key == "abc123"

    code, text = run(["narrator", "--clear-key"])
    assert code == 0
    assert text.endswith("Narrator: missing\n")
    assert "api_key" not in stored.read_text(encoding="utf-8")


def test_narrator_reads_key_from_stdin(tmp_path):
    code, _ = run(["narrator", "--set-key", "-"], stdin="  from-stdin \n")
    assert code == 0
    assert NarrativeSettings.load(tmp_path / "narrative.yaml").api_key == "from-stdin"
