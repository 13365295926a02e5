import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from pixel_sprout.config import GameSettings, load_levels  # noqa: E402
from pixel_sprout.engine.rules import RuleContext  # noqa: E402
from factories import InlineExecutor, StubNarrator  # noqa: E402


@pytest.fixture(scope="session")
def levels():
    return load_levels()


@pytest.fixture
def settings():
    return GameSettings(seed=1234)


@pytest.fixture
def ctx(settings, levels):
    return RuleContext.build(settings, levels)


@pytest.fixture
def inline_executor():
    return InlineExecutor()


@pytest.fixture
def stub_narrator():
    return StubNarrator()
