# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from voicedrawer.orchestrator.enums.intent import Intent
from voicedrawer.orchestrator.interpreter import interpret
from voicedrawer.orchestrator.state_dataclass import Transcript


def _t(text: str) -> Transcript:
    return Transcript(text=text, ts_ms=0)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("OPEN MENU please", Intent.OPEN_DRAWER),
        ("please close menu now", Intent.CLOSE_DRAWER),
        ("hello world", Intent.NONE),
        ("", Intent.NONE),
        ("Close Menu", Intent.CLOSE_DRAWER),
    ],
)
def test_interpret_matches_phrases_case_insensitively(text: str, expected: Intent) -> None:
    assert interpret(_t(text)) is expected


def test_open_wins_when_both_phrases_present() -> None:
    assert interpret(_t("open menu then close menu")) is Intent.OPEN_DRAWER
    assert interpret(_t("close menu then open menu")) is Intent.OPEN_DRAWER


def test_partial_phrase_does_not_match() -> None:
    assert interpret(_t("open the menu")) is Intent.NONE
    assert interpret(_t("menu")) is Intent.NONE


def test_custom_phrases() -> None:
    assert interpret(_t("Show Drawer"), open_phrase="show drawer") is Intent.OPEN_DRAWER
    assert interpret(_t("open menu"), open_phrase="show drawer") is Intent.NONE
