from __future__ import annotations

from nest.names import display_label, initials
from tests.factories import member


def test_nickname_overrides_name() -> None:
    assert member("A", "Johanna de Vries", nickname=" Jo ").display_name == "Jo"


def test_blank_nickname_falls_back_to_name() -> None:
    assert member("A", "Johanna", nickname="  ").display_name == "Johanna"


def test_blank_everything_is_someone() -> None:
    assert member("A", "  ").display_name == "Someone"


def test_label_includes_relationship_when_present() -> None:
    assert display_label(member("A", "Johanna", nickname="Oma", relationship="Grandma")) == "Oma (Grandma)"
    assert display_label(member("A", "Johanna", relationship=" ")) == "Johanna"


def test_initials() -> None:
    assert initials("anne marie smith") == "AM"
    assert initials("  Jan ") == "J"
    assert initials(None) == ""
