import pytest
from pydantic import ValidationError

from pypickem.models import PlayerIdentity, normalize_name, synthesize_player_id


def test_player_identity_is_frozen():
    player = PlayerIdentity(id="nba:10", name="Test Player", position="PG", team="BOS")

    assert player.id == "nba:10"
    assert player.position == "PG"

    with pytest.raises((TypeError, ValidationError)):
        player.id = "nba:11"  # type: ignore[misc]


def test_player_identity_rejects_unknown_positions_and_empty_ids():
    with pytest.raises(ValidationError):
        PlayerIdentity(id="p1", name="Kicker", position="K")
    with pytest.raises(ValidationError):
        PlayerIdentity(id="", name="Nobody", position="QB")


def test_normalize_name_drops_suffixes_and_punctuation():
    assert normalize_name("Marvin Harrison Jr.") == "marvinharrison"
    assert normalize_name("D'Andre  Swift") == "dandreswift"


def test_synthesized_ids_are_namespaced():
    assert synthesize_player_id("nfl", "A.J. Brown", "phi") == "nfl:name:ajbrown::PHI"
    assert synthesize_player_id("nfl", "A.J. Brown", None) == "nfl:name:ajbrown::"
