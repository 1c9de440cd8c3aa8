"""Tests for boothill_gm.models."""

import pytest
from pydantic import ValidationError

from boothill_gm.models import (
    CharacterAttributes,
    CombatInitiation,
    DecisionOption,
    ItemDelta,
    ParsedResponse,
    PlayerDecision,
    SuggestedAction,
)

_OPTIONS = (
    DecisionOption(text="Talk", impact="Avoids bloodshed"),
    DecisionOption(text="Draw", impact="Starts a gunfight", tags=frozenset({"combat"})),
)


class TestItemDelta:
    def test_defaults_empty(self) -> None:
        delta = ItemDelta()
        assert delta.acquired == frozenset()
        assert delta.removed == frozenset()
        assert delta.is_empty

    def test_list_input_collapses_to_set(self) -> None:
        delta = ItemDelta(acquired=["Rope", "Rope", "Lantern"])
        assert delta.acquired == {"Rope", "Lantern"}

    def test_merge_unions_both_sides(self) -> None:
        merged = ItemDelta(acquired={"Rope"}).merge(
            ItemDelta(acquired={"Lantern"}, removed={"Whiskey"})
        )
        assert merged.acquired == {"Rope", "Lantern"}
        assert merged.removed == {"Whiskey"}

    def test_normalized_acquired_wins(self) -> None:
        delta = ItemDelta(acquired={"Rope"}, removed={"Rope", "Whiskey"}).normalized()
        assert delta.acquired == {"Rope"}
        assert delta.removed == {"Whiskey"}


class TestSuggestedAction:
    def test_type_defaults_to_basic(self) -> None:
        assert SuggestedAction(text="Look around").type == "basic"

    def test_empty_text_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SuggestedAction(text="")

    def test_unknown_type_rejected_at_model_level(self) -> None:
        with pytest.raises(ValidationError):
            SuggestedAction(text="Dance", type="chaotic")


class TestCharacterAttributes:
    def test_wire_aliases(self) -> None:
        attrs = CharacterAttributes.model_validate({
            "speed": 1, "gunAccuracy": 2, "throwingAccuracy": 3, "strength": 4,
            "baseStrength": 5, "bravery": 6, "experience": 7,
        })
        assert attrs.gun_accuracy == 2
        assert attrs.model_dump(by_alias=True)["baseStrength"] == 5

    def test_partial_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CharacterAttributes(speed=10)


class TestPlayerDecision:
    def test_two_options_accepted(self) -> None:
        decision = PlayerDecision(prompt="Fight or talk?", options=_OPTIONS)
        assert decision.importance == "moderate"
        assert decision.characters == frozenset()

    def test_single_option_rejected(self) -> None:
        with pytest.raises(ValidationError, match="at least two options"):
            PlayerDecision(prompt="Fight?", options=_OPTIONS[:1])

    def test_invalid_importance_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PlayerDecision(prompt="x", options=_OPTIONS, importance="urgent")


class TestParsedResponse:
    def test_defaults(self) -> None:
        result = ParsedResponse()
        assert result.narrative == ""
        assert result.fallback is False
        assert not result.has_updates

    def test_narrative_only(self) -> None:
        result = ParsedResponse.narrative_only("raw {text")
        assert result.narrative == "raw {text"
        assert result.fallback is True
        assert not result.has_updates

    def test_frozen(self) -> None:
        result = ParsedResponse(narrative="x")
        with pytest.raises(ValidationError):
            result.narrative = "y"

    def test_has_updates(self) -> None:
        assert ParsedResponse(combat=CombatInitiation(opponent="Bart")).has_updates

    def test_serialise_roundtrip(self) -> None:
        result = ParsedResponse(
            narrative="You enter.",
            location="Saloon",
            items=ItemDelta(acquired={"Rope"}),
            suggested_actions=(SuggestedAction(text="Sit", context="Rest a while"),),
            decision=PlayerDecision(prompt="Drink?", options=_OPTIONS),
        )
        restored = ParsedResponse.model_validate_json(result.model_dump_json())
        assert restored == result
