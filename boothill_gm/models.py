"""Core domain models.

Every stage of the response pipeline produces and consumes these types.
Pydantic is used for validation and serialisation at every data boundary;
all models are frozen so a ParsedResponse can be handed to several consumers
without copying.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ActionType = Literal["basic", "combat", "interaction"]

DecisionImportance = Literal["critical", "significant", "moderate", "minor"]


class SuggestedAction(BaseModel):
    """One action offered to the player under the narrative."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1)
    type: ActionType = "basic"
    context: str | None = None  # tooltip text


class ItemDelta(BaseModel):
    """Items gained and lost this turn (set semantics)."""

    model_config = ConfigDict(frozen=True)

    acquired: frozenset[str] = frozenset()
    removed: frozenset[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.acquired and not self.removed

    def merge(self, other: ItemDelta) -> ItemDelta:
        return ItemDelta(
            acquired=self.acquired | other.acquired,
            removed=self.removed | other.removed,
        )

    def normalized(self) -> ItemDelta:
        """Drop from `removed` anything also acquired; acquired wins."""
        return ItemDelta(acquired=self.acquired, removed=self.removed - self.acquired)


class CombatInitiation(BaseModel):
    model_config = ConfigDict(frozen=True)

    opponent: str = Field(min_length=1)
    started: bool = True


class CharacterAttributes(BaseModel):
    """Boot Hill attribute block. Values are nominally 0–20 but not clamped."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    speed: int
    gun_accuracy: int = Field(alias="gunAccuracy")
    throwing_accuracy: int = Field(alias="throwingAccuracy")
    strength: int
    base_strength: int = Field(alias="baseStrength")
    bravery: int
    experience: int


class NpcCharacter(BaseModel):
    """A generated non-player character, usually a combat opponent."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    attributes: CharacterAttributes


class DecisionOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1)
    impact: str = Field(min_length=1)
    tags: frozenset[str] = frozenset()


class PlayerDecision(BaseModel):
    """A decision point: a prompt and at least two consequential options."""

    model_config = ConfigDict(frozen=True)

    prompt: str = Field(min_length=1)
    options: tuple[DecisionOption, ...]
    importance: DecisionImportance = "moderate"
    context: str | None = None
    characters: frozenset[str] = frozenset()

    @field_validator("options")
    @classmethod
    def _at_least_two_options(
        cls, options: tuple[DecisionOption, ...]
    ) -> tuple[DecisionOption, ...]:
        if len(options) < 2:
            raise ValueError("a decision needs at least two options")
        return options


class ParsedResponse(BaseModel):
    """Structured result of interpreting one model response.

    `narrative` is always a string. Everything else is optional; consumers
    apply what is present and keep their previous state for the rest.
    `character` is only set by the NPC-generation path.
    `fallback` marks the narrative-only result of a failed parse.
    """

    model_config = ConfigDict(frozen=True)

    narrative: str = ""
    location: str | None = None
    items: ItemDelta | None = None
    combat: CombatInitiation | None = None
    suggested_actions: tuple[SuggestedAction, ...] = ()
    decision: PlayerDecision | None = None
    character: NpcCharacter | None = None
    fallback: bool = False

    @classmethod
    def narrative_only(cls, text: str) -> ParsedResponse:
        return cls(narrative=text, fallback=True)

    @property
    def has_updates(self) -> bool:
        return any((
            self.location is not None,
            self.items is not None,
            self.combat is not None,
            bool(self.suggested_actions),
            self.decision is not None,
            self.character is not None,
        ))
