"""
Game configuration
----

Which drawback each player gets (by name or by index, name takes precedence), where the game starts,
and which optional draw rules are in force.

Settings can be built in code, picked from PRESETS, or read from JSON.
"""

from pathlib import Path
from typing import Optional, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.chess.fen import has_one_king_per_color, is_valid_fen
from src.core.exceptions import InvalidRequestError


class DrawbackSetting(BaseModel):
    """Either name OR index should be specified (name takes precedence). Neither: no drawback."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: Optional[str] = None
    index: Optional[int] = Field(default=None, ge=0)


class PlayerSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    drawback: DrawbackSetting = Field(default_factory=DrawbackSetting)


class GameSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    white: PlayerSettings = Field(default_factory=PlayerSettings)
    black: PlayerSettings = Field(default_factory=PlayerSettings)
    starting_fen: Optional[str] = None
    # seed for the per-turn rolls some drawbacks need. None: not reproducible
    rng_seed: Optional[int] = None
    threefold_repetition: bool = True
    fifty_move_rule: bool = True

    @field_validator("starting_fen")
    @classmethod
    def validate_starting_fen(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value

        value = value.strip()
        if not is_valid_fen(value):
            raise InvalidRequestError(f"Cannot interpret starting_fen as FEN: {value!r}")
        if not has_one_king_per_color(value.split(" ")[0]):
            raise InvalidRequestError(
                f"Starting position needs exactly one king per color: {value!r}"
            )
        return value

    @classmethod
    def from_json(cls, raw: str) -> Self:
        return cls.model_validate_json(raw)

    @classmethod
    def from_file(cls, path: Path | str) -> Self:
        return cls.from_json(Path(path).read_text(encoding="utf-8"))


def _with_drawbacks(white: Optional[str], black: Optional[str], **kwargs: object) -> GameSettings:
    return GameSettings.model_validate(
        {
            "white": {"drawback": {"name": white}},
            "black": {"drawback": {"name": black}},
            **kwargs,
        }
    )


# Predefined configurations
PRESETS: dict[str, GameSettings] = {
    "standard": GameSettings(),
    "no_castling": _with_drawbacks("No Castling", "No Castling"),
    "random_files": _with_drawbacks(
        "Random File Blocked", "Random File Blocked", rng_seed=42664
    ),
    "gentlemen": _with_drawbacks("True Gentleman", "True Gentleman"),
}
