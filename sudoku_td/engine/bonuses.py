from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from sudoku_td.common.constants import BOX_SIZE
from sudoku_td.common.types import BonusKind, Cell, EventType, UnitType, unit_key
from sudoku_td.engine.completion import CompletionTracker
from sudoku_td.engine.events import EventBus
from sudoku_td.engine.state import BonusBinding, Enemy, Tower

logger = logging.getLogger(__name__)

BONUS_MULTIPLIERS = {
    BonusKind.DAMAGE: 1.35,
    BonusKind.POINTS: 2.0,
    BonusKind.CURRENCY: 1.75,
}

BONUS_DESCRIPTIONS = {
    BonusKind.DAMAGE: "Towers do 35% more damage",
    BonusKind.POINTS: "Double points earned from defeated enemies",
    BonusKind.CURRENCY: "75% more currency from defeated enemies",
}


@dataclass(frozen=True)
class BonusEffects:
    damage: int
    points: int
    currency: int


def _display_index(unit_type: UnitType, index: int | Cell) -> str:
    if unit_type == UnitType.BOX:
        box_row, box_col = index  # type: ignore[misc]
        return f"{box_row + 1},{box_col + 1}"
    return str(int(index) + 1)  # type: ignore[arg-type]


def _normalize_index(unit_type: UnitType, index: object) -> int | Cell | None:
    """Return the index in its canonical shape, or None if it does not fit the unit."""
    if unit_type == UnitType.BOX:
        if isinstance(index, (list, tuple)) and len(index) == 2:
            if all(isinstance(i, int) and not isinstance(i, bool) for i in index):
                return index[0], index[1]
        return None
    if isinstance(index, int) and not isinstance(index, bool):
        return index
    return None


class BonusEngine:
    """Offers, activates and revokes per-unit completion bonuses.

    A unit moves from no bonus to pending when it is completed, from pending to
    active once the player picks a kind, and back to no bonus as soon as the
    completion tracker no longer lists it as complete.
    """

    def __init__(self, tracker: CompletionTracker, bus: EventBus) -> None:
        self.tracker = tracker
        self.bus = bus
        self.bindings: dict[str, BonusBinding] = {}

    def reset(self) -> None:
        self.bindings.clear()

    def on_unit_completed(self, payload: dict) -> None:
        unit_type = UnitType(payload["unit_type"])
        index = payload["index"]
        key = unit_key(unit_type, index)
        if key in self.bindings:
            return
        self.bindings[key] = BonusBinding(unit_type=unit_type, index=index)
        logger.debug("Offering bonus for %s", key)
        self.bus.publish(
            EventType.BONUS_OFFERED,
            {
                "unit_type": unit_type.value,
                "index": index,
                "key": key,
                "options": {
                    kind.value: {
                        "multiplier": BONUS_MULTIPLIERS[kind],
                        "description": BONUS_DESCRIPTIONS[kind],
                    }
                    for kind in BonusKind
                },
            },
        )

    def choose_bonus(
        self, unit_type: UnitType | str, index: int | Cell, kind: BonusKind | str
    ) -> bool:
        try:
            unit_type = UnitType(unit_type)
            kind = BonusKind(kind.upper())
        except ValueError:
            self.bus.status(f"Unknown bonus choice: {unit_type} / {kind}")
            return False
        normalized = _normalize_index(unit_type, index)
        if normalized is None:
            self.bus.status(f"Invalid {unit_type.value} index: {index}")
            return False
        index = normalized
        key = unit_key(unit_type, index)
        binding = self.bindings.get(key)
        if binding is None or not binding.pending:
            label = _display_index(unit_type, index)
            self.bus.status(f"No bonus waiting for {unit_type.value} {label}")
            return False
        binding.kind = kind
        logger.debug("Bonus %s active on %s", kind.value, key)
        self.bus.publish(
            EventType.BONUS_APPLIED,
            {"key": key, "unit_type": unit_type.value, "index": index, "kind": kind.value},
        )
        self.bus.status(
            f"{unit_type.value.capitalize()} {_display_index(unit_type, index)} bonus: "
            f"{BONUS_DESCRIPTIONS[kind]}"
        )
        return True

    def check_board_completions(self) -> list[str]:
        """Drop every binding whose unit is no longer complete; return the dropped keys."""
        revoked = []
        for key, binding in list(self.bindings.items()):
            if self.tracker.is_unit_complete(binding.unit_type, binding.index):
                continue
            del self.bindings[key]
            revoked.append(key)
            logger.debug("Bonus on %s revoked", key)
            self.bus.publish(
                EventType.BONUS_REVOKED,
                {"key": key, "kind": binding.kind.value if binding.kind else None},
            )
        return revoked

    def has_pending(self) -> bool:
        return any(binding.pending for binding in self.bindings.values())

    def pending_offers(self) -> list[dict]:
        return [
            {"unit_type": b.unit_type.value, "index": b.index, "key": key}
            for key, b in self.bindings.items()
            if b.pending
        ]

    def active_kind(self, unit_type: UnitType, index: int | Cell) -> BonusKind | None:
        binding = self.bindings.get(unit_key(unit_type, index))
        return binding.kind if binding else None

    def apply_effects(
        self, tower: Tower, enemy: Enemy, base_points: int, base_currency: int
    ) -> BonusEffects:
        multipliers = {kind: 1.0 for kind in BonusKind}
        units = (
            (UnitType.ROW, tower.row),
            (UnitType.COLUMN, tower.col),
            (UnitType.BOX, (tower.row // BOX_SIZE, tower.col // BOX_SIZE)),
        )
        for unit_type, index in units:
            kind = self.active_kind(unit_type, index)
            if kind is not None:
                multipliers[kind] *= BONUS_MULTIPLIERS[kind]
        return BonusEffects(
            damage=math.floor(tower.damage * multipliers[BonusKind.DAMAGE]),
            points=math.floor(base_points * multipliers[BonusKind.POINTS]),
            currency=math.floor(base_currency * multipliers[BonusKind.CURRENCY]),
        )

    def get_bonuses(self) -> dict:
        result: dict[str, dict[str, str]] = {"rows": {}, "columns": {}, "boxes": {}}
        groups = {UnitType.ROW: "rows", UnitType.COLUMN: "columns", UnitType.BOX: "boxes"}
        for key, binding in self.bindings.items():
            if binding.kind is not None:
                result[groups[binding.unit_type]][key] = binding.kind.value
        return result
