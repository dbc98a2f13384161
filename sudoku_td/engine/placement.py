from __future__ import annotations

import logging
import math
from dataclasses import asdict

from sudoku_td.common.constants import (
    DEFAULT_CELL_SIZE,
    GRID_SIZE,
    INCORRECT_REFUND_RATE,
    UPGRADE_REFUND_RATE,
)
from sudoku_td.common.types import EventType, TowerKind
from sudoku_td.engine.board import BoardState
from sudoku_td.engine.economy import Economy
from sudoku_td.engine.events import EventBus
from sudoku_td.engine.state import Tower
from sudoku_td.engine.towers import TowerRegistry, parse_tower_kind
from sudoku_td.engine.validator import is_correct_value

logger = logging.getLogger(__name__)


def refund_for(base_cost: int, level: int) -> int:
    base_refund = math.floor(base_cost * INCORRECT_REFUND_RATE)
    upgrade_refund = math.floor(base_refund * (level - 1) * UPGRADE_REFUND_RATE)
    return base_refund + upgrade_refund


class TowerManager:
    """Owns placed towers, keyed by id, and enforces placement rules."""

    def __init__(
        self,
        board: BoardState,
        registry: TowerRegistry,
        economy: Economy,
        bus: EventBus,
        cell_size: int = DEFAULT_CELL_SIZE,
    ) -> None:
        self.board = board
        self.registry = registry
        self.economy = economy
        self.bus = bus
        self.cell_size = cell_size
        self.towers: dict[str, Tower] = {}
        self._next_id = 0

    def reset(self) -> None:
        self.towers = {}
        self._next_id = 0

    def set_cell_size(self, size: int) -> None:
        self.cell_size = size

    def get_towers(self) -> list[Tower]:
        return list(self.towers.values())

    def get_tower_by_id(self, tower_id: str) -> Tower | None:
        return self.towers.get(tower_id)

    def get_tower_at(self, row: int, col: int) -> Tower | None:
        return next((t for t in self.towers.values() if (t.row, t.col) == (row, col)), None)

    def incorrect_towers(self) -> list[Tower]:
        return [t for t in self.towers.values() if not t.correct]

    def create_tower(self, kind: TowerKind | str, row: int, col: int) -> Tower | None:
        kind = parse_tower_kind(kind)
        tower_type = self.registry.get_tower_type(kind)
        if tower_type is None:
            self.bus.status("Invalid tower type!")
            return None
        if not (0 <= row < GRID_SIZE and 0 <= col < GRID_SIZE):
            self.bus.status("Cannot place a tower outside the board!")
            return None
        if self.economy.currency < tower_type.cost:
            self.bus.status(f"Not enough currency to build this tower! Need {tower_type.cost}")
            return None
        if self.board.is_fixed(row, col):
            self.bus.status("Cannot place a tower on a fixed Sudoku cell!")
            return None
        if self.board.is_path(row, col):
            self.bus.status("Cannot place a tower on the enemy path!")
            return None
        if self.get_tower_at(row, col) is not None:
            self.bus.status("There's already a tower in this cell!")
            return None

        number = kind if isinstance(kind, int) else None
        correct = True
        if number is not None:
            if not self.board.can_place(row, col, number):
                self.bus.publish(
                    EventType.CELL_INVALID, {"row": row, "col": col, "value": number}
                )
                self.bus.status(self.board.rule_violation_message(row, col, number))
                return None
            correct = is_correct_value(row, col, number, self.board.solution)
            if not correct:
                self.bus.status(
                    "Warning: This tower doesn't match the solution. "
                    "It will be removed after the wave with 50% refund."
                )

        if not self.economy.spend_currency(tower_type.cost):
            self.bus.status(f"Not enough currency to build this tower! Need {tower_type.cost}")
            return None

        self._next_id += 1
        tower = Tower(
            tower_id=f"tower_{self._next_id}",
            kind=kind,
            row=row,
            col=col,
            x=col * self.cell_size + self.cell_size / 2,
            y=row * self.cell_size + self.cell_size / 2,
            damage=tower_type.damage,
            range=tower_type.range * self.cell_size,
            attack_speed=tower_type.attack_speed,
            correct=correct,
        )
        self.towers[tower.tower_id] = tower
        if number is not None:
            self.board.set_cell_value(row, col, number)
        logger.debug("Placed %s (%s) at (%d,%d)", tower.tower_id, kind, row, col)
        self.bus.publish(EventType.TOWER_PLACED, asdict(tower))
        return tower

    def remove_tower(self, tower_id: str) -> bool:
        tower = self.towers.pop(tower_id, None)
        if tower is None:
            return False
        self.board.clear_cell(tower.row, tower.col)
        logger.debug("Removed %s", tower_id)
        self.bus.publish(EventType.TOWER_REMOVED, asdict(tower))
        return True

    def remove_incorrect_towers(self) -> int:
        """Refund and remove every tower flagged incorrect; return the refund."""
        doomed = self.incorrect_towers()
        if not doomed:
            return 0
        refund = 0
        for tower in doomed:
            tower_type = self.registry.get_tower_type(tower.kind)
            if tower_type is not None:
                refund += refund_for(tower_type.cost, tower.level)
        if refund > 0:
            self.economy.add_currency(refund)
            self.bus.status(
                f"{len(doomed)} incorrect towers removed. Refunded {refund} currency."
            )
        for tower in doomed:
            self.remove_tower(tower.tower_id)
        return refund

    def upgrade_tower(self, tower_id: str) -> bool:
        tower = self.towers.get(tower_id)
        if tower is None:
            self.bus.status(f"Tower not found: {tower_id}")
            return False
        cost = self.registry.get_upgrade_cost(tower.kind, tower.level)
        if not self.economy.spend_currency(cost):
            self.bus.status(f"Not enough currency to upgrade this tower! Need {cost}")
            return False
        stats = self.registry.get_upgraded_stats(tower)
        tower.level += 1
        tower.damage = stats.damage
        tower.range = stats.range
        tower.attack_speed = stats.attack_speed
        self.bus.publish(EventType.TOWER_UPGRADED, asdict(tower))
        self.bus.status(
            f"Tower upgraded to level {tower.level}! Damage: {tower.damage}, "
            f"Range: {tower.range / self.cell_size:.1f}, "
            f"Attack Speed: {1 / tower.attack_speed:.1f}/s"
        )
        return True

    def upgrade_info(self, tower_id: str) -> dict | None:
        """Preview of what the next upgrade costs and yields."""
        tower = self.towers.get(tower_id)
        if tower is None:
            return None
        cost = self.registry.get_upgrade_cost(tower.kind, tower.level)
        stats = self.registry.get_upgraded_stats(tower)
        return {
            "tower_id": tower.tower_id,
            "current_level": tower.level,
            "new_level": tower.level + 1,
            "current_damage": tower.damage,
            "new_damage": stats.damage,
            "current_range": tower.range / self.cell_size,
            "new_range": stats.range / self.cell_size,
            "current_attack_rate": round(1 / tower.attack_speed, 1),
            "new_attack_rate": round(1 / stats.attack_speed, 1),
            "cost": cost,
            "can_afford": self.economy.currency >= cost,
        }
