"""Trades table: the plan, execution and review of each trade."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from helmsman.dao.base import Repository

__all__ = ["Trade", "TradesDao"]


@dataclass
class Trade:
    """A single trade, from its plan through execution to reflection."""

    id: int = 0
    account_id: int = 0
    strategy_id: int = 0
    status: str = ""
    symbol: str = ""
    direction: str = ""
    planned_entry_price: float = 0.0
    planned_stop_loss: float = 0.0
    planned_take_profit: float = 0.0
    position_size: float = 0.0
    planned_risk_amount: float = 0.0
    plan_notes: str = ""
    actual_entry_time: str = ""
    actual_entry_price: float = 0.0
    actual_exit_time: str = ""
    actual_exit_price: float = 0.0
    commission: float = 0.0
    pnl: float = 0.0
    r_multiple: float = 0.0
    exit_reason: str = ""
    execution_score: int = 0
    reflection_notes: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TradesDao(Repository):
    """Data access for trades."""

    model = Trade
    table = "trades"
    schema = {
        "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
        "account_id": "INTEGER NOT NULL DEFAULT 0",
        "strategy_id": "INTEGER NOT NULL DEFAULT 0",
        "status": "TEXT NOT NULL DEFAULT ''",
        "symbol": "TEXT NOT NULL DEFAULT ''",
        "direction": "TEXT NOT NULL DEFAULT ''",
        "planned_entry_price": "REAL NOT NULL DEFAULT 0",
        "planned_stop_loss": "REAL NOT NULL DEFAULT 0",
        "planned_take_profit": "REAL NOT NULL DEFAULT 0",
        "position_size": "REAL NOT NULL DEFAULT 0",
        "planned_risk_amount": "REAL NOT NULL DEFAULT 0",
        "plan_notes": "TEXT NOT NULL DEFAULT ''",
        "actual_entry_time": "TEXT NOT NULL DEFAULT ''",
        "actual_entry_price": "REAL NOT NULL DEFAULT 0",
        "actual_exit_time": "TEXT NOT NULL DEFAULT ''",
        "actual_exit_price": "REAL NOT NULL DEFAULT 0",
        "commission": "REAL NOT NULL DEFAULT 0",
        "pnl": "REAL NOT NULL DEFAULT 0",
        "r_multiple": "REAL NOT NULL DEFAULT 0",
        "exit_reason": "TEXT NOT NULL DEFAULT ''",
        "execution_score": "INTEGER NOT NULL DEFAULT 0",
        "reflection_notes": "TEXT NOT NULL DEFAULT ''",
        "created_at": "TEXT",
        "updated_at": "TEXT",
    }
    update_fields = (
        "account_id",
        "strategy_id",
        "status",
        "symbol",
        "direction",
        "planned_entry_price",
        "planned_stop_loss",
        "planned_take_profit",
        "position_size",
        "planned_risk_amount",
        "plan_notes",
        "actual_entry_time",
        "actual_entry_price",
        "actual_exit_time",
        "actual_exit_price",
        "commission",
        "pnl",
        "r_multiple",
        "exit_reason",
        "execution_score",
        "reflection_notes",
    )