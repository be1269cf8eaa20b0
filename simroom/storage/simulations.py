"""Simulation rows."""

from typing import Any

from simroom.models import Simulation

from .core import delete_row, get_row, insert_row, read_table, select_rows, update_row


def list_simulations() -> list[Simulation]:
    return [Simulation.model_validate(r) for r in read_table("simulations")]


def get_simulation(simulation_id: str) -> Simulation | None:
    row = get_row("simulations", simulation_id)
    return Simulation.model_validate(row) if row else None


def simulations_using_setting(setting_id: str) -> list[Simulation]:
    return [Simulation.model_validate(r) for r in select_rows("simulations", setting_id=setting_id)]


def create_simulation(simulation: Simulation) -> Simulation:
    insert_row("simulations", simulation.model_dump(mode="json"))
    return simulation


def update_simulation(simulation_id: str, fields: dict[str, Any]) -> Simulation | None:
    row = update_row("simulations", simulation_id, fields)
    return Simulation.model_validate(row) if row else None


def delete_simulation(simulation_id: str) -> bool:
    return delete_row("simulations", simulation_id)
