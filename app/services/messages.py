"""Announcement and notification texts."""

from __future__ import annotations

MESSAGES = {
    "begin.started": "{name} begins a project to craft {batch_size}x {item_name}, starting at {current_value}.",
    "begin.cannot_pay": "{name} cannot pay the starting cost of that project.",
    "craft.no_project": "{name} has no project {project_id} to craft.",
    "craft.meaningful_cost": "Enter a cost greater than zero to work on an unfinished project.",
    "craft.cannot_pay": "{name} cannot pay for this crafting session.",
    "progress.no_project": "{name} has no project {project_id} to progress.",
    "progress.progress": (
        "{name} works on {batch_size}x {item_name}: {progress_amount} of progress, "
        "now at {current_progress} of {goal}."
    ),
    "progress.setback": (
        "{name} suffers a setback on {batch_size}x {item_name}: {progress_amount} lost, "
        "now at {current_progress} of {goal}."
    ),
    "progress.fatal_setback": "{name} suffers a fatal setback; the project for {batch_size}x {item_name} is lost.",
    "progress.finish": "{name} finishes crafting {batch_size}x {item_name}!",
    "progress.lacks_permission": (
        " However, {user} lacks permission to hand the items to {name}; "
        "the project is kept so its owner can finish it."
    ),
    "progress.cant_add_item": "The crafted {item_name} could not be added to {name}'s inventory.",
    "edit.no_project": "{name} has no project {project_id} to edit.",
    "share.no_project": "{name} has no project {project_id} to share.",
    "share.status": "{name} is crafting {batch_size}x {item_name}: {current_progress} of {goal} ({percent}%).",
    "item.missing": "The item {item_id} could not be found.",
    "item.unavailable": "The item catalog cannot be reached right now; try again shortly.",
    "store.busy": "{name}'s projects are being changed elsewhere; try again.",
    "payment.refunded": "Project {project_id} changed before {name}'s work could be recorded; the payment was returned.",
}


def render(key: str, **data: object) -> str:
    return MESSAGES[key].format(**data)


__all__ = ["MESSAGES", "render"]
