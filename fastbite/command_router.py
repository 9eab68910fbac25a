# fastbite/command_router.py
from __future__ import annotations

from typing import Any, Dict, List

INTENTS = {"asking_for_recommendations", "looking_for_food", "asking_about_menu", "other"}
SPICE_LEVELS = {"mild", "medium", "hot"}


def _str_list(raw: Any) -> List[str]:
    if not isinstance(raw, list):
        return []
    return [str(x).strip().lower() for x in raw if str(x).strip()]


def command_to_analysis(cmd: Dict[str, Any]) -> Dict[str, Any]:
    """LLM output -> the same shape ``nlp.analyze_message`` returns."""
    intent = str(cmd.get("intent") or "other").strip()
    if intent not in INTENTS:
        intent = "other"

    spice = str(cmd.get("spice_level") or "medium").strip().lower()
    if spice not in SPICE_LEVELS:
        spice = "medium"

    return {
        "intent": intent,
        "preferences": {
            "food_types": _str_list(cmd.get("food_types")),
            "dietary": _str_list(cmd.get("dietary")),
            "spice_level": spice,
        },
    }
