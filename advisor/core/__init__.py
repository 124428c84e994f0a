from .personas import Persona, PersonaManager
from .session import (
    Session,
    SessionContextTracker,
    TurnBudget,
    TurnKind,
    budgets_from_settings,
    classify_turn,
)

__all__ = [
    "Persona",
    "PersonaManager",
    "Session",
    "SessionContextTracker",
    "TurnBudget",
    "TurnKind",
    "budgets_from_settings",
    "classify_turn",
]
