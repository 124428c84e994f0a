"""
Advisor personas.

Each ``advisor/personas/<name>.yaml`` holds one persona: the crypto advisor
that talks to wallet owners, plus the gossiper and financial analyst used by
the market analysis. Prompts live in YAML so they can be tuned without a
code change.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

PERSONAS_DIR = Path(__file__).resolve().parent.parent / "personas"


class Persona(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    display_name: str
    description: str = ""
    system_prompt: str

    @field_validator("system_prompt")
    @classmethod
    def _strip_prompt(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("system_prompt must not be empty")
        return value


def load_persona(path: Path) -> Persona:
    """Parse one YAML file. Raises OSError, yaml.YAMLError or ValueError."""
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if not isinstance(data, dict):
        raise ValueError("persona file must contain a mapping")
    return Persona.model_validate(data)


class PersonaManager:
    def __init__(self, personas_dir: Optional[Path] = None, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.personas_dir = personas_dir or PERSONAS_DIR
        self._personas: Dict[str, Persona] = {}

        if not self.personas_dir.is_dir():
            self.logger.warning("Personas directory not found: %s", self.personas_dir)
            return
        for path in sorted(self.personas_dir.glob("*.yaml")):
            try:
                persona = load_persona(path)
            except (OSError, yaml.YAMLError, ValueError) as exc:
                self.logger.error("Skipping persona file %s: %s", path.name, exc)
                continue
            self._personas[persona.name] = persona
        self.logger.debug("Loaded personas: %s", ", ".join(self._personas) or "none")

    def get_persona(self, name: str) -> Persona:
        """Unknown names are a wiring bug, so this raises KeyError"""
        if name not in self._personas:
            raise KeyError(f"Unknown persona '{name}'. Available: {', '.join(sorted(self._personas))}")
        return self._personas[name]

    def has_persona(self, name: str) -> bool:
        return name in self._personas

    def list_personas(self) -> Dict[str, str]:
        """name -> display name"""
        return {name: persona.display_name for name, persona in self._personas.items()}
