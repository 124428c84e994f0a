"""
Tests for YAML persona loading.
"""

import pytest

from advisor.core import PersonaManager


def test_bundled_personas_load():
    manager = PersonaManager()

    personas = manager.list_personas()

    assert {"crypto_advisor", "gossiper", "financial_analyst"} <= set(personas)
    for name in personas:
        persona = manager.get_persona(name)
        assert persona.system_prompt
        assert persona.system_prompt == persona.system_prompt.strip()


def test_unknown_persona_raises():
    manager = PersonaManager()

    assert not manager.has_persona("nobody")
    with pytest.raises(KeyError):
        manager.get_persona("nobody")


def test_custom_directory(tmp_path):
    (tmp_path / "tester.yaml").write_text(
        "name: tester\n"
        "display_name: Tester\n"
        "description: Test persona\n"
        "tone: flat\n"
        "system_prompt: |\n"
        "  Say hello.\n",
        encoding="utf-8",
    )
    (tmp_path / "broken.yaml").write_text("name: broken\n", encoding="utf-8")

    manager = PersonaManager(personas_dir=tmp_path)

    assert manager.list_personas() == {"tester": "Tester"}
    assert manager.get_persona("tester").system_prompt == "Say hello."


def test_missing_directory_yields_no_personas(tmp_path):
    manager = PersonaManager(personas_dir=tmp_path / "missing")

    assert manager.list_personas() == {}
