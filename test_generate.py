#!/usr/bin/env python3
"""
Tests for the generate subsystem, using a stub agent in place of a model.
"""

import importlib
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent / "src"))

from generate import (
    HtmlGenerator,
    GeneratorConfig,
    GenerationError,
    build_prompt,
    build_llm_config,
    clean_html_response,
)


class StubAgent:
    """Mimics Assistant.run: yields growing response snapshots."""

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def run(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        yield [{"role": "assistant", "content": self.reply[: len(self.reply) // 2]}]
        yield [{"role": "assistant", "content": self.reply}]


def quiet_config(**kwargs):
    return GeneratorConfig(verbose=False, **kwargs)


# ============================================================
# Prompt and response handling
# ============================================================

def test_build_prompt_embeds_payload():
    prompt = build_prompt('[{"path": "a.js", "content": "{x}"}]')
    assert '```json\n[{"path": "a.js", "content": "{x}"}]\n```' in prompt
    assert "single index.html" in prompt


@pytest.mark.parametrize("raw, expected", [
    ("<!DOCTYPE html><html></html>", "<!DOCTYPE html><html></html>"),
    ("  \n<!DOCTYPE html>\n", "<!DOCTYPE html>"),
    ("```html\n<!DOCTYPE html>\n<p>x</p>\n```", "<!DOCTYPE html>\n<p>x</p>"),
    ("```\n<!DOCTYPE html>\n```", "<!DOCTYPE html>"),
    ("```html\n<!DOCTYPE html>", "<!DOCTYPE html>"),
])
def test_clean_html_response(raw, expected):
    assert clean_html_response(raw) == expected


def test_build_llm_config():
    cfg = build_llm_config(GeneratorConfig(model="m", model_server="http://localhost:8000/v1", api_key="k"))
    assert cfg["model"] == "m"
    assert cfg["model_server"] == "http://localhost:8000/v1"
    assert cfg["api_key"] == "k"
    assert cfg["generate_cfg"]["temperature"] == 0.2

    assert "model_server" not in build_llm_config(GeneratorConfig())


# ============================================================
# Generator
# ============================================================

def test_generate_returns_cleaned_last_snapshot():
    agent = StubAgent(reply="```html\n<!DOCTYPE html><html><body></body></html>\n```")
    generator = HtmlGenerator(quiet_config(), agent=agent)

    html = generator.generate("[]")

    assert html == "<!DOCTYPE html><html><body></body></html>"
    assert agent.calls[0][0]["role"] == "user"
    assert "```json\n[]\n```" in agent.calls[0][0]["content"]


def test_generate_empty_response_raises():
    generator = HtmlGenerator(quiet_config(), agent=StubAgent(reply="   "))
    with pytest.raises(GenerationError, match="empty"):
        generator.generate("[]")


def test_generate_wraps_agent_errors():
    generator = HtmlGenerator(quiet_config(), agent=StubAgent(error=RuntimeError("HTTP 400 from server")))
    with pytest.raises(GenerationError, match="Bad Request"):
        generator.generate("[]")


def test_remote_server_without_key_is_rejected():
    with pytest.raises(GenerationError, match="API Key"):
        HtmlGenerator(quiet_config(model_server="https://api.example.com/v1"))


def test_agent_construction_failure_raises_generation_error(monkeypatch):
    generate_module = importlib.import_module("generate.generate")

    def broken_assistant(**kwargs):
        raise ValueError("unknown model type")

    monkeypatch.setattr(generate_module, "Assistant", broken_assistant)

    with pytest.raises(GenerationError, match="unknown model type"):
        HtmlGenerator(quiet_config(model="no-such-model"))
