"""Orchestration package - export the turn orchestrator and its helpers."""

from inventory_voice.orchestration.directives import DirectiveType, parse_reply
from inventory_voice.orchestration.orchestrator import TaskOrchestrator
from inventory_voice.orchestration.prompts import PromptBuilder

__all__ = [
    "DirectiveType",
    "PromptBuilder",
    "TaskOrchestrator",
    "parse_reply",
]
