"""
Compliance analysis module.

Prompt assembly, model invocation and defensive parsing of compliance reports.
"""

from labelcheck.core.analysis.completion_client import (
    CompletionClient,
    CompletionRequest,
    CompletionResponse,
)
from labelcheck.core.analysis.compliance_engine import ComplianceAnalysisEngine
from labelcheck.core.analysis.compliance_prompts import PromptMode
from labelcheck.core.analysis.context_assembler import AssembledPrompt, ContextAssembler, PromptInput

__all__ = [
    "AssembledPrompt",
    "ComplianceAnalysisEngine",
    "CompletionClient",
    "CompletionRequest",
    "CompletionResponse",
    "ContextAssembler",
    "PromptInput",
    "PromptMode",
]
