"""
Context assembler.

Builds the model prompt for one request from a session's history and the
regulatory context. The prompt is split in two:

- cached prefix: regulatory context, the fixed preamble for the request
  kind and a summary of the latest analysis. Reused verbatim across calls
  so the provider can cache it.
- dynamic suffix: recent chat turns and the new input.

The prefix only changes when the request kind, the latest analysis
iteration or the regulatory context changes; it is memoized on exactly
those three values.

Dependencies: labelcheck.core.analysis.compliance_prompts
System role: Prompt assembly for the compliance analysis engine
"""

import hashlib
import logging
import threading
import uuid
from collections import OrderedDict
from collections.abc import Sequence
from dataclasses import dataclass

from labelcheck.core.analysis.comparison import find_baseline, render_baseline
from labelcheck.core.analysis.compliance_prompts import (
    ANALYSIS_REQUEST_CLOSING,
    CHAT_CLOSING_INSTRUCTIONS,
    COMPARISON_INSTRUCTIONS,
    IMAGE_INPUT_FRAME,
    PREAMBLES,
    PROSPECTIVE_TEXT_FRAME,
    PromptMode,
)
from labelcheck.models.iteration import ChatAnswer, ChatQuestionInput, IterationRecord, IterationType
from labelcheck.models.session import SessionRecord

logger = logging.getLogger(__name__)

SECTION_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class PromptInput:
    """The new input a prompt is assembled around."""

    mode: PromptMode
    text: str | None = None

    @classmethod
    def chat(cls, message: str) -> "PromptInput":
        return cls(mode=PromptMode.CHAT, text=message)

    @classmethod
    def label_text(cls, text: str) -> "PromptInput":
        return cls(mode=PromptMode.TEXT_ANALYSIS, text=text)

    @classmethod
    def label_image(cls) -> "PromptInput":
        return cls(mode=PromptMode.IMAGE_ANALYSIS)


@dataclass(frozen=True)
class AssembledPrompt:
    """Prompt split into its cacheable and volatile halves."""

    cached_prefix: str
    dynamic_suffix: str
    mode: PromptMode
    baseline_iteration_id: uuid.UUID | None = None

    @property
    def has_baseline(self) -> bool:
        return self.baseline_iteration_id is not None


def context_digest(regulatory_context: str) -> str:
    """Stable digest of the regulatory context for prefix cache keys."""
    return hashlib.sha256(regulatory_context.encode("utf-8")).hexdigest()


class ContextAssembler:
    """Assemble bounded prompts from session history."""

    def __init__(self, history_window: int = 5, prefix_cache_size: int = 256) -> None:
        """
        Initialize assembler.

        Args:
            history_window: Number of most recent chat turns carried in the suffix
            prefix_cache_size: Maximum memoized prefixes
        """
        self._history_window = history_window
        self._prefix_cache_size = prefix_cache_size
        self._prefix_cache: OrderedDict[tuple, str] = OrderedDict()
        self._lock = threading.Lock()
        self.prefix_builds = 0

    def assemble(
        self,
        session: SessionRecord,
        iterations: Sequence[IterationRecord],
        regulatory_context: str,
        new_input: PromptInput,
    ) -> AssembledPrompt:
        """
        Assemble the prompt for one request.

        Args:
            session: Session the request belongs to
            iterations: The session's iterations, in any order
            regulatory_context: Rendered regulatory context block
            new_input: New chat message, label text or image marker

        Returns:
            AssembledPrompt: Cached prefix and dynamic suffix

        Raises:
            ValueError: An iteration belongs to a different session
        """
        foreign = [it.id for it in iterations if it.session_id != session.id]
        if foreign:
            raise ValueError(f"Iterations {foreign} do not belong to session {session.id}")

        ordered = sorted(iterations, key=lambda it: it.order_key)
        baseline = find_baseline(ordered)

        prefix = self._get_prefix(new_input.mode, baseline, regulatory_context)
        suffix = self._build_suffix(ordered, new_input)

        logger.debug(
            f"{__name__}:assemble - Assembled {new_input.mode.value} prompt",
            extra={
                "session_id": str(session.id),
                "baseline_iteration_id": str(baseline.id) if baseline else None,
                "prefix_chars": len(prefix),
                "suffix_chars": len(suffix),
            },
        )
        return AssembledPrompt(
            cached_prefix=prefix,
            dynamic_suffix=suffix,
            mode=new_input.mode,
            baseline_iteration_id=baseline.id if baseline else None,
        )

    def _get_prefix(
        self,
        mode: PromptMode,
        baseline: IterationRecord | None,
        regulatory_context: str,
    ) -> str:
        key = (mode, baseline.id if baseline else None, context_digest(regulatory_context))
        with self._lock:
            cached = self._prefix_cache.get(key)
            if cached is not None:
                self._prefix_cache.move_to_end(key)
                return cached

        prefix = self._build_prefix(mode, baseline, regulatory_context)

        with self._lock:
            self._prefix_cache[key] = prefix
            self._prefix_cache.move_to_end(key)
            while len(self._prefix_cache) > self._prefix_cache_size:
                self._prefix_cache.popitem(last=False)
            self.prefix_builds += 1
        return prefix

    def _build_prefix(
        self,
        mode: PromptMode,
        baseline: IterationRecord | None,
        regulatory_context: str,
    ) -> str:
        parts = [regulatory_context, PREAMBLES[mode]]
        if baseline is not None:
            parts.append(render_baseline(baseline.report))
            if mode.expects_report:
                parts.append(COMPARISON_INSTRUCTIONS)
        return SECTION_SEPARATOR.join(parts)

    def _build_suffix(self, ordered: Sequence[IterationRecord], new_input: PromptInput) -> str:
        parts: list[str] = []

        history = self._render_chat_history(ordered)
        if history:
            parts.append(history)

        if new_input.mode is PromptMode.CHAT:
            parts.append(
                "## Current Question\n\n"
                f'The user is now asking: "{new_input.text}"\n\n'
                f"{CHAT_CLOSING_INSTRUCTIONS}"
            )
        elif new_input.mode is PromptMode.TEXT_ANALYSIS:
            parts.append(PROSPECTIVE_TEXT_FRAME.format(text=new_input.text))
            parts.append(ANALYSIS_REQUEST_CLOSING)
        else:
            parts.append(IMAGE_INPUT_FRAME)
            parts.append(ANALYSIS_REQUEST_CLOSING)

        return SECTION_SEPARATOR.join(parts)

    def _render_chat_history(self, ordered: Sequence[IterationRecord]) -> str:
        chats = [it for it in ordered if it.iteration_type == IterationType.CHAT_QUESTION]
        recent = chats[-self._history_window :] if self._history_window > 0 else []
        if not recent:
            return ""

        turns = ["## Recent Conversation History"]
        for chat in recent:
            question = chat.input.message if isinstance(chat.input, ChatQuestionInput) else ""
            answer = chat.result.response if isinstance(chat.result, ChatAnswer) else ""
            turns.append(f"**User:** {question}\n**Assistant:** {answer}")
        return SECTION_SEPARATOR.join(turns)
