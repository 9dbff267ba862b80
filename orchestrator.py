"""Main orchestrator for rolling chat summaries."""

import logging
import re
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from typing import List, Optional

from config.settings import MemorySettings, Settings
from schemas.memory import (
    PromptBuilder,
    SummarizationMode,
    SummarizationResult,
    SummarizationStatus,
    TriggerDecision,
    TriggerEvaluation,
)

# LLM components
from llm.generator import TextGenerator

# Memory components
from memory.autotune import suggest_force_words, suggest_interval
from memory.host import ChatHost
from memory.models import ChatMessage
from memory.store import MemoryStore
from memory.tokens import TokenBudgetEstimator
from memory.trigger import TriggerPolicy, TriggerState
from memory.window import WindowBuilder
from utils.timing import wait_until_condition

logger = logging.getLogger(__name__)

MODULE_NAME = "memory"

_SUMMARY_MACRO = re.compile(r"\{\{summary\}\}", re.IGNORECASE)


def format_memory_value(value: str, template: str) -> str:
    """Render a summary through the injection template."""
    if not value:
        return ""

    value = value.strip()
    if template:
        return _SUMMARY_MACRO.sub(lambda _: value, template, count=1)
    return f"Summary: {value}"


class SummarizationOrchestrator:
    """
    Keeps a rolling summary of the active chat.

    Chat events are evaluated on the caller's thread; a due summary runs on a
    single background worker so events keep flowing while the model is busy.
    At most one run is active at a time and triggers arriving meanwhile are
    dropped.
    """

    def __init__(
        self,
        host: ChatHost,
        generator: TextGenerator,
        settings: Optional[MemorySettings] = None,
        estimator: Optional[TokenBudgetEstimator] = None,
        state: Optional[TriggerState] = None,
        busy_timeout: float = 30.0,
        group_timeout: float = 1.0,
        persist_delay: float = 1.0,
        poll_interval: float = 0.1
    ):
        """
        Initialize orchestrator.

        Args:
            host: Owner of the active chat
            generator: Text generation capability
            settings: Summarization settings
            estimator: Token counter (defaults to the generator's)
            state: Trigger snapshot carried between evaluations
            busy_timeout: Seconds to wait for a running generation to finish
            group_timeout: Seconds to wait for a group chat to settle
            persist_delay: Seconds to coalesce chat saves over
            poll_interval: Seconds between busy checks
        """
        self.host = host
        self.generator = generator
        self.settings = settings or MemorySettings()
        self.estimator = estimator or generator.estimator
        self.state = state or TriggerState()
        self.busy_timeout = busy_timeout
        self.group_timeout = group_timeout
        self.poll_interval = poll_interval

        self.policy = TriggerPolicy()
        self.store = MemoryStore(host, persist_delay=persist_delay)
        self.window_builder = WindowBuilder(self.estimator)

        self.current_memory = ""
        self.last_evaluation: Optional[TriggerEvaluation] = None

        self._run_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="summarizer")

    @classmethod
    def from_settings(cls, host: ChatHost, generator: TextGenerator, settings: Settings) -> "SummarizationOrchestrator":
        return cls(
            host=host,
            generator=generator,
            settings=settings.memory,
            busy_timeout=settings.busy_timeout_seconds,
            group_timeout=settings.group_timeout_seconds,
            persist_delay=settings.persist_debounce_seconds
        )

    @property
    def in_flight(self) -> bool:
        return self._run_lock.locked()

    # ------------------------------------------------------------------
    # Chat events
    # ------------------------------------------------------------------

    def on_chat_event(self) -> Optional["Future[SummarizationResult]"]:
        """
        React to a message being received, deleted, edited or swiped, or to a
        chat change.

        Returns:
            Future of the scheduled run, or None when nothing was scheduled
        """
        context = self.host.get_context()
        evaluation = self.policy.evaluate(
            context,
            self.settings,
            self.state,
            in_flight=self.in_flight,
            generating=self.host.is_generating()
        )
        self.last_evaluation = evaluation

        if evaluation.decision == TriggerDecision.SWITCH_DETECTED:
            self.set_memory_context(self.store.latest(context.chat), save_to_message=False)
            return None

        if evaluation.decision == TriggerDecision.SUPPRESSED:
            logger.debug(f"Summary suppressed: {evaluation.reason}")
            return None

        if evaluation.messages_removed:
            self.set_memory_context(self.store.latest(context.chat), save_to_message=False)

        if evaluation.stale_memory_dropped:
            logger.info("Latest message changed after it was summarized, memory dropped")
            self.store.request_persist()

        if evaluation.decision != TriggerDecision.DUE:
            return None

        if not self._run_lock.acquire(blocking=False):
            logger.debug("Summary already in progress, trigger dropped")
            return None

        try:
            return self._executor.submit(self._scheduled_run)
        except RuntimeError:
            self._run_lock.release()
            raise

    def _scheduled_run(self) -> SummarizationResult:
        try:
            return self._summarize(SummarizationMode.AUTO)
        except Exception as e:
            logger.error(f"Summarization run crashed: {e}")
            return SummarizationResult(status=SummarizationStatus.FAILED, error=str(e))
        finally:
            self.state.capture(self.host.get_context())
            self._run_lock.release()

    # ------------------------------------------------------------------
    # Summarization
    # ------------------------------------------------------------------

    def run(self, mode: SummarizationMode = SummarizationMode.FORCED) -> SummarizationResult:
        """Summarize now on the calling thread, unless a run is already active."""
        if not self._run_lock.acquire(blocking=False):
            logger.debug("Summary already in progress")
            return SummarizationResult(status=SummarizationStatus.SUPPRESSED)

        try:
            return self._summarize(mode)
        finally:
            self._run_lock.release()

    def _wait_until_idle(self, group_selected: bool) -> bool:
        try:
            if group_selected:
                wait_until_condition(
                    lambda: not self.host.is_group_generating(),
                    timeout=self.group_timeout,
                    interval=self.poll_interval
                )
            wait_until_condition(
                lambda: not self.host.is_generating(),
                timeout=self.busy_timeout,
                interval=self.poll_interval
            )
        except TimeoutError:
            return False
        return True

    @contextmanager
    def _send_lock(self, active: bool):
        """Keep the user from sending while the chat is being summarized."""
        if active:
            self.host.deactivate_send_buttons()
        try:
            yield
        finally:
            if active:
                self.host.activate_send_buttons()

    def _summarize(self, mode: SummarizationMode) -> SummarizationResult:
        force = mode == SummarizationMode.FORCED
        settings = self.settings

        if settings.prompt_interval == 0 and not force:
            logger.debug("Prompt interval is set to 0, skipping summarization")
            return SummarizationResult(status=SummarizationStatus.NOT_DUE)

        context = self.host.get_context()

        if not self._wait_until_idle(bool(context.group_id)):
            logger.debug("Timeout waiting for generation to finish")
            return SummarizationResult(status=SummarizationStatus.NO_OP)

        if not context.chat:
            logger.debug("No messages in chat to summarize")
            return SummarizationResult(status=SummarizationStatus.NO_OP)

        evaluation = self.policy.check_thresholds(context.chat, settings, force=force)
        if evaluation.decision != TriggerDecision.DUE:
            logger.debug(f"Summary not due: {evaluation.reason}")
            return SummarizationResult(status=SummarizationStatus.NOT_DUE)

        logger.info(
            f"Summarizing chat, messages since last summary: {evaluation.messages_since_summary}, "
            f"words since last summary: {evaluation.words_since_summary}"
        )

        prompt = settings.render_prompt()
        if not prompt.strip():
            logger.debug("Summarization prompt is empty. Skipping summarization.")
            return SummarizationResult(status=SummarizationStatus.NO_OP)

        identity = context.identity
        index: Optional[int] = None

        try:
            if settings.prompt_builder == PromptBuilder.DEFAULT:
                summary = self.generator.generate_quiet(
                    context,
                    prompt,
                    extension_prompts=self.host.get_extension_prompts(),
                    skip_world_info=settings.skip_world_info,
                    response_length=settings.override_response_length
                )
            else:
                with self._send_lock(settings.prompt_builder == PromptBuilder.RAW_BLOCKING):
                    window = self.window_builder.build(
                        context.chat,
                        prompt,
                        budget=self.generator.max_context_size(settings.override_response_length),
                        max_messages=settings.max_messages_per_request
                    )

                    if window.is_empty:
                        if force:
                            logger.warning("No messages found to summarize. To try again, remove the latest summary.")
                        return SummarizationResult(status=SummarizationStatus.EMPTY_WINDOW)

                    summary = self.generator.generate_raw(
                        window.raw_prompt,
                        prompt,
                        response_length=settings.override_response_length
                    )
                    index = window.last_used_index
        except Exception as e:
            logger.warning(f"Failed to summarize chat: {e}")
            return SummarizationResult(status=SummarizationStatus.FAILED, error=str(e))

        if not summary or not summary.strip():
            logger.warning("Summarization returned an empty response")
            return SummarizationResult(status=SummarizationStatus.FAILED, error="empty response")

        # The write goes to the chat the summary was built from, and only while
        # that chat is still the active one
        with self.host.locked():
            if self.host.get_context().identity.differs_from(identity):
                logger.warning("Context changed, summary discarded")
                return SummarizationResult(status=SummarizationStatus.STALE, summary=summary, last_used_index=index)

            self.set_memory_context(summary, save_to_message=True, index=index, chat=context.chat)
        return SummarizationResult(
            status=SummarizationStatus.COMMITTED,
            summary=summary,
            last_used_index=index
        )

    # ------------------------------------------------------------------
    # Displayed memory
    # ------------------------------------------------------------------

    def set_memory_context(
        self,
        value: str,
        save_to_message: bool,
        index: Optional[int] = None,
        chat: Optional[List[ChatMessage]] = None
    ):
        """
        Inject ``value`` into the generation context.

        Args:
            value: Summary text
            save_to_message: Also attach it to a chat message
            index: Message to attach to (default: second-to-last)
            chat: Messages to attach to (default: the active chat)
        """
        settings = self.settings
        self.host.set_extension_prompt(
            MODULE_NAME,
            format_memory_value(value, settings.template),
            settings.position,
            settings.depth,
            settings.role
        )
        self.current_memory = value or ""
        logger.info(
            f"Summary set to: {value!r} (position: {settings.position.name}, "
            f"depth: {settings.depth}, role: {settings.role.name})"
        )

        if save_to_message:
            self.store.commit(value, at_index=index, chat=chat)

    def reinsert_memory(self):
        """Re-inject the current memory after the template or placement changed."""
        self.set_memory_context(self.current_memory, save_to_message=False)

    def edit_memory(self, value: str):
        """Replace the memory with a user-edited value."""
        self.set_memory_context(value, save_to_message=True)

    def restore_previous(self) -> str:
        """
        Drop the current memory and fall back to the one before it.

        Returns:
            The memory now in effect
        """
        self.store.clear(self.current_memory)
        previous = self.store.latest()
        self.set_memory_context(previous, save_to_message=False)
        return previous

    # ------------------------------------------------------------------
    # Manual invocation
    # ------------------------------------------------------------------

    def force_summarize(self) -> str:
        """Summarize the active chat regardless of thresholds."""
        context = self.host.get_context()
        logger.debug(f"Skipping world info? {self.settings.skip_world_info}")

        if not context.chat_id:
            logger.warning("No chat selected")
            return ""

        logger.info("Summarizing chat...")
        result = self.run(SummarizationMode.FORCED)

        if not result.committed:
            logger.warning(f"Failed to summarize chat ({result.status.value})")
            return ""

        return result.summary

    def summarize_text(self, text: str, prompt: Optional[str] = None) -> str:
        """Summarize arbitrary text; the chat and its memory are not touched."""
        system_prompt = self.settings.render_prompt(prompt)
        try:
            return self.generator.generate_raw(
                text,
                system_prompt,
                response_length=self.settings.override_response_length
            )
        except Exception as e:
            logger.error(f"Failed to summarize text: {e}")
            return ""

    def summarize_command(self, text: str = "", prompt: Optional[str] = None) -> str:
        """
        Manual summarize command.

        Args:
            text: Text to summarize; blank summarizes the active chat
            prompt: Instruction override for text summaries

        Returns:
            The summary, or an empty string on failure
        """
        text = (text or "").strip()
        if not text:
            return self.force_summarize()
        return self.summarize_text(text, prompt)

    # ------------------------------------------------------------------
    # Threshold suggestions
    # ------------------------------------------------------------------

    def tune_interval(self) -> Optional[int]:
        """Set ``prompt_interval`` from the size of the current chat."""
        value = suggest_interval(
            self.host.get_context().chat,
            self.settings,
            self.estimator,
            self.generator.max_context_size(self.settings.override_response_length)
        )
        if value is not None:
            self.settings.prompt_interval = value
        return value

    def tune_force_words(self) -> Optional[int]:
        """Set ``prompt_force_words`` from the size of the current chat."""
        value = suggest_force_words(
            self.host.get_context().chat,
            self.settings,
            self.estimator,
            self.generator.max_context_size(self.settings.override_response_length)
        )
        if value is not None:
            self.settings.prompt_force_words = value
        return value

    def shutdown(self):
        """Finish the active run and write out pending saves."""
        self._executor.shutdown(wait=True)
        self.store.flush()
