#!/usr/bin/env python3
"""Chat Memory Summarizer CLI."""

import argparse
import json
import logging
import sys
from typing import Optional, Tuple

from config.settings import MemorySettings, Settings
from schemas.memory import PromptBuilder
from llm.factory import create_llm_client_from_settings
from llm.generator import TextGenerator
from memory.host import LocalChatHost
from memory.sqlite_store import SQLiteChatStore
from memory.tokens import TokenBudgetEstimator
from orchestrator import SummarizationOrchestrator
from stats import EXAMPLE_RULE_SET, StatRuleEngine, load_rule_set

logger = logging.getLogger(__name__)

BUILDERS = {
    "default": PromptBuilder.DEFAULT,
    "raw-blocking": PromptBuilder.RAW_BLOCKING,
    "raw-non-blocking": PromptBuilder.RAW_NON_BLOCKING,
}


def build_orchestrator(
    settings: Settings,
    chat_id: Optional[str]
) -> Tuple[SummarizationOrchestrator, LocalChatHost]:
    """Wire a host over the stored chat to a summarizer."""
    store = SQLiteChatStore(db_path=settings.db_path)
    context = store.load_chat(chat_id) if chat_id else None
    if chat_id and context is None:
        context = store.create_chat(chat_id, character_id=chat_id)
        logger.info(f"Created chat {chat_id}")

    host = LocalChatHost(context=context, store=store)
    estimator = TokenBudgetEstimator(encoding_name=settings.token_encoding)
    generator = TextGenerator(
        llm_client=create_llm_client_from_settings(settings),
        estimator=estimator,
        max_context_tokens=settings.max_context_tokens,
        default_response_length=settings.default_response_length
    )
    orchestrator = SummarizationOrchestrator.from_settings(host, generator, settings)
    # Seed the displayed memory and the trigger snapshot from the stored chat
    orchestrator.on_chat_event()
    return orchestrator, host


def cmd_summarize(args, settings: Settings) -> int:
    orchestrator, _ = build_orchestrator(settings, args.chat_id)
    try:
        summary = orchestrator.summarize_command(args.text or "", prompt=args.prompt)
    finally:
        orchestrator.shutdown()

    if not summary:
        print("No summary was produced.", file=sys.stderr)
        return 1
    print(summary)
    return 0


def cmd_message(args, settings: Settings) -> int:
    orchestrator, host = build_orchestrator(settings, args.chat_id)
    try:
        host.add_message(args.name, args.text, is_user=args.user)
        host.save_chat()
        future = orchestrator.on_chat_event()
        if future is not None:
            result = future.result()
            print(f"Summary: {result.status.value}")
            if result.committed:
                print(result.summary)
    finally:
        orchestrator.shutdown()
    return 0


def cmd_restore(args, settings: Settings) -> int:
    orchestrator, _ = build_orchestrator(settings, args.chat_id)
    try:
        previous = orchestrator.restore_previous()
    finally:
        orchestrator.shutdown()
    print(previous or "(no memory)")
    return 0


def cmd_tune(args, settings: Settings) -> int:
    orchestrator, _ = build_orchestrator(settings, args.chat_id)
    try:
        interval = orchestrator.tune_interval()
        force_words = orchestrator.tune_force_words()
    finally:
        orchestrator.shutdown()
    print(json.dumps({"prompt_interval": interval, "prompt_force_words": force_words}, indent=2))
    return 0


def cmd_chats(args, settings: Settings) -> int:
    store = SQLiteChatStore(db_path=settings.db_path)
    chats = store.list_chats(limit=args.limit)
    if not chats:
        print("No chats stored.")
        return 0
    for chat in chats:
        owner = f"group {chat.group_id}" if chat.group_id else f"character {chat.character_id}"
        print(f"{chat.chat_id}\t{owner}")
    return 0


def cmd_stats(args, settings: Settings) -> int:
    rule_set = load_rule_set(args.rules) if args.rules else EXAMPLE_RULE_SET
    engine = StatRuleEngine()
    answers = engine.extract(rule_set, args.text)
    values = engine.apply_effects(rule_set, answers, {stat: args.initial for stat in rule_set.stats})
    output = {
        "answers": answers,
        "values": values,
        "injections": engine.active_injections(rule_set, values, char_name=args.char),
    }
    print(json.dumps(output, indent=2))
    return 0


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Chat Memory Summarizer - rolling summaries for long conversations"
    )
    parser.add_argument(
        "--db-path",
        type=str,
        default="data/chats.db",
        help="SQLite chat database (default: data/chats.db)"
    )
    parser.add_argument(
        "--provider",
        type=str,
        choices=["openai", "anthropic"],
        default="openai",
        help="LLM provider (default: openai)"
    )
    parser.add_argument("--model", type=str, help="Model override")
    parser.add_argument(
        "--builder",
        type=str,
        choices=sorted(BUILDERS),
        default="default",
        help="How the summarization prompt is assembled (default: default)"
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=10,
        help="Messages between automatic summaries (default: 10)"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    summarize = subparsers.add_parser("summarize", help="Summarize a chat or a piece of text")
    summarize.add_argument("--chat-id", type=str, help="Chat to summarize")
    summarize.add_argument("--text", "-t", type=str, help="Text to summarize instead of the chat")
    summarize.add_argument("--prompt", "-p", type=str, help="Instruction override for text summaries")
    summarize.set_defaults(func=cmd_summarize)

    message = subparsers.add_parser("message", help="Append a message and summarize if due")
    message.add_argument("--chat-id", type=str, required=True)
    message.add_argument("--name", type=str, required=True, help="Speaker name")
    message.add_argument("--text", "-t", type=str, required=True)
    message.add_argument("--user", action="store_true", help="Message is from the user")
    message.set_defaults(func=cmd_message)

    restore = subparsers.add_parser("restore", help="Drop the latest memory of a chat")
    restore.add_argument("--chat-id", type=str, required=True)
    restore.set_defaults(func=cmd_restore)

    tune = subparsers.add_parser("tune", help="Suggest interval and force-words thresholds")
    tune.add_argument("--chat-id", type=str, required=True)
    tune.set_defaults(func=cmd_tune)

    chats = subparsers.add_parser("chats", help="List stored chats, most recent first")
    chats.add_argument("--limit", type=int, default=50, help="Maximum number of chats (default: 50)")
    chats.set_defaults(func=cmd_chats)

    stats = subparsers.add_parser("stats", help="Extract stat answers from generated text")
    stats.add_argument("--rules", type=str, help="YAML or JSON rule set (default: built-in example)")
    stats.add_argument("--text", "-t", type=str, required=True)
    stats.add_argument("--char", type=str, default="", help="Character name for {{char}}")
    stats.add_argument("--initial", type=float, default=0, help="Starting value of every stat")
    stats.set_defaults(func=cmd_stats)

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )

    settings = Settings(
        db_path=args.db_path,
        llm_provider=args.provider,
        llm_model=args.model,
        verbose=args.verbose,
        memory=MemorySettings(
            prompt_builder=BUILDERS[args.builder],
            prompt_interval=args.interval,
        ),
    )

    try:
        sys.exit(args.func(args, settings))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
