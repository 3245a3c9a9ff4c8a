#!/usr/bin/env python3
"""
Gist Notes CLI - summarize transcripts into notes and browse their topics
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from gist_notes.errors import GistNotesError
from gist_notes.logging_config import setup_logging, get_logger

logger = get_logger("cli")
console = Console()


def get_service():
    """Build a NoteService from config.yaml and the environment."""
    from gist_notes.clustering.embedding_client import LiteLLMEmbeddingClient
    from gist_notes.config import get_config
    from gist_notes.llm import LLMProviderFactory
    from gist_notes.note_service import NoteService
    from gist_notes.storage import JsonFileStorage, StoreRepository
    from gist_notes.summarizer import SummarizationService

    config = get_config()
    provider = LLMProviderFactory.from_env(default_model=config.llm.summarize_model)
    summarizer = SummarizationService(
        provider,
        temperature=config.llm.temperature,
        max_tokens=config.llm.max_tokens,
    )
    embedder = LiteLLMEmbeddingClient(model=config.llm.embedding_model)
    repository = StoreRepository(JsonFileStorage(Path(config.storage.data_dir)))
    return NoteService(summarizer, embedder, repository, config)


def get_repository():
    """Read-only commands skip the LLM setup and load the store directly."""
    from gist_notes.config import get_config
    from gist_notes.storage import JsonFileStorage, StoreRepository

    config = get_config()
    return StoreRepository(JsonFileStorage(Path(config.storage.data_dir)))


def cmd_ingest(args):
    """Summarize a transcript and file it under a topic."""
    from gist_notes.youtube import parse_youtube_url

    if args.file == "-":
        transcript = sys.stdin.read()
    else:
        transcript = Path(args.file).read_text(encoding="utf-8")

    video_id = None
    original_url = None
    if args.url:
        info = parse_youtube_url(args.url)
        video_id = info.video_id
        original_url = info.clean_url

    service = get_service()
    result = asyncio.run(service.ingest(
        transcript,
        user_prompt=args.prompt or "",
        multi_topic=args.multi_topic,
        video_id=video_id,
        original_url=original_url,
        video_title=args.title,
    ))

    topics = service.topics
    for note_id, topic_id in zip(result.note_ids, result.topic_ids):
        if topic_id is None:
            continue
        console.print(f"[green]{note_id}[/green] -> {topics[topic_id].label} ({topic_id})")
    for note_id in result.evicted_note_ids:
        console.print(f"[yellow]Evicted {note_id} (now unfiled)[/yellow]")


def cmd_topics(args):
    """List topics with their sizes and super categories."""
    store = get_repository().load()
    if not store.topics:
        print("No topics yet. Run 'gist ingest' to add a note.")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID")
    table.add_column("Topic")
    table.add_column("Notes", justify="right")
    table.add_column("Category")
    table.add_column("Aliases")

    for topic in store.topics.values():
        if not topic.summary_ids and not args.all:
            continue
        category = store.super_categories.get(topic.super_category_id or "")
        table.add_row(
            topic.id,
            topic.label,
            str(topic.size),
            category.display_tag or category.name if category else "",
            ", ".join(topic.aliases),
        )
    console.print(table)


def cmd_notes(args):
    """List notes, optionally only those of one topic."""
    from gist_notes.clustering.text_processing import trim_title

    store = get_repository().load()
    notes = list(store.notes.values())
    if args.topic:
        notes = [n for n in notes if n.topic_id == args.topic]
    if args.orphans:
        notes = [n for n in notes if n.topic_id is None]
    if not notes:
        print("No notes found matching criteria.")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID")
    table.add_column("Topic")
    table.add_column("Summary")
    for note in notes[:args.limit]:
        topic = store.topics.get(note.topic_id or "")
        table.add_row(note.id, topic.label if topic else "-", trim_title(note.summary))
    console.print(table)

    if len(notes) > args.limit:
        print(f"... and {len(notes) - args.limit} more. Use --limit to see more.")


def cmd_show(args):
    """Show one note in full."""
    store = get_repository().load()
    note = store.notes.get(args.note_id)
    if note is None:
        print(f"Note not found: {args.note_id}")
        sys.exit(1)

    topic = store.topics.get(note.topic_id or "")
    console.print(f"[bold]{note.id}[/bold]  {note.created_at}")
    console.print(f"Topic: {topic.label if topic else '(unfiled)'}")
    console.print(f"Suggested name: {note.canonical_suggested}")
    if note.original_url:
        console.print(f"Source: {note.video_title or ''} {note.original_url}")
    if note.prominence is not None:
        console.print(f"Prominence: {note.prominence}%{' (primary)' if note.is_primary else ''}")
    if note.keywords:
        console.print(f"Keywords: {', '.join(note.keywords)}")
    if note.subjects:
        console.print(f"Subjects: {', '.join(note.subjects)}")
    console.print()
    console.print(note.summary)
    if note.full_summary:
        console.print()
        console.print("[bold]Full summary[/bold]")
        console.print(note.full_summary)


def cmd_rename(args):
    """Rename a topic (or split the given note off into the new name)."""
    service = get_service()
    outcome = asyncio.run(service.rename_topic(args.topic_id, args.name, note_id=args.note))
    print(f"{outcome.action}: {outcome.source_topic_id} -> {outcome.topic_id}")


def cmd_tag(args):
    """Set the display tag of a topic."""
    service = get_service()
    topic = asyncio.run(service.update_display_tag(args.topic_id, args.tag))
    print(f"{topic.id}: {topic.label}")


def cmd_reassign(args):
    """Move a note to another topic."""
    service = get_service()
    evicted = asyncio.run(service.reassign_note(args.note_id, args.topic_id))
    print(f"Moved {args.note_id} -> {args.topic_id}")
    for note_id in evicted:
        print(f"Evicted {note_id} (now unfiled)")


def cmd_clear(args):
    """Delete every topic, note and super category."""
    if not args.yes:
        answer = input("Delete all notes and topics? [y/N] ")
        if answer.strip().lower() != "y":
            print("Aborted.")
            return
    get_repository().clear()
    print("Cleared.")


def main():
    parser = argparse.ArgumentParser(
        prog="gist",
        description="Gist Notes - summarize transcripts and organize them into topics"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ingest command
    ingest_parser = subparsers.add_parser("ingest", help="Summarize and file a transcript")
    ingest_parser.add_argument("file", help="Transcript file, or - for stdin")
    ingest_parser.add_argument("-p", "--prompt", help="Extra instructions for the summarizer")
    ingest_parser.add_argument("-m", "--multi-topic", action="store_true",
                               help="Split into up to three topic notes")
    ingest_parser.add_argument("-u", "--url", help="YouTube URL of the source")
    ingest_parser.add_argument("-t", "--title", help="Title of the source")
    ingest_parser.set_defaults(func=cmd_ingest)

    # topics command
    topics_parser = subparsers.add_parser("topics", help="List topics")
    topics_parser.add_argument("-a", "--all", action="store_true", help="Include empty topics")
    topics_parser.set_defaults(func=cmd_topics)

    # notes command
    notes_parser = subparsers.add_parser("notes", help="List notes")
    notes_parser.add_argument("-t", "--topic", help="Only notes of this topic id")
    notes_parser.add_argument("-o", "--orphans", action="store_true", help="Only unfiled notes")
    notes_parser.add_argument("-l", "--limit", type=int, default=20, help="Max notes to show")
    notes_parser.set_defaults(func=cmd_notes)

    # show command
    show_parser = subparsers.add_parser("show", help="Show a note")
    show_parser.add_argument("note_id", help="Note id")
    show_parser.set_defaults(func=cmd_show)

    # rename command
    rename_parser = subparsers.add_parser("rename", help="Rename a topic")
    rename_parser.add_argument("topic_id", help="Topic id")
    rename_parser.add_argument("name", help="New topic name")
    rename_parser.add_argument("-n", "--note", help="Note being renamed (required for topics with several notes)")
    rename_parser.set_defaults(func=cmd_rename)

    # tag command
    tag_parser = subparsers.add_parser("tag", help="Set a topic's display tag")
    tag_parser.add_argument("topic_id", help="Topic id")
    tag_parser.add_argument("tag", help="Display tag (empty string clears it)")
    tag_parser.set_defaults(func=cmd_tag)

    # reassign command
    reassign_parser = subparsers.add_parser("reassign", help="Move a note to another topic")
    reassign_parser.add_argument("note_id", help="Note id")
    reassign_parser.add_argument("topic_id", help="Target topic id")
    reassign_parser.set_defaults(func=cmd_reassign)

    # clear command
    clear_parser = subparsers.add_parser("clear", help="Delete everything")
    clear_parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")
    clear_parser.set_defaults(func=cmd_clear)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    load_dotenv()
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)
    try:
        args.func(args)
    except (GistNotesError, KeyError, ValueError) as e:
        logger.error("%s failed: %s", args.command, e)
        sys.exit(1)


if __name__ == "__main__":
    main()
