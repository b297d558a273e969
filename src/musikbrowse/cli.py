"""Simple interactive shell around the musikbrowse browsing session."""

from __future__ import annotations

import argparse
import sys

from mpd import MPDError

from musikbrowse.config import DEFAULT_CONFIG_PATH, load_config
from musikbrowse.items import Item, item_name
from musikbrowse.logging_config import setup_logging
from musikbrowse.matching import item_to_string
from musikbrowse.metadata import read_tags
from musikbrowse.remote import LibraryClient, MPDQueue
from musikbrowse.session import BrowserSession

HELP = """\
Commands:
  ls                 show the listing
  go <n>             move the cursor to row n
  enter [n]          open row n (directory, song or playlist)
  up                 go to the parent directory
  cd <path>          browse <path>
  add [n]            queue row n
  play [n]           queue row n and start playing it
  sel [n]            toggle the selection of row n
  rsel               reverse the selection
  songs              list the songs behind the selection
  filter [pattern]   show matching rows only (no pattern: show all)
  search <pattern>   find matching rows
  next / prev        jump to the next / previous match
  rm [n]             delete row n from disk
  mode               switch between MPD database and local filesystem
  pwd                show the current directory
  quit"""


def _status(message: str) -> None:
    print(f"  {message}")


def _print_listing(session: BrowserSession) -> None:
    view = session.view
    cfg = session.config
    cursor = view.cursor_index()
    for index, row in enumerate(view):
        marker = ">" if index == cursor else " "
        flags = ("*" if row.selected else " ") + ("+" if row.highlighted else " ")
        print(f"{marker}{index:4d} {flags} {item_to_string(row.item, cfg)}")
    if view.empty():
        print("  (empty)")


def _goto(session: BrowserSession, arg: str | None) -> None:
    if arg is not None:
        session.view.move_cursor_to(int(arg))


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="musikbrowse – browse an MPD library or the local filesystem",
    )
    parser.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help=f"Path to TOML config file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="MPD host name or UNIX socket path",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="MPD port",
    )
    parser.add_argument(
        "--music-dir",
        default=None,
        help="MPD music directory (needed to delete files over TCP)",
    )
    parser.add_argument(
        "--local",
        action="store_true",
        default=None,
        help="Start in the local filesystem (requires a UNIX socket)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    args = parser.parse_args(argv)

    try:
        cfg = load_config(args.config)
    except ValueError as exc:
        print(f"Invalid configuration: {exc}")
        sys.exit(2)

    # CLI flags override config values (only when explicitly provided)
    if args.host is not None:
        cfg.mpd_host = args.host
    if args.port is not None:
        cfg.mpd_port = args.port
    if args.music_dir is not None:
        cfg.mpd_music_dir = args.music_dir
    if args.local is not None:
        cfg.start_local = args.local
    if args.log_level is not None:
        cfg.log_level = args.log_level

    setup_logging(cfg.log_level, cfg.log_file)

    try:
        library = LibraryClient.connect(
            cfg.mpd_host,
            cfg.mpd_port,
            music_dir=cfg.mpd_music_dir,
            on_status=_status,
        )
    except (MPDError, OSError) as exc:
        print(f"Cannot connect to MPD at {cfg.mpd_host}: {exc}")
        sys.exit(1)

    queue = MPDQueue(library.mpd, on_status=_status)
    session = BrowserSession(
        library, queue, cfg, read_tags=read_tags, on_status=_status
    )
    session.show()

    print("musikbrowse – interactive mode (type 'help' for commands)")
    print()

    while True:
        try:
            raw = input(f"musikbrowse:{session.current_path}> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break

        if not raw:
            continue

        parts = raw.split(maxsplit=1)
        cmd = parts[0].lower()
        arg = parts[1] if len(parts) > 1 else None

        try:
            if cmd == "quit":
                break
            elif cmd == "help":
                print(HELP)
            elif cmd == "ls":
                session.refresh_highlights()
                _print_listing(session)
            elif cmd == "go":
                _goto(session, arg)
            elif cmd == "enter":
                _goto(session, arg)
                session.enter()
                _print_listing(session)
            elif cmd == "up":
                if session.current_path != "/":
                    session.view.move_cursor_to(0)
                    session.enter()
                _print_listing(session)
            elif cmd == "cd":
                session.navigate(arg or "/")
                _print_listing(session)
            elif cmd in ("add", "play"):
                _goto(session, arg)
                session.add_to_queue(append=cmd == "add")
            elif cmd == "sel":
                _goto(session, arg)
                session.toggle_selection()
            elif cmd == "rsel":
                session.reverse_selection()
            elif cmd == "songs":
                for song in session.expand_selection():
                    print(f"  {song.uri}")
            elif cmd == "filter":
                session.apply_filter(arg or "")
                _print_listing(session)
            elif cmd == "search":
                if session.search(arg or ""):
                    session.next_found(wrap=True)
                    _print_listing(session)
            elif cmd == "next":
                session.next_found(wrap=True)
            elif cmd == "prev":
                session.prev_found(wrap=True)
            elif cmd == "rm":
                _goto(session, arg)
                row = session.view.current()
                if row is not None and _confirm(row.item):
                    if not session.delete():
                        print("  Nothing deleted")
            elif cmd == "mode":
                if session.toggle_mode():
                    _print_listing(session)
            elif cmd == "pwd":
                print(f"  {session.current_path} ({session.mode.name.lower()})")
            else:
                print(f"  Unknown command: {cmd}")
        except ValueError as exc:
            print(f"  Error: {exc}")


def _confirm(item: Item) -> bool:
    kind = type(item).__name__.lower()
    try:
        answer = input(f'  Delete {kind} "{item_name(item)}"? [y/N] ')
    except (EOFError, KeyboardInterrupt):
        return False
    return answer.strip().lower() == "y"


if __name__ == "__main__":
    main()
