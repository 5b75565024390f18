"""Maintenance commands for the shared tab history.

Usage:
    mru-tabs history [--json]
    mru-tabs clear
    mru-tabs check-url URL
    mru-tabs report --url URL [--title TITLE] [--index N] [--instance ID]
    mru-tabs reconcile URL [URL ...]
    mru-tabs switch-to TOKEN
    mru-tabs previous --current URL
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from mru_tabs.config import Settings
from mru_tabs.cycle.controller import TabSwitcher
from mru_tabs.exceptions import MruTabsError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mru-tabs", description=__doc__.splitlines()[0])
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    history = sub.add_parser("history", help="print the MRU history")
    history.add_argument("--json", action="store_true", help="print raw records as JSON")

    sub.add_parser("clear", help="empty the history")

    check = sub.add_parser("check-url", help="tell whether a url would be tracked")
    check.add_argument("url")

    report = sub.add_parser("report", help="record a self-report")
    report.add_argument("--url", required=True)
    report.add_argument("--title", default="")
    report.add_argument("--index", type=int, default=-1)
    report.add_argument("--instance", default="cli", help="registry id of the reporting page")

    reconcile = sub.add_parser("reconcile", help="prune history to the given open urls")
    reconcile.add_argument("urls", nargs="+")

    switch_to = sub.add_parser("switch-to", help="activate a tab by index or title")
    switch_to.add_argument("token")

    previous = sub.add_parser("previous", help="switch to the previous tab")
    previous.add_argument("--current", default="", help="url of the focused tab")
    return parser


def _print_history(switcher: TabSwitcher, as_json: bool) -> None:
    history = switcher.show_history()
    if as_json:
        print(json.dumps([tab.to_dict() for tab in history], indent=2))
        return
    if not history:
        print("(history is empty)")
        return
    for i, tab in enumerate(history):
        hint = f"#{tab.position_hint + 1}" if tab.has_position else "#?"
        print(f"{i:>3}  {hint:>4}  {tab.title}  <{tab.url}>")


async def _run(args: argparse.Namespace, switcher: TabSwitcher) -> int:
    if args.command == "history":
        _print_history(switcher, args.json)
    elif args.command == "clear":
        switcher.clear_history()
        print("History cleared")
    elif args.command == "check-url":
        tracked = switcher.check_url(args.url)
        print("tracked" if tracked else "excluded")
        return 0 if tracked else 1
    elif args.command == "report":
        record = await switcher.report(
            {"url": args.url, "title": args.title, "index": args.index}
        )
        if record is None:
            print("ignored")
            return 1
        print(record.id)
    elif args.command == "reconcile":
        history = switcher.history.reconcile(args.urls)
        print(f"{len(history)} entries")
    elif args.command == "switch-to":
        switcher.switch_to_title(args.token)
    elif args.command == "previous":
        if args.current:
            switcher.current = next(
                (tab for tab in switcher.show_history() if tab.url == args.current), None
            )
        target = await switcher.switch_to_previous(current_url=args.current)
        if target is None:
            print("No previous tab to switch to")
            return 1
        print(target.title)
        # A failed launch schedules one retry; let it run before exiting.
        await switcher.wait_pending()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    try:
        switcher = TabSwitcher.from_settings(
            Settings.from_env(), instance_id=getattr(args, "instance", None)
        )
        return asyncio.run(_run(args, switcher))
    except MruTabsError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
