"""Entrypoint: python -m racetime_client"""
from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Any, Sequence

from racetime_client.client import RacetimeClient
from racetime_client.config import settings

logger = logging.getLogger("racetime_client")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="racetime_client",
        description="Talk to racetime.gg as a category bot. Credentials come from RACETIME_* settings.",
    )
    parser.add_argument("--category", default=None, help="category slug (default: RACETIME_CATEGORY)")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL)
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("races", help="list the category's current races")

    race = sub.add_parser("race", help="print a race snapshot")
    race.add_argument("url", help="race path, e.g. /category/slug-1234")

    watch = sub.add_parser("watch", help="join a race room and log its events")
    watch.add_argument("url")

    say = sub.add_parser("say", help="post a chat message to a race room")
    say.add_argument("url")
    say.add_argument("text")
    say.add_argument("--pin", action="store_true")

    cancel = sub.add_parser("cancel", help="cancel a race")
    cancel.add_argument("url")
    return parser


async def run(args: argparse.Namespace) -> int:
    async with RacetimeClient(category=args.category) as client:
        if args.command == "races":
            for race in await client.list_current_races():
                print(f"{race.url}\t{race.status.value}\t{race.name}")
            return 0

        if args.command == "race":
            details = await client.fetch_race_details(args.url)
            if details is None:
                logger.error("No race data for %s", args.url)
                return 1
            print(details.model_dump_json(indent=2))
            return 0

        if args.command == "say":
            await client.send_message(args.url, args.text, pin=args.pin)
            return 0

        if args.command == "cancel":
            cancelled = await client.cancel_race(args.url)
            print("cancelled" if cancelled else "not cancelled")
            return 0 if cancelled else 1

        return await _watch(client, args.url)


async def _watch(client: RacetimeClient, race_url: str) -> int:
    details = await client.fetch_race_details(race_url)
    if details is None:
        logger.error("No race data for %s", race_url)
        return 1

    def _chat(endpoint: str, frame: Any) -> None:
        user = frame.message.user.name if frame.message.user else "system"
        logger.info("[%s] %s: %s", endpoint, user, frame.message.message_plain)

    def _race(endpoint: str, frame: Any) -> None:
        logger.info("[%s] race is %s", endpoint, frame.race.status.value)

    def _errors(endpoint: str, frame: Any) -> None:
        logger.warning("[%s] errors: %s", endpoint, ", ".join(frame.errors))

    client.on("chat-message", _chat)
    client.on("race-data", _race)
    client.on("race-error", _errors)
    await client.join_room(details.websocket_bot_url)

    session = client.room(details.websocket_bot_url)
    try:
        # the registry forgets the session once it is closed for good
        while session is not None and client.room(details.websocket_bot_url) is session:
            await asyncio.sleep(1)
    except asyncio.CancelledError:
        pass
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
