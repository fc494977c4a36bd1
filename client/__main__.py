"""
Stream one explanation to the terminal through the consumer.

Run: python -m client "volcanoes" --token "$MINDSPARK_TOKEN"
     python -m client --history

Text is printed at render cadence, not per network chunk.
"""
from __future__ import annotations

import argparse
import asyncio
import sys

from client.config import ClientSettings
from client.consumer import StreamConsumer
from client.state import ClientStreamState, Phase
from client.transport import RelayClient


async def main() -> int:
    settings = ClientSettings()
    parser = argparse.ArgumentParser(description="Stream an explanation from a Mind Spark relay.")
    parser.add_argument("topic", nargs="?", help="What do you want to learn about?")
    parser.add_argument("--base-url", default=settings.base_url, help=f"Relay URL (default {settings.base_url})")
    parser.add_argument("--token", default=settings.token, help="Bearer token (default $MINDSPARK_TOKEN)")
    parser.add_argument("--interval", type=float, default=settings.render_interval, help="Render interval in seconds")
    parser.add_argument("--history", action="store_true", help="List recent topics instead of generating")
    args = parser.parse_args()

    if not args.topic and not args.history:
        parser.error("a topic is required unless --history is given")

    relay = RelayClient(args.base_url, args.token, timeout=settings.timeout)
    async with StreamConsumer(relay, render_interval=args.interval) as consumer:
        if args.history:
            entries = await consumer.refresh_history()
            if consumer.history_error:
                print(consumer.history_error, file=sys.stderr)
                return 1
            for entry in entries:
                print(f"{entry.created_at or '-'}  {entry.topic}")
            if not entries:
                print("No search history yet.")
            return 0

        printed = 0

        def show(state: ClientStreamState) -> None:
            nonlocal printed
            if state.phase == Phase.STREAMING and state.artifact_reference and printed == 0 and not state.visible_text:
                print(f"[image] {state.artifact_reference}")
            if len(state.visible_text) > printed:
                sys.stdout.write(state.visible_text[printed:])
                sys.stdout.flush()
                printed = len(state.visible_text)

        consumer.subscribe(show)
        final = await consumer.generate(args.topic)
        print()
        if final.phase == Phase.FAILED:
            print(final.error, file=sys.stderr)
            return 1
        return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
