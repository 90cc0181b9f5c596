# roulette/cli.py
from __future__ import annotations

import argparse
import asyncio
from typing import List, Optional

from . import config
from .client import PortalClient
from .session import SwipeSession


async def replay(drags: List[float], base_url: str, token: Optional[str]) -> SwipeSession:
    """Load a batch, then release one horizontal drag per value in ``drags``."""
    async with PortalClient(base_url=base_url, token=token) as client:
        session = SwipeSession(source=client, sink=client)
        if not await session.start():
            print("Initial load failed.")
        for dx in drags:
            if session.stack.head().is_empty:
                print("Stack is empty; stopping.")
                break
            head = session.stack.head().candidate
            session.begin(0.0, 0.0)
            session.update(dx, 0.0)
            result = session.end()
            print(f"{head.title} @ {head.organization}: dx={dx:+.0f} -> {result.outcome.value}")
        await session.lifetime.drain()
        await session.close()
    return session


def main(argv: Optional[List[str]] = None) -> None:
    ap = argparse.ArgumentParser(description="Replay swipe drags against the portal backend")
    ap.add_argument("--drag", type=float, action="append", default=[],
                    help="Horizontal drag distance; repeat for several swipes")
    ap.add_argument("--base-url", default=config.API_BASE_URL)
    ap.add_argument("--token", default=config.API_TOKEN)
    args = ap.parse_args(argv)

    session = asyncio.run(replay(args.drag, args.base_url, args.token))

    tally = session.tally
    print(f"Swiped: {tally.total} | Saved: {tally.accepted} | Passed: {tally.rejected}")
    for layer in session.frame().layers:
        print(f"  [{layer.index}] {layer.candidate.title} ({layer.candidate.id})")
    for note in session.notifications.active():
        print(f"  ! {note.message}")


if __name__ == "__main__":
    main()
