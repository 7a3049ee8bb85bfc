"""
Dynmap watcher - prints player movements on a live map.

Entry point for the script workflow:
    python -m dynmap.watch [--url URL] [--world W ...] [--duration 60] [--config config.yaml]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional

from .api.http import Transport
from .api.models import Player
from .client import Dynmap
from .config import load_config
from .errors import DynmapError, TrackingError
from .tracker.events import ERROR, PLAYER_ADDED, PLAYER_REMOVED, PLAYER_UPDATE


def _describe(player: Player) -> str:
    if not player.visible:
        return f"{player.account} (hidden)"
    return f"{player.account} @ {player.world} ({player.x:.0f}, {player.y:.0f}, {player.z:.0f})"


def _attach_printers(dynmap: Dynmap) -> None:
    dynmap.on(PLAYER_ADDED, lambda p: print(f"  + {_describe(p)}"))
    dynmap.on(PLAYER_UPDATE, lambda p: print(f"  ~ {_describe(p)}"))
    dynmap.on(PLAYER_REMOVED, lambda p: print(f"  - {p.account}"))
    dynmap.on(ERROR, lambda e: print(f"  ! {e}"))


async def run(
    url: Optional[str] = None,
    worlds: Optional[list[str]] = None,
    duration: float = 60,
    config_path: str = "config.yaml",
    show_markers: bool = False,
    transport: Optional[Transport] = None,
) -> None:
    """High-level entry: load config, connect, track, print until done."""
    config = load_config(config_path, url=url)

    print(f"Connecting to {config['url']}...\n")
    async with await Dynmap.connect(
        config["url"],
        config_path=config["config_path"],
        timeout=config["timeout"],
        headers=config.get("headers") or None,
        poll_interval=config.get("poll_interval"),
        transport=transport,
    ) as dynmap:
        print(f"  Worlds: {', '.join(dynmap.worlds)}")
        print(f"  Default: {dynmap.default_world}")
        print(f"  Interval: {dynmap.update_interval:.1f}s\n")

        targets = worlds or config.get("worlds") or [dynmap.default_world]

        if show_markers:
            for world in targets:
                try:
                    sets = await dynmap.get_markers(world)
                except DynmapError as e:
                    print(f"  ! Markers for {world}: {e}")
                    continue
                print(f"  Markers in {world}:")
                for set_id, group in sets.items():
                    count = len(group.get("markers", {}))
                    print(f"    {group.get('label', set_id)}: {count} markers")
            print()

        _attach_printers(dynmap)
        for world in targets:
            try:
                dynmap.track(world)
            except TrackingError as e:
                print(f"  ! {e}")

        print("=" * 60)
        await asyncio.sleep(duration)
        print("=" * 60)
        print(f"Players online: {len(dynmap.players)}")
        print(f"Server time: {dynmap.server_time}")


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Watch players on a Dynmap server")
    parser.add_argument("--url", default=None, help="Base URL of the map")
    parser.add_argument(
        "--world", action="append", dest="worlds", help="World to track (repeatable)"
    )
    parser.add_argument(
        "--duration", type=float, default=60, help="Seconds to watch (default: 60)"
    )
    parser.add_argument(
        "--config", default="config.yaml", help="Config file path"
    )
    parser.add_argument(
        "--markers", action="store_true", help="Print marker sets before tracking"
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        asyncio.run(
            run(
                url=args.url,
                worlds=args.worlds,
                duration=args.duration,
                config_path=args.config,
                show_markers=args.markers,
            )
        )
    except KeyboardInterrupt:
        print("\nStopped.")


if __name__ == "__main__":
    main()
