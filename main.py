#!/usr/bin/env python3
"""Main entry point for the IRC session runner."""

import sys
import asyncio
import logging

from bot import SessionBot, load_settings
from bot import console


async def main():
    """Main function."""
    settings = load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    print("="*60)
    print("IRC Session")
    print("="*60)
    print(f"Server: {settings.server}:{settings.port} (SSL: {settings.use_ssl})")
    print(f"Nick: {settings.nick}")
    print(f"Channels: {', '.join(settings.channels)}")
    print(f"Request modes on join: {settings.request_modes}")
    print("="*60)

    bot = SessionBot(
        server=settings.server,
        port=settings.port,
        nick=settings.nick,
        channels=settings.channels,
        use_ssl=settings.use_ssl,
        request_modes=settings.request_modes
    )
    console.attach(bot.connection)

    print("\nStarting session...\n")
    await bot.run_forever()


if __name__ == '__main__':
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nShutdown requested...")
        sys.exit(0)
