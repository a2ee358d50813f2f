#!/usr/bin/env python3
"""
Live Feed Example - Market Status Engine

Runs the engine against the live metals feed and prints the published
snapshot once a minute. It shows how to:
- Load configuration (defaults, config/engine.yaml, environment API key)
- Start the engine's poller and daily reference refresh
- Read status, deltas and the session reference as a consumer would

Requires SPOTWATCH_API_KEY in the environment.

Run: python examples/live_feed.py
"""

import json
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from spotwatch_app.config.loader import ConfigLoader  # noqa: E402
from spotwatch_app.engine import MarketStatusEngine  # noqa: E402
from spotwatch_app.errors import ConfigurationError  # noqa: E402
from spotwatch_app.logging.config import configure_from_params  # noqa: E402


def main() -> int:
    try:
        config = ConfigLoader.create().load()
        configure_from_params(config.logging)
        engine = MarketStatusEngine(config=config)
    except ConfigurationError as e:
        print(f"❌ Cannot start: {e}")
        return 1

    engine.start()
    print("🚀 Engine started, press Ctrl-C to stop")

    try:
        while True:
            snapshot = engine.snapshot()
            print(json.dumps(snapshot.to_dict(), indent=2))
            print(f"Session reference for pricing: {engine.get_session_reference()}")
            time.sleep(60)
    except KeyboardInterrupt:
        pass
    finally:
        engine.stop()

    return 0


if __name__ == "__main__":
    sys.exit(main())
