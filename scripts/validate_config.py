#!/usr/bin/env python3
"""Configuration validation script.

Loads the engine configuration (defaults, config/engine.yaml, and an optional
YAML file given on the command line) and reports every validation error.

Usage:
    python scripts/validate_config.py [path/to/config_dir]
"""

import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from spotwatch_app.config.loader import ConfigLoader  # noqa: E402
from spotwatch_app.errors import ConfigurationError  # noqa: E402


def main() -> int:
    """Main validation function."""
    config_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    loader = ConfigLoader.create(config_dir)

    print(f"🔍 Validating engine configuration in {loader.config_dir}...")

    try:
        config = loader.load()
    except ConfigurationError as e:
        print(f"❌ Found {len(e.errors)} validation errors:")
        for error in e.errors:
            print(f"  • {error.field}: {error.message} (value: {error.value})")
        if not e.errors:
            print(f"  • {e}")
        return 1

    schedule = config.schedule
    print(f"✅ Configuration is valid")
    print(f"  • Timezone: {schedule.timezone}")
    print(f"  • Opens: weekday {schedule.open_weekday} {schedule.open_hour:02d}:{schedule.open_minute:02d}")
    print(f"  • Closes: weekday {schedule.close_weekday} {schedule.close_hour:02d}:{schedule.close_minute:02d}")
    print(f"  • Poll interval: {config.polling.default_interval_seconds}s "
          f"(fast-confirm {config.polling.confirm_interval_seconds}s)")
    if not config.feed.api_key:
        print(f"⚠️  {config.feed.api_key_env} is not set; the live feed client will refuse to start")
    return 0


if __name__ == "__main__":
    sys.exit(main())
