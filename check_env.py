#!/usr/bin/env python3
"""Helper script to check and create the .env file for the route optimizer."""

from pathlib import Path
import os
import sys

TEMPLATE = """# Supabase Configuration (required for stored routes)
# Get these from: https://supabase.com/dashboard → Your Project → Settings → API
STW_SUPABASE_URL=https://your-project-id.supabase.co
STW_SUPABASE_KEY=your-service-role-key-here

# API Configuration
STW_API_PREFIX=/api
# STW_FRONTEND_ALLOWED_ORIGINS accepts a JSON array or a comma-separated list
# STW_FRONTEND_ALLOWED_ORIGINS=http://localhost:3000,http://127.0.0.1:3000

# Optimization
STW_AVG_CYCLING_SPEED_MPH=12
STW_TWO_OPT_MAX_PASSES=25
STW_MAX_WAYPOINTS=50

# Run outputs
STW_DATA_ROOT=./data

# OSRM bicycle routing (public server by default)
STW_OSRM_BASE_URL=https://routing.openstreetmap.de/routed-bike
STW_OSRM_PROFILE=bike
"""


def _mask(value: str) -> str:
    return value[:20] + "..." + value[-10:] if len(value) > 20 else value


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Route Optimizer Environment Checker")
    print("=" * 60)
    print()

    if not env_file.exists():
        print(f"❌ .env file NOT found at: {env_file}")
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"✅ Created template .env file at: {env_file}")
        print("⚠️  Please edit .env and add your Supabase credentials!")
        return

    print(f"✅ Found .env file at: {env_file}")
    print("-" * 60)
    for line in env_file.read_text(encoding="utf-8").splitlines():
        if line.startswith("STW_SUPABASE_KEY="):
            name, value = line.split("=", 1)
            print(f"{name}={_mask(value.strip())}")
        else:
            print(line)
    print("-" * 60)
    print()

    for name in ("STW_SUPABASE_URL", "STW_SUPABASE_KEY"):
        value = os.getenv(name)
        if value:
            print(f"✅ {name} (from environment): {_mask(value)}")
        else:
            print(f"❌ {name} not found in environment")
    print()

    try:
        sys.path.insert(0, str(project_root / "src"))
        from spoketowork.config import settings
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        print("Make sure you're running this from the project root directory")
        return

    print(f"OSRM: {settings.osrm_base_url} (profile {settings.osrm_profile})")
    print(f"Average cycling speed: {settings.avg_cycling_speed_mph} mph")
    if settings.supabase_url and settings.supabase_key:
        print("✅ SUCCESS: Supabase is configured!")
    else:
        print("❌ ERROR: Supabase is NOT configured")
        print("Make sure variables start with the STW_ prefix and restart the backend after editing .env")


if __name__ == "__main__":
    main()
