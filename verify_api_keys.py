"""
API key verification script.

Tests the OpenAI, Deepgram and Cartesia API keys from the environment (or a
``.env`` file) and exits with status 1 if any of them fails.

Usage:
    python verify_api_keys.py
"""

import sys
from pathlib import Path

import dotenv

from dealer_voice.config.settings import Settings
from dealer_voice.services.key_verification import run_all_checks


def main() -> int:
    env_path = Path(".") / ".env"
    if env_path.exists():
        dotenv.load_dotenv(env_path)

    print("🔍 Verifying API Keys...\n")

    results = run_all_checks(Settings())
    for result in results.values():
        mark = "✅" if result.ok else "❌"
        print(f"{mark} {result.service}: {result.detail}")
        for note in result.notes:
            print(f"   {note}")

    print("\n" + "─" * 60)

    if all(result.ok for result in results.values()):
        print("✅ ALL API KEYS VERIFIED - Ready for live mode!")
        return 0

    print("❌ Some API keys failed verification")
    print("\nCheck your .env file and try again.")
    return 1


if __name__ == "__main__":
    sys.exit(main())
