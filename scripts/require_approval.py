#!/usr/bin/env python3
"""
Pause for explicit approval before changing a protected environment.

Usage:
  python scripts/require_approval.py && alembic upgrade head
  # ENVIRONMENT is read from the shell or .env

Exits 0 when the environment is not protected or the operator typed
"yes"; exits 1 otherwise, including when stdin is closed.
"""
import os
import sys
from typing import Callable, Iterable

from dotenv import load_dotenv

_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
load_dotenv(os.path.join(_root, ".env"))

# Add project root to path
sys.path.insert(0, _root)

from app.config import settings

CONFIRMATION = "yes"


def require_approval(
    environment: str,
    protected: Iterable[str],
    ask: Callable[[str], str] = input,
) -> int:
    env = (environment or "development").strip().lower()
    if env not in protected:
        return 0

    print(f"\nWARNING: you are about to change the [ {env.upper()} ] environment.")
    print("Explicit approval is required before continuing.")
    try:
        answer = ask(f'Do you have approval to proceed? (type "{CONFIRMATION}" to continue): ')
    except EOFError:
        answer = ""

    if answer.strip().lower() == CONFIRMATION:
        print("Approval confirmed. Proceeding.\n")
        return 0
    print("Operation cancelled: approval not given.\n", file=sys.stderr)
    return 1


def main():
    environment = os.getenv("ENVIRONMENT", settings.ENVIRONMENT)
    sys.exit(require_approval(environment, settings.PROTECTED_ENVIRONMENTS))


if __name__ == "__main__":
    main()
