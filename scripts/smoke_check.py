#!/usr/bin/env python3
"""Post-deploy smoke check for a PersonaPass backend.

Usage: python scripts/smoke_check.py [BASE_URL]

Calls /health, /api/status and /api/blockchain/status and exits non-zero
if any of them fails. A chain still reporting ``initializing`` is a warning,
not a failure: validators take 5-10 minutes to come up after a rollout.
"""

import sys

import requests

DEFAULT_BASE = "http://localhost:3001"


def get(base, path):
    try:
        r = requests.get(f"{base}{path}", timeout=10)
    except requests.RequestException as exc:
        print(f"  FAIL {path} -> {exc.__class__.__name__}: {exc}")
        return None
    if r.status_code != 200:
        print(f"  FAIL {path} -> {r.status_code}: {r.text[:200]}")
        return None
    try:
        body = r.json()
    except ValueError:
        print(f"  FAIL {path} -> non-JSON body: {r.text[:200]}")
        return None
    if not isinstance(body, dict):
        print(f"  FAIL {path} -> unexpected body: {r.text[:200]}")
        return None
    return body


def main(argv):
    base = (argv[1] if len(argv) > 1 else DEFAULT_BASE).rstrip("/")
    print(f"Checking {base}")
    failures = 0

    health = get(base, "/health")
    if health is None or health.get("status") != "operational":
        if health is not None:
            print(f"  FAIL /health -> status {health.get('status')!r}")
        failures += 1
    else:
        print(f"  OK   /health (env={health.get('environment')}, uptime={health.get('uptime')}s)")

    status = get(base, "/api/status")
    if status is None or not status.get("success"):
        failures += 1
    else:
        print("  OK   /api/status")

    chain = get(base, "/api/blockchain/status")
    blockchain = (chain or {}).get("blockchain")
    state = blockchain.get("status") if isinstance(blockchain, dict) else None
    if state is None:
        if chain is not None:
            print("  FAIL /api/blockchain/status -> missing blockchain.status")
        failures += 1
    else:
        label = "OK  " if state == "operational" else "WARN"
        print(f"  {label} /api/blockchain/status ({state})")

    if failures:
        print(f"{failures} check(s) failed")
        return 1
    print("All checks passed")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
