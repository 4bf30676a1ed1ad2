#!/usr/bin/env python3
"""
Batch add machine favorites for several users through the API.

Usage:
    API_URL=http://localhost:8000 API_TOKEN=<admin id token> \
        python scripts/batch_add_favorites.py users.json

users.json holds a list like:
    [{"userId": "USER_ID", "bu": "vn", "site": "thiv"}]
"""

import json
import os
import sys
import time

import requests

API_URL = os.getenv("API_URL", "http://localhost:8000")
API_TOKEN = os.getenv("API_TOKEN", "")
REQUEST_DELAY_SECONDS = 0.5


def add_favorites_for_user(user, index, total):
    print(f"[{index + 1}/{total}] Processing: {user['userId']} ({user['bu']}/{user['site']})")
    headers = {"Authorization": f"Bearer {API_TOKEN}"} if API_TOKEN else {}

    try:
        response = requests.post(f"{API_URL}/api/add-favorites", json=user, headers=headers, timeout=30)
        data = response.json()
    except (requests.exceptions.RequestException, ValueError) as e:
        print(f"    ❌ Request failed: {e}\n")
        return {**user, "success": False, "error": str(e)}

    if response.ok and data.get("success"):
        print(f"    ✅ Success! Added {data.get('count', 0)} machines\n")
        return {**user, "success": True, "count": data.get("count", 0)}

    error = data.get("error") or data.get("message") or response.status_code
    print(f"    ❌ Error: {error}\n")
    return {**user, "success": False, "error": error}


def main(argv):
    if len(argv) < 2:
        print(__doc__)
        return 1

    with open(argv[1], encoding="utf-8") as f:
        users = json.load(f)

    if not users:
        print("⚠️  No users configured.")
        return 0

    print(f"\n📝 Processing {len(users)} user(s)...\n")
    results = []
    for i, user in enumerate(users):
        results.append(add_favorites_for_user(user, i, len(users)))
        if i < len(users) - 1:
            time.sleep(REQUEST_DELAY_SECONDS)

    succeeded = [r for r in results if r["success"]]
    print("=" * 60)
    print("SUMMARY")
    print("=" * 60)
    print(f"✅ Successful: {len(succeeded)}")
    print(f"❌ Failed: {len(results) - len(succeeded)}")
    print(f"📊 Total machines added: {sum(r.get('count', 0) for r in succeeded)}")
    return 0 if len(succeeded) == len(results) else 1


if __name__ == "__main__":
    sys.exit(main(sys.argv))
