#!/usr/bin/env python3
"""
Basic usage examples for the Detectify client library.

Reads credentials from DETECTIFY_API_KEY and DETECTIFY_SIGNATURE and lists
the assets of the account.
"""

import logging
import sys
import time

from detectify_client import DetectifyClient, DetectifyClientError, calculate_signature


def main():
    """Run basic usage examples."""
    logging.basicConfig(level=logging.DEBUG, format="%(name)s %(levelname)s %(message)s")

    print("=== Detectify Client Basic Usage Examples ===\n")

    # Example 1: Calculate a signature by hand
    print("1. Calculating a signature...")
    timestamp = int(time.time())
    signature = calculate_signature("GET", "/rest/v2/assets/", "example-key", "c2VjcmV0", timestamp)
    print(f"   Timestamp: {timestamp}")
    print(f"   Signature length: {len(signature)}\n")

    try:
        # Example 2: Create client from environment
        print("2. Creating client from environment...")
        client = DetectifyClient.from_env()
        print(f"   Client created for: {client.base_url}")
        print(f"   Signing: {'enabled' if client.adapter.signing_enabled else 'disabled'}\n")
    except DetectifyClientError as e:
        print(f"   ✗ {e}")
        return 1

    with client:
        # Example 3: Authenticated GET request
        print("3. Listing assets...")
        try:
            response = client.get("/v2/assets/")
        except DetectifyClientError as e:
            print(f"   ✗ Request failed: {e}")
            return 1

        if response.status_code == 200:
            assets = response.json().get("assets", [])
            print(f"   ✓ {len(assets)} assets")
            for asset in assets:
                print(f"   - {asset.get('name')}")
        else:
            print(f"   ✗ GET request failed: {response.status_code}")
            print(f"   Response: {response.text}")
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
