#!/usr/bin/env python3
"""
Place a NETS QR order against a running backend and follow its status.

Usage:
    python scripts/watch_transaction.py [base_url] [qr_output.png]
"""
import base64
import sys

from netsqr.client import ClientState, TransactionClient


def watch_transaction(base_url: str, qr_path: str) -> int:
    client = TransactionClient(base_url)

    print(f"🔗 Connecting to: {base_url}")
    print("=" * 70)

    snapshot = client.start()
    if snapshot.state != ClientState.PLACED:
        print(f"❌ Order failed: {snapshot.error}")
        return 1

    print(f"✅ Order placed! docId: {snapshot.doc_id}")
    print(f"   Response code: {(snapshot.order_response or {}).get('response_code')}")

    if snapshot.qr_code:
        with open(qr_path, "wb") as f:
            f.write(base64.b64decode(snapshot.qr_code))
        print(f"   QR code written to {qr_path}")

    for snapshot in client.watch():
        print(f"\n📡 Status: {snapshot.status}")
        if snapshot.payload:
            print(f"   Response code: {snapshot.payload.get('response_code')}")

    print("\n" + "=" * 70)
    if snapshot.status == "SUCCESS":
        print("✅ Payment Successful")
        return 0
    print(f"❌ Payment ended with status {snapshot.status}")
    return 1


if __name__ == "__main__":
    base_url = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"
    qr_path = sys.argv[2] if len(sys.argv) > 2 else "nets_qr.png"
    sys.exit(watch_transaction(base_url, qr_path))
