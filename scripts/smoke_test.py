#!/usr/bin/env python3
"""
Smoke test for a running ApplyMail server.

Usage:
    python scripts/smoke_test.py [base_url] [--send]

Without --send only the health check and a rejected submission are exercised,
so no email leaves the server.
"""

import json
import sys

import requests

API_BASE_URL = "http://localhost:5000"

# Smallest valid PDF a mail client will still open
SAMPLE_PDF = (
    b"%PDF-1.4\n1 0 obj<</Type/Catalog/Pages 2 0 R>>endobj\n"
    b"2 0 obj<</Type/Pages/Count 0/Kids[]>>endobj\n"
    b"trailer<</Root 1 0 R>>\n%%EOF\n"
)

SAMPLE_APPLICATION = {
    "nom": "Dupont",
    "prenom": "Jean",
    "nationalite": "Béninoise",
    "situation_matrimoniale": "Célibataire",
    "age": "32",
    "telephone": "+22997000000",
    "metier": "Matelot",
}


def check_health(base_url: str) -> bool:
    """Check the liveness endpoint"""
    print("🔍 Testing health check...")

    response = requests.get(f"{base_url}/health", timeout=10)
    if response.status_code == 200:
        print("✅ Health check passed")
        print(json.dumps(response.json(), indent=2, ensure_ascii=False))
    else:
        print(f"❌ Health check failed: {response.status_code}")

    return response.status_code == 200


def check_rejected_submission(base_url: str) -> bool:
    """A submission without required fields must be refused with 400"""
    print("\n🚫 Testing rejected submission...")

    response = requests.post(
        f"{base_url}/api/send-application",
        data={"nom": "Dupont"},
        timeout=30,
    )
    if response.status_code == 400 and response.json().get("success") is False:
        print(f"✅ Rejected as expected: {response.json()['message']}")
        return True

    print(f"❌ Unexpected response: {response.status_code} {response.text}")
    return False


def check_send_application(base_url: str) -> bool:
    """Send a real application, this delivers an email"""
    print("\n📝 Testing application submission...")

    files = [
        ("cv", ("cv.pdf", SAMPLE_PDF, "application/pdf")),
        ("certificats", ("certificat.pdf", SAMPLE_PDF, "application/pdf")),
    ]
    response = requests.post(
        f"{base_url}/api/send-application",
        data=SAMPLE_APPLICATION,
        files=files,
        timeout=60,
    )

    if response.status_code == 200:
        print("✅ Application sent")
        print(json.dumps(response.json(), indent=2, ensure_ascii=False))
        return True

    print(f"❌ Application failed: {response.status_code}")
    print(f"   Response: {response.text}")
    return False


def main():
    """Run the smoke checks"""
    args = [arg for arg in sys.argv[1:] if not arg.startswith("--")]
    base_url = (args[0] if args else API_BASE_URL).rstrip("/")
    send = "--send" in sys.argv

    print("🧪 ApplyMail smoke test")
    print("=" * 60)

    try:
        if not check_health(base_url):
            print("❌ Health check failed. Make sure the API is running.")
            return False
    except requests.exceptions.ConnectionError:
        print(f"❌ Connection failed - Is the server running on {base_url}?")
        return False

    ok = check_rejected_submission(base_url)

    if send:
        ok = check_send_application(base_url) and ok
    else:
        print("\n⚠️  Submission test skipped to avoid sending email. Pass --send to run it.")

    print("\n✅ Smoke test completed!" if ok else "\n❌ Smoke test failed")
    return ok


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
