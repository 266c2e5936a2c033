# scripts/test/simulate_report.py
"""Submit crowdsourced reports to the backend and print the zone afterwards."""

import argparse
import uuid
import requests

BACKEND_URL = "http://localhost:8080/api/v1"

REPORT_TYPES = ["moderate_queue", "severe_congestion", "full", "spots_available", "accident"]


def find_zone(zone_ref):
    resp = requests.get(f"{BACKEND_URL}/zones/{zone_ref}", timeout=10)
    resp.raise_for_status()
    return resp.json()


def submit(zone_id, report_type, submitter, lat=None, lng=None):
    payload = {"zone_id": zone_id, "report_type": report_type, "submitter_id": submitter}
    if lat is not None and lng is not None:
        payload.update(lat=lat, lng=lng)
    resp = requests.post(f"{BACKEND_URL}/reports", json=payload, timeout=10)
    mark = "✅" if resp.status_code == 201 else "❌"
    print(f"{mark} {report_type} → HTTP {resp.status_code}: {resp.json()}")
    return resp


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Simulate crowdsourced reports")
    parser.add_argument("--type", default="moderate_queue", choices=REPORT_TYPES)
    parser.add_argument("--zone", default="guayabos", help="Zone id or slug")
    parser.add_argument("--submitter", default=f"sim-{uuid.uuid4().hex[:8]}")
    parser.add_argument("--count", type=int, default=1, help="Repeat to exercise the rate limit")
    args = parser.parse_args()

    zone = find_zone(args.zone)
    print(f"🅿️  {zone['name']}: car {zone['car']['occupancy']}/{zone['car']['capacity']}")
    for _ in range(args.count):
        submit(zone["id"], args.type, args.submitter)
    zone = find_zone(zone["id"])
    print(f"🅿️  {zone['name']}: car {zone['car']['occupancy']}/{zone['car']['capacity']} "
          f"({zone['active_report_count']} active reports)")
