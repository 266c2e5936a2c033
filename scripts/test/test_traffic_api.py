# scripts/test/test_traffic_api.py
"""
Checks the traffic provider key and reachability for every access point.
Usage: python scripts/test/test_traffic_api.py
       python scripts/test/test_traffic_api.py --point vegas
"""

import sys
import os
import argparse
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

import requests
from app.config import settings
from app.services.traffic_provider import FLOW_SEGMENT_PATH
from app.utils.metrics import traffic_state


def check_point(point: str, access: dict) -> dict:
    url = f"{settings.TRAFFIC_API_BASE_URL.rstrip('/')}{FLOW_SEGMENT_PATH}"
    params = {"key": settings.TRAFFIC_API_KEY, "point": f"{access['lat']},{access['lng']}"}
    try:
        resp = requests.get(url, params=params, timeout=settings.TRAFFIC_API_TIMEOUT_SECONDS)
        if resp.status_code == 200:
            seg = resp.json().get("flowSegmentData", {})
            current, free_flow = seg.get("currentSpeed"), seg.get("freeFlowSpeed")
            if current is None or free_flow is None:
                return {"status": "❌ unexpected_body"}
            state = traffic_state(current, free_flow)
            return {"status": "✅ online", "speed": f"{current}/{free_flow} km/h",
                    "state": state.state.value, "ratio": state.ratio}
        elif resp.status_code in (401, 403):
            return {"status": "❌ auth_failed", "hint": "Check TRAFFIC_API_KEY"}
        else:
            return {"status": f"❌ http_{resp.status_code}"}

    except requests.exceptions.Timeout:
        return {"status": "❌ timeout", "hint": "Provider did not answer in time"}
    except requests.exceptions.ConnectionError:
        return {"status": "❌ connection_refused", "hint": "No network route to the provider"}
    except Exception as e:
        return {"status": f"❌ error: {e}"}


def main():
    parser = argparse.ArgumentParser(description="Test traffic provider connectivity")
    parser.add_argument("--point", choices=list(settings.ACCESS_POINTS.keys()))
    args = parser.parse_args()

    if not settings.TRAFFIC_API_KEY:
        print("⚠️  TRAFFIC_API_KEY is not set — the backend will serve synthetic traffic data.")
        sys.exit(1)

    points = {k: v for k, v in settings.ACCESS_POINTS.items() if not args.point or k == args.point}
    print("🚦 Traffic provider connectivity test")
    print("=" * 50)
    for point, access in points.items():
        result = check_point(point, access)
        print(f"\n📍 {point} ({access['road']})")
        for key, value in result.items():
            print(f"   {key}: {value}")


if __name__ == "__main__":
    main()
