"""
Restart check: a parcel and its history must survive a server restart.

Needs a reachable database with the seeded admin (run backend/seed_data.py first).
"""

import time
import subprocess
import httpx
import sys
import os
import signal

BASE_URL = "http://127.0.0.1:8000"
API_PREFIX = "/v1"
ADMIN = {"email": "admin@parceltracker.com", "password": "admin123"}
TRACKING_NUMBER = "TRKPERSIST01"


def start_server(echo=False):
    return subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "backend.app.main:app", "--host", "127.0.0.1", "--port", "8000"],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env={**os.environ, "DB_ECHO": str(echo)}
    )


def stop_server(proc):
    proc.send_signal(signal.SIGTERM)
    proc.wait()


def wait_for_server(retries=10, delay=2):
    url = f"{BASE_URL}/health"
    print(f"Waiting for server at {url}...")
    for _ in range(retries):
        try:
            if httpx.get(url).status_code == 200:
                print("✅ Server is up!")
                return True
        except httpx.ConnectError:
            pass
        time.sleep(delay)
    print("❌ Server failed to start.")
    return False


def admin_headers():
    resp = httpx.post(f"{BASE_URL}{API_PREFIX}/auth/login", json=ADMIN)
    if resp.status_code != 200:
        raise Exception(f"Admin login failed: {resp.status_code} {resp.text}")
    return {"Authorization": f"Bearer {resp.json()['accessToken']}"}


def run_verification():
    print("\n--- [Step 1] Starting Server (Initial) ---")
    proc = start_server(echo=True)

    try:
        if not wait_for_server():
            stdout, stderr = proc.communicate(timeout=2)
            print("Server Stderr:", stderr.decode())
            raise Exception("Server start failed")

        print("\n--- [Step 2] Creating Parcel and Appending Status ---")
        headers = admin_headers()
        resp = httpx.post(f"{BASE_URL}{API_PREFIX}/parcels", headers=headers, json={
            "trackingNumber": TRACKING_NUMBER,
            "status": "picked_up",
            "initialHistory": {"location": "Gulshan-1 Sorting Center", "latitude": 23.7937, "longitude": 90.4066},
        })

        if resp.status_code == 409:
            print("⚠️ Parcel already exists (persistence working from previous run?)")
        elif resp.status_code == 201:
            parcel_id = resp.json()["id"]
            resp = httpx.put(f"{BASE_URL}{API_PREFIX}/parcels/{parcel_id}/status", headers=headers, json={
                "status": "in_transit", "location": "Banani Transit Hub", "latitude": 23.7937, "longitude": 90.4066,
            })
            print(f"✅ Parcel created with {len(resp.json()['history'])} history entries")
        else:
            raise Exception(f"Parcel creation failed: {resp.status_code} {resp.text}")
    finally:
        print("\n--- [Step 3] Stopping Server ---")
        stop_server(proc)

    time.sleep(2)  # port release

    print("\n--- [Step 4] Restarting Server (Verification) ---")
    proc2 = start_server()

    try:
        if not wait_for_server():
            raise Exception("Server restart failed")

        print("\n--- [Step 5] Reading Parcel (Post-Restart) ---")
        resp = httpx.get(f"{BASE_URL}{API_PREFIX}/parcels/{TRACKING_NUMBER.lower()}", headers=admin_headers())
        if resp.status_code != 200:
            raise Exception(f"Parcel lookup failed after restart: {resp.status_code} {resp.text}")

        parcel = resp.json()
        statuses = [entry["status"] for entry in parcel["history"]]
        if statuses[:2] != ["picked_up", "in_transit"] or parcel["status"] != statuses[-1]:
            raise Exception(f"History did not survive restart: {statuses}")
        print(f"✅ Parcel {parcel['formattedTrackingNumber']} persisted: {' -> '.join(statuses)}")
    finally:
        print("\n--- [Step 6] Stopping Server ---")
        stop_server(proc2)


if __name__ == "__main__":
    run_verification()
