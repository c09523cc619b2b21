import time
import subprocess
import httpx
import sys
import os
import signal

BASE_URL = "http://127.0.0.1:8000"
API_PREFIX = "/v1"
ACCOUNT_NO = "PERSIST-1"

def wait_for_server(retries=10, delay=2):
    url = f"{BASE_URL}/health"
    print(f"Waiting for server at {url}...")
    for i in range(retries):
        try:
            resp = httpx.get(url)
            if resp.status_code == 200:
                print("✅ Server is up!")
                return True
        except httpx.ConnectError:
            pass
        except Exception as e:
            print(f"Connect error: {e}")
        time.sleep(delay)
    print("❌ Server failed to start.")
    return False

def start_server(echo=False):
    env = {**os.environ, "DB_ECHO": "True"} if echo else None
    return subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "goldbook.app.main:app", "--host", "127.0.0.1", "--port", "8000"],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env=env
    )

def run_verification():
    # 1. Start Server (First Run)
    print("\n--- [Step 1] Starting Server (Initial) ---")
    proc = start_server(echo=True)

    try:
        if not wait_for_server():
            server_logs = proc.communicate(timeout=2)
            print("Server Stdout:", server_logs[0].decode())
            print("Server Stderr:", server_logs[1].decode())
            raise Exception("Server start failed")

        # 2. Open Account
        print("\n--- [Step 2] Opening Account (Persistence Test) ---")
        resp = httpx.post(f"{BASE_URL}{API_PREFIX}/customers", json={
            "account_no": ACCOUNT_NO,
            "name": "Persistence Check",
            "phone": "00000000",
            "civil_id": "000000000000"
        })

        if resp.status_code == 409:
            print("⚠️ Account already exists (persistence working from previous run?)")
            customer_id = httpx.get(f"{BASE_URL}{API_PREFIX}/customers/account/{ACCOUNT_NO}").json()["id"]
        elif resp.status_code == 201:
            print("✅ Account Opened Successfully")
            print(resp.json())
            customer_id = resp.json()["id"]
        else:
            print(f"❌ Account Opening Failed: {resp.status_code} {resp.text}")
            raise Exception("Account opening failed")

        # 3. Issue Voucher
        print("\n--- [Step 3] Issuing Invoice ---")
        resp = httpx.post(f"{BASE_URL}{API_PREFIX}/vouchers", json={
            "customer_id": customer_id,
            "voucher_type": "INV",
            "date": time.strftime("%Y-%m-%d"),
            "rows": [{"description": "Persistence ring", "weight": 1, "purity": 999, "making_charges": 1}]
        })
        if resp.status_code != 201:
            print(f"❌ Voucher Issue Failed: {resp.status_code} {resp.text}")
            raise Exception("Voucher issue failed")
        print("✅ Invoice Issued")

        before = httpx.get(f"{BASE_URL}{API_PREFIX}/ledger/customers/{ACCOUNT_NO}").json()["current"]
        print(f"Balance before restart: {before}")

    finally:
        print("\n--- [Step 4] Stopping Server ---")
        proc.send_signal(signal.SIGTERM)
        proc.wait()

    time.sleep(2) # Wait for port release

    # 5. Restart Server
    print("\n--- [Step 5] Restarting Server (Verification) ---")
    proc2 = start_server()

    try:
        if not wait_for_server():
            raise Exception("Server restart failed")

        # 6. Ledger
        print("\n--- [Step 6] Reading Ledger (Post-Restart) ---")
        resp = httpx.get(f"{BASE_URL}{API_PREFIX}/ledger/customers/{ACCOUNT_NO}")

        if resp.status_code == 200 and resp.json()["current"] == before:
            print("✅ Ledger Persisted!")
            print(resp.json()["current"])
        else:
            print(f"❌ Ledger Check Failed (Persistence Issue?): {resp.status_code} {resp.text}")
            raise Exception("Ledger mismatch after restart")

    finally:
        print("\n--- [Step 7] Stopping Server ---")
        proc2.send_signal(signal.SIGTERM)
        proc2.wait()

if __name__ == "__main__":
    run_verification()
