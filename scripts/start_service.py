import os
import signal
import subprocess
import sys
import threading
import time

import requests

env = os.environ.copy()
env["PYTHONUNBUFFERED"] = "1"

APP = "contoso.web.main:app"
HOST = "127.0.0.1"
PORT = env.get("APP_PORT", "8000")
HEALTH_URL = f"http://{HOST}:{PORT}/health"

BASE_CMD = [
    "uvicorn",
    "--host", "0.0.0.0",
    "--log-level", "info",
]


def start_service():
    cmd = BASE_CMD + [APP, "--port", PORT]
    print(f"[START] registrar → {PORT} (storage={env.get('STORAGE_BACKEND', 'memory')})")
    return subprocess.Popen(
        cmd,
        cwd=os.getcwd(),
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        bufsize=1,
        env=env,
    )


def stream_logs(proc):
    for line in proc.stdout:
        print(f"[REGISTRAR] {line.rstrip()}")


def wait_health(timeout=15):
    deadline = time.time() + timeout
    while time.time() < deadline:
        try:
            r = requests.get(HEALTH_URL, timeout=2.0)
            if r.status_code == 200:
                return True
        except requests.RequestException:
            pass
        time.sleep(0.2)
    return False


def main():
    proc = start_service()
    threading.Thread(target=stream_logs, args=(proc,), daemon=True).start()

    try:
        if not wait_health():
            print(f"health check failed: {HEALTH_URL}")
            sys.exit(1)
        print("\nRegistrar is up. Ctrl+C to stop.\n")
        while proc.poll() is None:
            time.sleep(1)

    except KeyboardInterrupt:
        print("\nStopping registrar...")

    finally:
        if proc.poll() is None:
            proc.send_signal(signal.SIGTERM)
            try:
                proc.wait(timeout=5)
            except subprocess.TimeoutExpired:
                proc.kill()
        print("Registrar stopped.")


if __name__ == "__main__":
    main()
