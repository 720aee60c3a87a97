"""Entry point to run the telehealth booking API."""

import subprocess
import sys
import signal
import os
from pathlib import Path

# Load .env file FIRST before starting any subprocess
from dotenv import load_dotenv
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)
print(f"Loaded environment from: {env_path}")

API_PORT = int(os.environ.get("PORT", "8000"))


def free_port(port: int) -> bool:
    """Terminate whatever is listening on the API port (lsof based)."""
    try:
        result = subprocess.run(["lsof", "-ti", f"tcp:{port}"], capture_output=True, text=True)
    except OSError as e:
        print(f"   lsof unavailable, skipping port check: {e}")
        return False

    pids = [int(pid) for pid in result.stdout.split()]
    for pid in pids:
        print(f"   Stopping process {pid} on port {port}...")
        try:
            os.kill(pid, signal.SIGTERM)
        except ProcessLookupError:
            pass
    return bool(pids)


def main():
    print("=" * 50)
    print("Starting Telehealth Booking API")
    print("=" * 50)
    print()

    print("0. Checking port...")
    if not free_port(API_PORT):
        print(f"   Port {API_PORT} is available")
    print()

    print(f"1. Starting FastAPI backend (port {API_PORT})...")
    print()

    env = os.environ.copy()
    cwd = os.path.dirname(os.path.abspath(__file__))

    api_process = subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "telehealth.main:app", "--host", "0.0.0.0", "--port", str(API_PORT), "--reload"],
        cwd=cwd,
        env=env,
    )

    print("=" * 50)
    print(f"- API: http://localhost:{API_PORT}")
    print(f"- API Docs: http://localhost:{API_PORT}/docs")
    print("=" * 50)
    print()
    print("Press Ctrl+C to stop...")
    print()

    def signal_handler(sig, frame):
        print()
        print("Shutting down...")
        api_process.terminate()
        api_process.wait()
        print("Service stopped.")
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        api_process.wait()
    except KeyboardInterrupt:
        signal_handler(None, None)


if __name__ == "__main__":
    main()
