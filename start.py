import os
import subprocess


def run_gateway():
    """Run the FastAPI gateway under uvicorn."""
    port = os.getenv("PORT", "8000")
    print("[start] launching uvicorn on PORT=", port, flush=True)
    subprocess.run(
        [
            "uvicorn",
            "app.main:app",
            "--host",
            "0.0.0.0",
            "--port",
            port,
            "--proxy-headers",
            "--workers",
            str(os.getenv("UVICORN_WORKERS", 1)),
        ],
        check=True,
    )


if __name__ == "__main__":
    run_gateway()
