import os

os.environ.setdefault("PV_OTEL_ENABLED", "false")
os.environ.setdefault("PV_RENDER_API_KEY", "test-key")
os.environ.setdefault("PV_RENDER_API_BASE_URL", "https://render.example.test/api/v2")
