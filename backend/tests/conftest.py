import os

# Settings are validated at import time; tests never touch a real database or bucket.
os.environ.setdefault("RUBRIK_DESK_APP_SECRET_KEY", "test-secret-key-with-at-least-32-characters")
os.environ.setdefault("RUBRIK_DESK_POSTGRES_PASSWORD", "test-password")
os.environ.setdefault("RUBRIK_DESK_APP_ENV", "test")
os.environ.setdefault("RUBRIK_DESK_APP_DEBUG", "false")
os.environ.setdefault("RUBRIK_DESK_MINIO_PUBLIC_BASE_URL", "https://cdn.example.test/covers")
