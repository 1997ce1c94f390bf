from inventory_vision.core.config import Settings


def test_defaults(monkeypatch):
    for name in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "S3_BUCKET", "PUBLIC_BASE_URL", "GEMINI_MODEL"):
        monkeypatch.delenv(name, raising=False)

    s = Settings(_env_file=None)
    assert s.gemini_api_key is None
    assert s.gemini_model == "gemini-1.5-flash"
    assert s.s3_bucket is None
    assert s.s3_prefix == "uploads"
    assert s.max_upload_bytes == 10 * 1024 * 1024


def test_google_api_key_is_accepted(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("GOOGLE_API_KEY", "g-key")
    assert Settings(_env_file=None).gemini_api_key == "g-key"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("GEMINI_MODEL", "gemini-2.0-flash")
    monkeypatch.setenv("S3_BUCKET", "inventory-images")
    monkeypatch.setenv("PUBLIC_BASE_URL", "http://192.168.1.20:8000")
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "2048")

    s = Settings(_env_file=None)
    assert s.gemini_model == "gemini-2.0-flash"
    assert s.s3_bucket == "inventory-images"
    assert s.public_base_url == "http://192.168.1.20:8000"
    assert s.max_upload_bytes == 2048
