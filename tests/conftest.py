"""
Pytest configuration and shared fixtures.

Registers the integration marker and provides in-memory test doubles for the
vision model and the object store, injected through the pipeline dependency.
"""

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from inventory_vision.api.deps import get_pipeline
from inventory_vision.api.main import app
from inventory_vision.models.fields import ExtractedFields
from inventory_vision.services.extractors import ExtractorChain, FieldExtractor
from inventory_vision.services.object_store import ObjectStoreUploader
from inventory_vision.services.pipeline import ExtractionPipeline


def pytest_addoption(parser):
    """Add custom command-line options"""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests against real vision model and object store"
    )


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test requiring real API keys"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --run-integration is specified"""
    if config.getoption("--run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="need --run-integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


class FakeExtractor(FieldExtractor):
    """Returns fixed fields and raises for images listed in ``fail_on``."""

    def __init__(self, fields: ExtractedFields | None = None, fail_on=(), name: str = "fake"):
        self.fields = fields or ExtractedFields()
        self.fail_on = set(fail_on)
        self.name = name
        self.calls = []

    async def extract(self, image, mime_type, hint=None):
        self.calls.append((image, mime_type, hint))
        if image in self.fail_on:
            raise RuntimeError("model quota exceeded")
        return self.fields


WIDGET = ExtractedFields(
    item_id="SKU-42",
    title="Widget",
    description="Steel widget",
    vendor="Acme",
    manufacture_date="2024-03-01",
    categories="Tools, Hardware",
    subcategories="Fasteners",
)


@pytest.fixture
def fake_extractor():
    return FakeExtractor(fields=WIDGET)


@pytest.fixture
def s3_client():
    """Mock boto3 S3 client; put_object succeeds unless a side_effect is set"""
    return Mock()


@pytest.fixture
def uploader(s3_client):
    return ObjectStoreUploader(
        client=s3_client,
        bucket="inventory-images",
        public_base_url="https://cdn.example.com",
    )


@pytest.fixture
def pipeline(fake_extractor, uploader):
    return ExtractionPipeline(extractor=ExtractorChain([fake_extractor]), uploader=uploader)


@pytest.fixture
def client(pipeline):
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
