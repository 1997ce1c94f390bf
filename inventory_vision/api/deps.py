
from fastapi import Request
from pydantic import BaseModel, Field

from ..core.config import settings
from ..models.fields import ExtractedFields
from ..services.extractors import create_chain
from ..services.object_store import ObjectStoreUploader
from ..services.pipeline import ExtractionPipeline


class MergeRequest(BaseModel):
    items: list[ExtractedFields] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None


def build_pipeline(http_client=None) -> ExtractionPipeline:
    return ExtractionPipeline(
        extractor=create_chain(settings, http_client=http_client),
        uploader=ObjectStoreUploader.from_settings(settings),
    )


def get_pipeline(request: Request) -> ExtractionPipeline:
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        # App used without its lifespan (e.g. TestClient outside a with-block)
        pipeline = build_pipeline()
        request.app.state.pipeline = pipeline
    return pipeline
