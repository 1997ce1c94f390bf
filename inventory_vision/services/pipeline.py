"""
Per-request orchestration: extraction and image hosting run concurrently
for every image, batches fan out across images and fan back in input order.
"""

import asyncio
import uuid
from typing import Sequence

from loguru import logger

from .extractors import ExtractorChain
from .merge import merge_fields
from .object_store import ObjectStoreUploader
from ..models.fields import ExtractedFields, ImageUpload, MergedFields


class ExtractionPipeline:
    def __init__(self, extractor: ExtractorChain, uploader: ObjectStoreUploader):
        self.extractor = extractor
        self.uploader = uploader

    async def process_image(
        self, upload: ImageUpload, hint: str | None = None, request_id: str | None = None
    ) -> ExtractedFields:
        request_id = request_id or uuid.uuid4().hex[:8]
        log = logger.bind(request_id=request_id, filename=upload.filename)
        mime_type = upload.content_type or "image/jpeg"

        log.debug("State: extracting + uploading", size_bytes=len(upload.data))
        fields, target = await asyncio.gather(
            self.extractor.extract(upload.data, mime_type, hint),
            self.uploader.upload(upload.data, upload.filename, upload.content_type),
        )

        result = fields.model_copy(update={"imageUrl": target.public_url})
        log.debug("State: responded", image_url=result.imageUrl)
        return result

    async def process_batch(
        self, uploads: Sequence[ImageUpload], hint: str | None = None, merge: bool = False
    ) -> list[ExtractedFields] | MergedFields:
        batch_id = uuid.uuid4().hex[:8]
        logger.info(f"Processing batch of {len(uploads)} images", batch_id=batch_id)

        results = await asyncio.gather(
            *(
                self.process_image(upload, hint, request_id=f"{batch_id}-{i}")
                for i, upload in enumerate(uploads)
            )
        )

        if merge:
            logger.debug("State: merging", batch_id=batch_id)
            return merge_fields(results)
        return list(results)
