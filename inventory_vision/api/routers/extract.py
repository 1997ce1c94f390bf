
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from loguru import logger

from ..deps import ErrorResponse, MergeRequest, get_pipeline
from ...core.config import settings
from ...models.fields import ExtractedFields, ImageUpload, MergedFields
from ...services.merge import merge_fields
from ...services.pipeline import ExtractionPipeline

router = APIRouter(tags=["extract"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def error_response(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    content = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


class FileTooLarge(Exception):
    def __init__(self, filename: str | None):
        super().__init__(filename or "")
        self.filename = filename or ""


async def read_upload(file: UploadFile) -> ImageUpload:
    """Read an uploaded file into memory, enforcing MAX_UPLOAD_BYTES."""
    limit = settings.max_upload_bytes
    data = await file.read(limit + 1)
    if len(data) > limit:
        raise FileTooLarge(file.filename)
    return ImageUpload(data=data, filename=file.filename, content_type=file.content_type)


async def has_no_parts(request: Request) -> bool:
    """True for a multipart request whose body yielded no complete part (e.g. truncated)."""
    content_type = request.headers.get("content-type", "")
    if not content_type.lower().startswith("multipart/"):
        return False
    form = await request.form()
    return len(form) == 0


@router.post("/extract", response_model=ExtractedFields, responses=ERROR_RESPONSES)
@router.post("/api/vision", response_model=ExtractedFields, include_in_schema=False)
async def extract(
    request: Request,
    image: UploadFile | None = File(None),
    text: str | None = Form(None),
    pipeline: ExtractionPipeline = Depends(get_pipeline),
):
    """
    Extract label fields from one photo and host the photo.

    Multipart fields:
    - image: the photo (required)
    - text: optional hint appended to the model prompt as a user note

    Extraction and hosting failures degrade the result (placeholder fields,
    null imageUrl) instead of failing the request.
    """
    logger.info(
        "Extract request received",
        has_file=image is not None,
        content_type=image.content_type if image else None,
    )

    if image is None:
        if await has_no_parts(request):
            return error_response(500, "Failed to process image", "Malformed multipart body")
        return error_response(400, "No file received")

    try:
        upload = await read_upload(image)
        return await pipeline.process_image(upload, text)
    except FileTooLarge as e:
        return error_response(413, "File too large", e.filename)
    except Exception as e:
        logger.exception(f"Failed to process image: {e}")
        return error_response(500, "Failed to process image", str(e))


@router.post("/extract/batch", response_model=list[ExtractedFields], responses=ERROR_RESPONSES)
async def extract_batch(
    request: Request,
    images: list[UploadFile] | None = File(None),
    text: str | None = Form(None),
    pipeline: ExtractionPipeline = Depends(get_pipeline),
):
    """
    Extract fields from several photos, one result per photo in upload order.

    Results are not merged here; post them to /extract/merge when the photos
    show the same item.
    """
    logger.info("Batch extract request received", file_count=len(images or []))

    if not images:
        if await has_no_parts(request):
            return error_response(500, "Failed to process images", "Malformed multipart body")
        return error_response(400, "No files received")

    try:
        uploads = [await read_upload(image) for image in images]
        return await pipeline.process_batch(uploads, text)
    except FileTooLarge as e:
        return error_response(413, "File too large", e.filename)
    except Exception as e:
        logger.exception(f"Failed to process images: {e}")
        return error_response(500, "Failed to process images", str(e))


@router.post("/extract/merge", response_model=MergedFields, responses={400: {"model": ErrorResponse}})
async def merge(req: MergeRequest):
    """
    Merge extraction results for several photos of the same item.

    Example request:
    {
        "items": [
            {"title": "Widget", "vendor": "Acme", "categories": "Tools, Hardware"},
            {"title": "Widget Pro 3000", "vendor": "Acme", "categories": "Hardware, Power"}
        ]
    }

    Example response:
    {
        "item_id": "",
        "title": "Widget Pro 3000",
        "description": "",
        "vendor": "Acme",
        "manufacture_date": "",
        "categories": "Tools, Hardware, Power",
        "subcategories": "",
        "imageUrl": null
    }
    """
    if not req.items:
        return error_response(400, "No items to merge")

    merged = merge_fields(req.items)
    logger.info("Merged records", count=len(req.items), title=merged.title, vendor=merged.vendor)
    return merged
