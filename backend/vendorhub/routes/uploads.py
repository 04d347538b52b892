"""
VendorHub Media Backend — Upload Route Handlers
=================================================

What:  POST /api/uploads (multipart) and POST /api/uploads/resolve (JSON).
How:   Extracts request data, delegates to UploadService, returns JSON.
Who:   Vendor web dashboard and the vendor mobile app's onboarding screens.

Request Flow (multipart):
    1. Client sends multipart/form-data with 'file' and optional 'kind',
       'format', 'prefix', 'inline' fields
    2. UploadService: size check → normalize → store → URL
    3. Return 201 Created with UploadResponse
"""

import logging
from typing import Optional

from fastapi import APIRouter, File, Form, Request, UploadFile

from vendorhub.schemas.upload import (
    ErrorResponse,
    ResolveImagesRequest,
    ResolveImagesResponse,
    UploadResponse,
)
from vendorhub.services.upload_service import upload_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/uploads", tags=["Uploads"])


def request_base_url(request: Request) -> str:
    """scheme://host of the incoming request, without trailing slash."""
    return str(request.base_url).rstrip("/")


@router.post(
    "",
    status_code=201,
    response_model=UploadResponse,
    responses={
        201: {"description": "Image normalized and stored", "model": UploadResponse},
        400: {"description": "Empty, oversized or undecodable image", "model": ErrorResponse},
        500: {"description": "Storage failure", "model": ErrorResponse},
    },
    summary="Upload and normalize an image",
    description=(
        "Accepts any common raster image, fixes its orientation, scales it to the "
        "kind's pixel bounds and compresses it under the kind's byte ceiling "
        "(logo 50KB, document 400KB, servicePhoto 200KB)."
    ),
)
async def upload_image(
    request: Request,
    file: UploadFile = File(..., description="Image file (JPEG, PNG, WebP, ...)"),
    kind: str = Form(default="servicePhoto", description="logo, document or servicePhoto"),
    output_format: Optional[str] = Form(
        default=None, alias="format", description="Force jpeg, png or webp output"
    ),
    prefix: Optional[str] = Form(default=None, description="Filename hint"),
    inline: bool = Form(default=False, description="Also return the stored image as a data URL"),
) -> UploadResponse:
    content = await file.read()

    logger.info(
        "Received upload: filename=%s, kind=%s, size=%d bytes",
        file.filename or "unknown",
        kind,
        len(content),
    )

    try:
        return await upload_service.process_upload(
            filename=file.filename or "upload",
            content=content,
            kind=kind,
            format_override=output_format,
            prefix=prefix,
            base_url=request_base_url(request),
            content_length=file.size,
            inline=inline,
        )
    finally:
        await file.close()


@router.post(
    "/resolve",
    response_model=ResolveImagesResponse,
    responses={
        200: {"description": "Public URLs for the resolvable references", "model": ResolveImagesResponse},
        400: {"description": "A data URL did not contain a valid image", "model": ErrorResponse},
    },
    summary="Resolve image references from a vendor payload",
)
async def resolve_images(body: ResolveImagesRequest, request: Request) -> ResolveImagesResponse:
    urls = await upload_service.resolve_image_list(
        body.images,
        kind=body.kind,
        prefix=body.prefix,
        base_url=request_base_url(request),
    )
    return ResolveImagesResponse(urls=urls)
