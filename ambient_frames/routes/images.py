"""
Page imagery routes.
Admin endpoints upload, replace and delete images in Cloudinary and keep the
section -> image id -> {url, publicId} configuration in sync. The public
endpoint serves that configuration to the website.
"""
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Form, Query
from typing import Optional
import logging

from ambient_frames.schemas import ImageConfigUpdate, ImageRef, SessionClaims
from ambient_frames.services.cloudinary_service import (
    UploadGatewayError,
    is_valid_section,
    upload_image,
    replace_image,
    delete_image,
    list_section_images,
)
from ambient_frames.services.document_store import (
    DocumentStoreError,
    ImageConfigStore,
    get_image_config_store,
)
from ambient_frames.utils.session_auth import require_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Images"])


def _check_section(section: Optional[str]) -> str:
    if not is_valid_section(section):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid section"}
        )
    return section


async def _read_image_file(file: UploadFile) -> bytes:
    if not file.content_type or not file.content_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid file type", "detail": f"File '{file.filename}' is not an image"}
        )
    return await file.read()


@router.get("/admin/images")
async def list_images(
    section: Optional[str] = None,
    claims: SessionClaims = Depends(require_session)
):
    """List the images Cloudinary holds for a section, newest first."""
    section = _check_section(section)
    images = await list_section_images(section)
    return {"success": True, "images": images, "section": section}


@router.post("/admin/images")
async def create_image(
    file: Optional[UploadFile] = File(None),
    section: Optional[str] = Form(None),
    image_name: Optional[str] = Form(None, alias="imageName"),
    claims: SessionClaims = Depends(require_session)
):
    """
    Upload a new image for a section.

    Raises:
        HTTPException: 400 on missing fields or invalid section, 500 if the upload fails
    """
    if file is None or not section or not image_name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Missing required fields: file, section, imageName"}
        )
    _check_section(section)
    content = await _read_image_file(file)

    try:
        result = await upload_image(content, section, image_name)
    except UploadGatewayError as e:
        logger.error(f"Upload error for {section}/{image_name}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to upload image"}
        )

    return {
        "success": True,
        "image": {
            "url": result["url"],
            "publicId": result["public_id"],
            "section": section,
            "name": image_name,
        }
    }


@router.put("/admin/images")
async def replace_section_image(
    file: Optional[UploadFile] = File(None),
    section: Optional[str] = Form(None),
    image_name: Optional[str] = Form(None, alias="imageName"),
    old_public_id: Optional[str] = Form(None, alias="oldPublicId"),
    claims: SessionClaims = Depends(require_session)
):
    """
    Replace an image: best-effort removal of `oldPublicId`, then upload.
    `deletedOldImage` reports whether the old asset was actually removed.
    """
    if file is None or not section or not image_name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Missing required fields: file, section, imageName"}
        )
    _check_section(section)
    content = await _read_image_file(file)

    try:
        result = await replace_image(content, section, image_name, old_public_id or None)
    except UploadGatewayError as e:
        logger.error(f"Replace error for {section}/{image_name}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to replace image"}
        )

    return {
        "success": True,
        "image": {
            "url": result["url"],
            "publicId": result["public_id"],
            "section": section,
            "name": image_name,
        },
        "deletedOldImage": result["deleted_old"],
    }


@router.delete("/admin/images")
async def remove_image(
    public_id: Optional[str] = Query(None, alias="publicId"),
    claims: SessionClaims = Depends(require_session)
):
    """Delete an image from Cloudinary by public id."""
    if not public_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Missing publicId"}
        )

    try:
        deleted = await delete_image(public_id)
    except UploadGatewayError as e:
        logger.error(f"Delete error for {public_id}: {str(e)}", exc_info=True)
        deleted = False

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to delete image"}
        )

    return {"success": True, "message": "Image deleted successfully", "publicId": public_id}


@router.get("/admin/images/sync")
async def read_image_config(
    store: ImageConfigStore = Depends(get_image_config_store),
    claims: SessionClaims = Depends(require_session)
):
    """Return the whole image configuration ({} before the first write)."""
    try:
        config = await store.get_all()
    except DocumentStoreError as e:
        logger.error(f"Read config error: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to read configuration"}
        )

    return {"success": True, "config": config}


@router.post("/admin/images/sync")
async def update_image_config(
    update: ImageConfigUpdate,
    store: ImageConfigStore = Depends(get_image_config_store),
    claims: SessionClaims = Depends(require_session)
):
    """Point one page slot at a newly uploaded image."""
    _check_section(update.section)

    try:
        await store.put(update.section, update.image_id, ImageRef(url=update.url, public_id=update.public_id))
    except DocumentStoreError as e:
        logger.error(f"Update config error: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to update configuration"}
        )

    logger.info(f"Image config updated by {claims.username}: {update.section}/{update.image_id}")

    return {
        "success": True,
        "message": "Configuration updated",
        "updated": update.model_dump(by_alias=True),
    }


@router.get("/images")
async def get_public_images(
    section: Optional[str] = None,
    store: ImageConfigStore = Depends(get_image_config_store)
):
    """
    Public read of the image configuration.
    Returns one section when `section` is given, otherwise every section.
    """
    try:
        images = await store.get(section) if section else await store.get_all()
    except DocumentStoreError as e:
        logger.error(f"Fetch images error: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to fetch images"}
        )

    return {"success": True, "images": images}
