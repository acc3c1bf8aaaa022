"""
Gallery routes.
Clients open their private gallery with an access code; admins create
galleries and upload photos into them.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from typing import List
import asyncio
import logging

from studio_site.dependencies import get_storage
from studio_site.schemas import (
    GalleryCreate,
    GalleryResponse,
    GalleryWithPhotosResponse,
    PhotoResponse,
)
from studio_site.services.cloudinary_service import upload_photo
from studio_site.storage import DatabaseStorage
from studio_site.utils.session_auth import AdminIdentity, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/galleries", tags=["galleries"])


@router.get("/access/{code}", response_model=GalleryWithPhotosResponse)
async def get_gallery_by_access_code(
    code: str,
    storage: DatabaseStorage = Depends(get_storage),
):
    """
    Open a gallery by its access code.

    Raises:
        HTTPException: 404 if no gallery has this code, 500 if the lookup fails
    """
    try:
        gallery = await storage.get_gallery_by_access_code(code)

        if gallery is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"error": "Galleria non trovata"}
            )

        photos = await storage.get_photos_by_gallery_id(gallery.id)
        return GalleryWithPhotosResponse(
            id=gallery.id,
            access_code=gallery.access_code,
            photos=[PhotoResponse.model_validate(photo) for photo in photos],
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching gallery by access code: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Errore del server"}
        )


@router.post("", response_model=GalleryResponse, status_code=status.HTTP_201_CREATED)
async def create_gallery(
    payload: GalleryCreate,
    storage: DatabaseStorage = Depends(get_storage),
    admin: AdminIdentity = Depends(require_admin),
):
    """Create a gallery. A random access code is generated when none is given."""
    try:
        gallery = await storage.create_gallery(payload, admin_id=admin.id)
        return GalleryResponse.model_validate(gallery)
    except Exception as e:
        logger.error(f"Error creating gallery: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Errore nella creazione della galleria"}
        )


@router.post("/{gallery_id}/photos", response_model=List[PhotoResponse], status_code=status.HTTP_201_CREATED)
async def upload_gallery_photos(
    gallery_id: int,
    request: Request,
    storage: DatabaseStorage = Depends(get_storage),
    admin: AdminIdentity = Depends(require_admin),
):
    """
    Upload one or more photos (multipart field "files") into a gallery.

    Files go to Cloudinary concurrently; each successful upload becomes a Photo
    row. Partial failures are logged and skipped.

    Raises:
        HTTPException: 400 if no image files are sent, 404 if the gallery does
            not exist, 500 if every upload fails or the store rejects the rows
    """
    try:
        gallery = await storage.get_gallery(gallery_id)
        if gallery is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"error": "Galleria non trovata"}
            )

        form = await request.form()
        files = form.getlist("files")

        if not files:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"error": "Nessun file caricato"}
            )

        for file in files:
            content_type = getattr(file, "content_type", None)
            if not content_type or not content_type.startswith("image/"):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail={"error": f"Il file '{getattr(file, 'filename', '?')}' non è un'immagine"}
                )

        contents = [await file.read() for file in files]
        results = await asyncio.gather(
            *(upload_photo(content, gallery_id) for content in contents),
            return_exceptions=True,
        )

        uploads = []
        for file, result in zip(files, results):
            if isinstance(result, Exception):
                logger.error(f"Error uploading {file.filename} to Cloudinary: {str(result)}")
            else:
                uploads.append(result)

        if not uploads:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={"error": "Caricamento delle foto non riuscito"}
            )

        created = await storage.create_photos(gallery_id, [upload["url"] for upload in uploads], admin_id=admin.id)
        photos = [PhotoResponse.model_validate(photo) for photo in created]

        if len(uploads) < len(files):
            logger.warning(f"Partial upload success: {len(uploads)} of {len(files)} photos saved")

        return photos

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error uploading photos to gallery {gallery_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Errore nel caricamento delle foto"}
        )
