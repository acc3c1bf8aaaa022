"""
FAQ routes: public listing, admin management of questions and categories.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from typing import List, Optional
import logging

from studio_site.dependencies import get_storage
from studio_site.schemas import (
    FaqCategoryCreate,
    FaqCategoryResponse,
    FaqCategoryUpdate,
    FaqCreate,
    FaqResponse,
    FaqUpdate,
)
from studio_site.storage import DatabaseStorage
from studio_site.utils.session_auth import AdminIdentity, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(tags=["faqs"])


def _server_error(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": message}
    )


def _not_found(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": message}
    )


# Categories

@router.get("/faq-categories", response_model=List[FaqCategoryResponse])
async def list_faq_categories(storage: DatabaseStorage = Depends(get_storage)):
    try:
        categories = await storage.get_faq_categories()
        return [FaqCategoryResponse.model_validate(category) for category in categories]
    except Exception as e:
        logger.error(f"Error fetching FAQ categories: {str(e)}", exc_info=True)
        raise _server_error("Errore nel recupero delle categorie FAQ")


@router.post("/faq-categories", response_model=FaqCategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_faq_category(
    payload: FaqCategoryCreate,
    storage: DatabaseStorage = Depends(get_storage),
    admin: AdminIdentity = Depends(require_admin),
):
    try:
        category = await storage.create_faq_category(payload, admin_id=admin.id)
        return FaqCategoryResponse.model_validate(category)
    except Exception as e:
        logger.error(f"Error creating FAQ category: {str(e)}", exc_info=True)
        raise _server_error("Errore nella creazione della categoria FAQ")


@router.patch("/faq-categories/{category_id}", response_model=FaqCategoryResponse)
async def update_faq_category(
    category_id: int,
    payload: FaqCategoryUpdate,
    storage: DatabaseStorage = Depends(get_storage),
    admin: AdminIdentity = Depends(require_admin),
):
    try:
        fields = payload.model_dump(exclude_unset=True)
        category = await storage.update_faq_category(category_id, fields, admin_id=admin.id)
        if category is None:
            raise _not_found("Categoria FAQ non trovata")
        return FaqCategoryResponse.model_validate(category)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating FAQ category {category_id}: {str(e)}", exc_info=True)
        raise _server_error("Errore nell'aggiornamento della categoria FAQ")


@router.delete("/faq-categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_faq_category(
    category_id: int,
    storage: DatabaseStorage = Depends(get_storage),
    admin: AdminIdentity = Depends(require_admin),
):
    """Hard delete. FAQs in the category keep existing without a category."""
    try:
        if not await storage.delete_faq_category(category_id, admin_id=admin.id):
            raise _not_found("Categoria FAQ non trovata")
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting FAQ category {category_id}: {str(e)}", exc_info=True)
        raise _server_error("Errore nell'eliminazione della categoria FAQ")


# Questions

@router.get("/faqs", response_model=List[FaqResponse])
async def list_faqs(
    category_id: Optional[int] = Query(default=None, alias="categoryId"),
    storage: DatabaseStorage = Depends(get_storage),
):
    """FAQs ordered for display, optionally limited to one category."""
    try:
        faqs = await storage.get_faqs(category_id)
        return [FaqResponse.model_validate(faq) for faq in faqs]
    except Exception as e:
        logger.error(f"Error fetching FAQs: {str(e)}", exc_info=True)
        raise _server_error("Errore nel recupero delle FAQ")


@router.post("/faqs", response_model=FaqResponse, status_code=status.HTTP_201_CREATED)
async def create_faq(
    payload: FaqCreate,
    storage: DatabaseStorage = Depends(get_storage),
    admin: AdminIdentity = Depends(require_admin),
):
    try:
        faq = await storage.create_faq(payload, admin_id=admin.id)
        return FaqResponse.model_validate(faq)
    except Exception as e:
        logger.error(f"Error creating FAQ: {str(e)}", exc_info=True)
        raise _server_error("Errore nella creazione della FAQ")


@router.patch("/faqs/{faq_id}", response_model=FaqResponse)
async def update_faq(
    faq_id: int,
    payload: FaqUpdate,
    storage: DatabaseStorage = Depends(get_storage),
    admin: AdminIdentity = Depends(require_admin),
):
    try:
        fields = payload.model_dump(exclude_unset=True)
        faq = await storage.update_faq(faq_id, fields, admin_id=admin.id)
        if faq is None:
            raise _not_found("FAQ non trovata")
        return FaqResponse.model_validate(faq)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating FAQ {faq_id}: {str(e)}", exc_info=True)
        raise _server_error("Errore nell'aggiornamento della FAQ")


@router.delete("/faqs/{faq_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_faq(
    faq_id: int,
    storage: DatabaseStorage = Depends(get_storage),
    admin: AdminIdentity = Depends(require_admin),
):
    try:
        if not await storage.delete_faq(faq_id, admin_id=admin.id):
            raise _not_found("FAQ non trovata")
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting FAQ {faq_id}: {str(e)}", exc_info=True)
        raise _server_error("Errore nell'eliminazione della FAQ")
