"""
Review routes.
Anyone can read published reviews and submit a new one; moderation is admin-only.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from typing import List
import logging

from studio_site.dependencies import get_storage
from studio_site.schemas import ReviewCreate, ReviewResponse, ReviewUpdate
from studio_site.storage import DatabaseStorage
from studio_site.utils.rate_limit import RATE_LIMITS, limiter
from studio_site.utils.session_auth import AdminIdentity, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reviews"])


@router.get("/reviews", response_model=List[ReviewResponse])
async def list_approved_reviews(storage: DatabaseStorage = Depends(get_storage)):
    """Published (approved) reviews only."""
    try:
        reviews = await storage.get_approved_reviews()
        return [ReviewResponse.model_validate(review) for review in reviews]
    except Exception as e:
        logger.error(f"Error fetching approved reviews: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Errore nel recupero delle recensioni"}
        )


@router.post("/reviews", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["review"])
async def submit_review(
    request: Request,
    review: ReviewCreate,
    storage: DatabaseStorage = Depends(get_storage),
):
    """
    Submit a customer review.
    The review is stored as pending and stays hidden until an admin approves it.
    """
    try:
        created = await storage.create_review(review)
        logger.info(f"Review submitted: ID {created.id}")
        return ReviewResponse.model_validate(created)
    except Exception as e:
        logger.error(f"Error creating review: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Errore nella creazione della recensione"}
        )


@router.get("/reviews/pending", response_model=List[ReviewResponse])
async def list_pending_reviews(
    storage: DatabaseStorage = Depends(get_storage),
    admin: AdminIdentity = Depends(require_admin),
):
    try:
        reviews = await storage.get_pending_reviews()
        return [ReviewResponse.model_validate(review) for review in reviews]
    except Exception as e:
        logger.error(f"Error fetching pending reviews: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Errore nel recupero delle recensioni in attesa"}
        )


@router.patch("/reviews/{review_id}", response_model=ReviewResponse)
async def moderate_review(
    review_id: int,
    review_update: ReviewUpdate,
    storage: DatabaseStorage = Depends(get_storage),
    admin: AdminIdentity = Depends(require_admin),
):
    """
    Approve or reject a review, optionally with an edited text.
    Omitting modifiedContent keeps the previously edited text.

    Args:
        review_id: Review ID to moderate
        review_update: New status and optional modified content
        storage: Store client (injected)
        admin: Authenticated admin (injected)

    Returns:
        ReviewResponse: Updated review

    Raises:
        HTTPException: 404 if the review does not exist, 500 if the update fails
    """
    try:
        review = await storage.update_review(
            review_id,
            review_update.model_dump(exclude_unset=True),
            admin_id=admin.id,
        )

        if review is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"error": "Recensione non trovata"}
            )

        logger.info(f"Review {review_id} set to {review_update.status} by {admin.username}")

        return ReviewResponse.model_validate(review)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating review {review_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Errore nell'aggiornamento della recensione"}
        )
