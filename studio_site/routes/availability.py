"""
Booking availability routes.
The public calendar shows a rolling window of days with their time slots;
admins open days and slots and toggle their availability.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from datetime import date
from typing import List
import logging

from dateutil.relativedelta import relativedelta

from studio_site.config import Settings
from studio_site.dependencies import get_settings, get_storage, get_today
from studio_site.schemas import (
    AvailabilityDateCreate,
    AvailabilityDateResponse,
    AvailabilityDateWithSlotsResponse,
    AvailabilityTimeSlotCreate,
    AvailabilityTimeSlotResponse,
    AvailabilityUpdate,
)
from studio_site.storage import DatabaseStorage
from studio_site.utils.session_auth import AdminIdentity, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("", response_model=List[AvailabilityDateWithSlotsResponse])
async def get_availability(
    storage: DatabaseStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
    today: date = Depends(get_today),
):
    """
    Public booking calendar from today to AVAILABILITY_WINDOW_MONTHS ahead (both inclusive).
    Each day carries its time slots ordered by start time.
    """
    start_date = today
    end_date = today + relativedelta(months=settings.AVAILABILITY_WINDOW_MONTHS)

    try:
        dates = await storage.get_availability_dates(start_date, end_date)
        logger.info(f"Retrieved {len(dates)} availability dates ({start_date} to {end_date})")
        return dates
    except Exception as e:
        logger.error(f"Error fetching availability: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Errore nel recupero delle disponibilità"}
        )


@router.post("", response_model=AvailabilityDateResponse, status_code=status.HTTP_201_CREATED)
async def create_availability_date(
    payload: AvailabilityDateCreate,
    storage: DatabaseStorage = Depends(get_storage),
    admin: AdminIdentity = Depends(require_admin),
):
    """Open a calendar day. New days are always available."""
    try:
        created = await storage.create_availability_date(payload.date, is_available=True, admin_id=admin.id)
        return AvailabilityDateResponse.model_validate(created)
    except Exception as e:
        logger.error(f"Error creating availability: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Errore nella creazione della disponibilità"}
        )


@router.patch("/timeslots/{slot_id}", response_model=AvailabilityTimeSlotResponse)
async def update_time_slot(
    slot_id: int,
    payload: AvailabilityUpdate,
    storage: DatabaseStorage = Depends(get_storage),
    admin: AdminIdentity = Depends(require_admin),
):
    """
    Toggle a time slot's availability.

    Raises:
        HTTPException: 404 if the slot does not exist, 500 if the update fails
    """
    try:
        slot = await storage.update_availability_time_slot(slot_id, payload.is_available, admin_id=admin.id)

        if slot is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"error": "Slot orario non trovato"}
            )

        return AvailabilityTimeSlotResponse.model_validate(slot)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating timeslot {slot_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Errore nell'aggiornamento dello slot orario"}
        )


@router.patch("/{date_id}", response_model=AvailabilityDateResponse)
async def update_availability_date(
    date_id: int,
    payload: AvailabilityUpdate,
    storage: DatabaseStorage = Depends(get_storage),
    admin: AdminIdentity = Depends(require_admin),
):
    """
    Toggle a calendar day's availability.

    Raises:
        HTTPException: 404 if the day does not exist, 500 if the update fails
    """
    try:
        updated = await storage.update_availability_date(date_id, payload.is_available, admin_id=admin.id)

        if updated is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"error": "Disponibilità non trovata"}
            )

        return AvailabilityDateResponse.model_validate(updated)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating availability {date_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Errore nell'aggiornamento della disponibilità"}
        )


@router.post("/{date_id}/timeslots", response_model=AvailabilityTimeSlotResponse, status_code=status.HTTP_201_CREATED)
async def create_time_slot(
    date_id: int,
    payload: AvailabilityTimeSlotCreate,
    storage: DatabaseStorage = Depends(get_storage),
    admin: AdminIdentity = Depends(require_admin),
):
    """
    Add a time slot to a calendar day. Slots are available unless stated otherwise.
    An unknown date_id is rejected by the foreign key and reported as a 500.
    """
    try:
        slot = await storage.create_availability_time_slot(
            date_id,
            start_time=payload.start_time,
            end_time=payload.end_time,
            is_available=payload.is_available,
            admin_id=admin.id,
        )
        return AvailabilityTimeSlotResponse.model_validate(slot)
    except Exception as e:
        logger.error(f"Error creating timeslot for date {date_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Errore nella creazione dello slot orario"}
        )
