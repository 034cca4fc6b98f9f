from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, File, UploadFile, status

from hotel_booking.schemas import ProofUploadResponse
from hotel_booking.services.proof_storage import ProofStorage, get_proof_storage

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("/payment-proof", response_model=ProofUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_payment_proof(
    payment_proof: UploadFile = File(...),
    storage: ProofStorage = Depends(get_proof_storage),
) -> ProofUploadResponse:
    """Store the file and return the reference to send back as `payment_proof` when booking."""

    data = await payment_proof.read()
    reference = await asyncio.to_thread(storage.store, data, payment_proof.filename)
    return ProofUploadResponse(payment_proof=reference)
