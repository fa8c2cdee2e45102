from __future__ import annotations

from fastapi import APIRouter, File, HTTPException, UploadFile, status
from pydantic import BaseModel, Field

from ...domain.identity import (
    account_hash_from_hex_public_key,
    account_hash_from_key_bytes,
    validate_account_hash,
)

router = APIRouter(prefix="/identities", tags=["identities"])


class HexPublicKeyRequest(BaseModel):
    public_key: str = Field(min_length=1, description="Tag-prefixed hex public key, e.g. 01<64 hex digits>")


class AccountHashRequest(BaseModel):
    account_hash: str


class AccountHashResponse(BaseModel):
    account_hash: str
    source: str


@router.post("/hex", response_model=AccountHashResponse)
def account_hash_from_hex(payload: HexPublicKeyRequest) -> AccountHashResponse:
    try:
        account_hash = account_hash_from_hex_public_key(payload.public_key)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return AccountHashResponse(account_hash=account_hash, source=f"public key {payload.public_key.strip()}")


@router.post("/validate", response_model=AccountHashResponse)
def validate_formatted_account_hash(payload: AccountHashRequest) -> AccountHashResponse:
    try:
        validate_account_hash(payload.account_hash)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return AccountHashResponse(account_hash=payload.account_hash, source="account hash")


@router.post("/file", response_model=AccountHashResponse)
async def account_hash_from_upload(file: UploadFile = File(...)) -> AccountHashResponse:
    name = file.filename or "upload"
    data = await file.read()
    try:
        account_hash = account_hash_from_key_bytes(data, name)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return AccountHashResponse(account_hash=account_hash, source=f"public key file {name}")
