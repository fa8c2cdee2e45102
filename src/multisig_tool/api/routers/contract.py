from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import PlainTextResponse, StreamingResponse
from pydantic import BaseModel, Field

from ...domain.errors import BuildSpawnError, MaterializeError
from ...domain.models import ContractSession
from ...services.pipeline import ContractPipeline, get_pipeline
from ...services.streaming import iter_build_output

router = APIRouter(prefix="/contract", tags=["contract"])


class AssociatedKeyIn(BaseModel):
    account_hash: str = Field(min_length=1, description="Formatted account hash, account-hash-<hex>")
    weight: int = Field(ge=0, le=255)


class ConfigurationRequest(BaseModel):
    keys: List[AssociatedKeyIn] = Field(default_factory=list, description="First entry is the primary key")
    remove_primary_after_creation: bool = False
    key_management_weight: int = Field(ge=0, le=255)
    deployment_weight: int = Field(ge=0, le=255)
    strict: bool = Field(default=False, description="Also enforce duplicate/limit/threshold checks")


class AssociatedKeyOut(BaseModel):
    account_hash: str
    weight: int
    kind: str
    remove_after_creation: bool


class ContractStateResponse(BaseModel):
    project_root: str
    contract_name: str
    keys: List[AssociatedKeyOut]
    key_management_weight: int
    deployment_weight: int


class ProjectResponse(BaseModel):
    project_root: str
    contract_name: str


class ProjectUpdate(BaseModel):
    project_root: Optional[str] = None
    contract_name: Optional[str] = None


def _to_state_response(session: ContractSession) -> ContractStateResponse:
    return ContractStateResponse(
        project_root=str(session.project_root),
        contract_name=session.contract_name,
        keys=[
            AssociatedKeyOut(
                account_hash=key.account_hash.to_formatted_string(),
                weight=key.weight,
                kind=key.kind.value,
                remove_after_creation=key.remove_after_creation,
            )
            for key in session.keys
        ],
        key_management_weight=session.thresholds.key_management_weight,
        deployment_weight=session.thresholds.deployment_weight,
    )


@router.get("/configuration", response_model=ContractStateResponse)
def get_configuration(pipeline: ContractPipeline = Depends(get_pipeline)) -> ContractStateResponse:
    return _to_state_response(pipeline.snapshot())


@router.put("/configuration", response_model=ContractStateResponse)
def set_configuration(
    payload: ConfigurationRequest,
    pipeline: ContractPipeline = Depends(get_pipeline),
) -> ContractStateResponse:
    try:
        session = pipeline.set_configuration(
            [(key.account_hash, key.weight) for key in payload.keys],
            payload.remove_primary_after_creation,
            payload.key_management_weight,
            payload.deployment_weight,
            strict=payload.strict,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _to_state_response(session)


@router.get("/preview", response_class=PlainTextResponse)
def preview_source(pipeline: ContractPipeline = Depends(get_pipeline)) -> str:
    return pipeline.preview_source()


@router.get("/project", response_model=ProjectResponse)
def get_project(pipeline: ContractPipeline = Depends(get_pipeline)) -> ProjectResponse:
    return ProjectResponse(
        project_root=str(pipeline.default_project_root()),
        contract_name=pipeline.default_contract_name(),
    )


@router.put("/project", response_model=ProjectResponse)
def update_project(
    payload: ProjectUpdate,
    pipeline: ContractPipeline = Depends(get_pipeline),
) -> ProjectResponse:
    try:
        if payload.contract_name is not None:
            pipeline.set_contract_name(payload.contract_name)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if payload.project_root is not None:
        pipeline.set_project_root(payload.project_root)
    return ProjectResponse(project_root=str(pipeline.project_root()), contract_name=pipeline.contract_name())


@router.post("/generate", response_class=StreamingResponse)
def generate_contract(pipeline: ContractPipeline = Depends(get_pipeline)):
    try:
        build = pipeline.generate()
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except MaterializeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    except BuildSpawnError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    headers = {
        "Cache-Control": "no-cache, no-transform",
        "X-Accel-Buffering": "no",
    }
    return StreamingResponse(
        iter_build_output(build),
        media_type="text/plain; charset=utf-8",
        headers=headers,
    )
