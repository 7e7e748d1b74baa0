"""Translate lifecycle outputs into HTTP responses."""

from fastapi import HTTPException

from src.api.schemas import ConflictResponse, ItemListResponse, ItemResponse, ViolationModel
from src.components.lifecycle import FetchOutput, LifecycleOutput

NOT_FOUND_CODES = {"not_found", "decision_not_found"}
PERSISTENCE_CODES = {"persistence_failed", "deactivation_failed", "activation_failed"}


def _violations(result: LifecycleOutput) -> list[ViolationModel]:
    return [
        ViolationModel(code=v.code, message=v.message, field=v.field) for v in result.violations
    ]


def _status_code_for(code: str) -> int:
    if code in NOT_FOUND_CODES:
        return 404
    if code in PERSISTENCE_CODES:
        return 502
    return 400


def item_response(result: LifecycleOutput) -> ItemResponse:
    """
    Return the response body for a successful output.

    Raises HTTPException for a pending conflict (409) or any failure.
    """
    if result.pending is not None:
        conflict = ConflictResponse(
            decision_id=result.pending.decision_id,
            existing_id=result.pending.existing_id,
            existing_label=result.pending.existing_label,
            message=result.pending.message,
        )
        raise HTTPException(status_code=409, detail=conflict.model_dump())

    if not result.success:
        raise HTTPException(
            status_code=_status_code_for(result.error_code),
            detail={
                "errors": [
                    {"code": err.code, "message": err.message, "field": err.field}
                    for err in result.errors
                ],
                "violations": [v.model_dump() for v in _violations(result)],
            },
        )

    return ItemResponse(
        item=result.item.model_dump(mode="json") if result.item is not None else None,
        violations=_violations(result),
        message=result.message,
    )


def list_response(result: FetchOutput) -> ItemListResponse:
    if not result.success:
        raise HTTPException(
            status_code=502,
            detail={
                "errors": [
                    {"code": err.code, "message": err.message, "field": err.field}
                    for err in result.errors
                ]
            },
        )
    return ItemListResponse(
        items=[item.model_dump(mode="json") for item in result.items],
        total=len(result.items),
    )
