"""API routes for categorisation rules."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from api.dependencies import get_config, get_db_session, raise_for_result
from api.models import ApplyRulesRequest, RuleCreate, RuleFromTransactionRequest, RuleResponse, RuleUpdate
from api.services import RuleService
from src.famfin.core.config import AppConfig

router = APIRouter(prefix="/rules", tags=["rules"])


@router.get("/", response_model=list[RuleResponse])
async def get_rules(db: Session = Depends(get_db_session)) -> list[RuleResponse]:
    """Get all rules in the order they are evaluated."""
    return RuleService.get_rules(db)


@router.post("/", response_model=RuleResponse, status_code=201)
async def create_rule(data: RuleCreate, db: Session = Depends(get_db_session)) -> RuleResponse:
    result = raise_for_result(RuleService.create_rule(db, data))
    return RuleService.get_rule(db, result.id)


@router.post("/apply")
async def apply_rules(
    request: ApplyRulesRequest | None = None,
    db: Session = Depends(get_db_session),
    config: AppConfig = Depends(get_config),
) -> dict[str, Any]:
    """Categorise uncategorised transactions using the active rules."""
    try:
        transaction_ids = request.transaction_ids if request else None
        return RuleService.apply_categorisation_rules(db, config, transaction_ids=transaction_ids)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.post("/from-transaction", response_model=RuleResponse, status_code=201)
async def create_rule_from_transaction(
    request: RuleFromTransactionRequest,
    db: Session = Depends(get_db_session),
    config: AppConfig = Depends(get_config),
) -> RuleResponse:
    """Create a rule from a transaction, categorise it and re-apply all rules."""
    result = raise_for_result(
        RuleService.create_rule_from_transaction(
            db,
            config,
            transaction_id=request.transaction_id,
            category_id=request.category_id,
            match_field=request.match_field,
            match_type=request.match_type,
        )
    )
    return RuleService.get_rule(db, result.id)


@router.put("/{rule_id}", response_model=RuleResponse)
async def update_rule(rule_id: int, update: RuleUpdate, db: Session = Depends(get_db_session)) -> RuleResponse:
    raise_for_result(RuleService.update_rule(db, rule_id, update), "Rule not found")
    return RuleService.get_rule(db, rule_id)


@router.delete("/{rule_id}")
async def delete_rule(rule_id: int, db: Session = Depends(get_db_session)) -> dict[str, Any]:
    raise_for_result(RuleService.delete_rule(db, rule_id), "Rule not found")
    return {"success": True, "message": "Rule deleted"}
