"""API routes for family members, school fees, extracurricular activities and their lookups."""

from datetime import date, datetime, timedelta
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from api.dependencies import get_db_session, get_now, raise_for_result
from api.models import (
    ActivityCreate,
    ActivityResponse,
    ActivityTypeCreate,
    ActivityTypeResponse,
    ActivityTypeUpdate,
    ActivityUpdate,
    ChildFeesOverview,
    FamilyMemberCreate,
    FamilyMemberResponse,
    FamilyMemberUpdate,
    FeesOverviewResponse,
    FeeTypeCreate,
    FeeTypeResponse,
    FeeTypeUpdate,
    FrequencyCreate,
    FrequencyResponse,
    FrequencyUpdate,
    MarkFeePaidRequest,
    MemberSummaryResponse,
    SchoolFeeCreate,
    SchoolFeeResponse,
    SchoolFeeUpdate,
)
from api.services import _failed
from src.famfin.core.database import (
    ActivityTypeORM,
    ExtracurricularORM,
    FamilyMemberORM,
    FeeTypeORM,
    FrequencyORM,
    SchoolEnrolmentORM,
    SchoolFeeORM,
    SchoolTermORM,
)
from src.famfin.core.models import MutationResult
from src.famfin.family.costs import (
    activity_annual_cost,
    calculate_age,
    estimate_year_level,
    fee_status,
    group_activities_by_day,
    total_activities_cost,
)

router = APIRouter(prefix="/family", tags=["family"])


class LookupService:
    """CRUD for the frequency, fee type and activity type tables.

    Seeded rows carry ``is_system`` and cannot be changed or removed. A row
    still referenced by fees or activities cannot be deleted.
    """

    # lookup table -> (label, columns referencing it)
    REFERENCES = {
        FrequencyORM: ("frequency", [SchoolFeeORM.frequency_id, ExtracurricularORM.cost_frequency_id]),
        FeeTypeORM: ("fee type", [SchoolFeeORM.fee_type_id]),
        ActivityTypeORM: ("activity type", [ExtracurricularORM.activity_type_id]),
    }

    @staticmethod
    def get_all(session: Session, model: type) -> list[Any]:
        return session.query(model).order_by(model.sort_order, model.name).all()

    @staticmethod
    def create(session: Session, model: type, data: Any) -> MutationResult:
        label = LookupService.REFERENCES[model][0]
        try:
            row = model(**data.model_dump(), is_system=False)
            session.add(row)
            session.commit()
            return MutationResult(success=True, count=1, id=row.id)
        except IntegrityError:
            session.rollback()
            return MutationResult(success=False, error=f"{label.capitalize()} '{data.name}' already exists")
        except SQLAlchemyError as e:
            return _failed(session, f"create {label}", e)

    @staticmethod
    def update(session: Session, model: type, row_id: int, update: Any) -> MutationResult | None:
        label = LookupService.REFERENCES[model][0]
        row = session.get(model, row_id)
        if not row:
            return None
        if row.is_system:
            return MutationResult(success=False, error=f"System {label} cannot be modified")
        try:
            for field, value in update.model_dump(exclude_unset=True).items():
                setattr(row, field, value)
            session.commit()
            return MutationResult(success=True, count=1, id=row_id)
        except IntegrityError:
            session.rollback()
            return MutationResult(success=False, error=f"{label.capitalize()} '{update.name}' already exists")
        except SQLAlchemyError as e:
            return _failed(session, f"update {label}", e)

    @staticmethod
    def delete(session: Session, model: type, row_id: int) -> MutationResult | None:
        label, columns = LookupService.REFERENCES[model]
        row = session.get(model, row_id)
        if not row:
            return None
        if row.is_system:
            return MutationResult(success=False, error=f"System {label} cannot be deleted")
        for column in columns:
            if session.query(column.class_).filter(column == row_id).first():
                return MutationResult(success=False, error=f"{label.capitalize()} is in use")
        try:
            session.delete(row)
            session.commit()
            return MutationResult(success=True, count=1)
        except SQLAlchemyError as e:
            return _failed(session, f"delete {label}", e)


class FamilyService:
    """Service for family member, school fee and activity operations."""

    @staticmethod
    def member_response(member: FamilyMemberORM, today: date) -> FamilyMemberResponse:
        return FamilyMemberResponse(
            id=member.id,
            name=member.name,
            member_type=member.member_type,
            relationship=member.relationship_to_primary,
            date_of_birth=member.date_of_birth,
            is_primary=member.is_primary,
            notes=member.notes,
            age=calculate_age(member.date_of_birth, today),
        )

    @staticmethod
    def fee_response(fee: SchoolFeeORM, today: date) -> SchoolFeeResponse:
        return SchoolFeeResponse(
            id=fee.id,
            enrolment_id=fee.enrolment_id,
            family_member_id=fee.enrolment.family_member_id,
            school_name=fee.enrolment.school.name,
            fee_type_id=fee.fee_type_id,
            fee_type=fee.fee_type.name,
            school_term_id=fee.school_term_id,
            description=fee.description,
            amount=fee.amount,
            frequency_id=fee.frequency_id,
            due_date=fee.due_date,
            year=fee.year,
            is_paid=fee.is_paid,
            paid_date=fee.paid_date,
            paid_amount=fee.paid_amount,
            payment_method=fee.payment_method,
            invoice_number=fee.invoice_number,
            notes=fee.notes,
            status=fee_status(fee.due_date, fee.is_paid, today).value,
        )

    @staticmethod
    def activity_response(activity: ExtracurricularORM) -> ActivityResponse:
        return ActivityResponse(
            id=activity.id,
            family_member_id=activity.family_member_id,
            name=activity.name,
            activity_type_id=activity.activity_type_id,
            activity_type=activity.activity_type.name,
            provider=activity.provider,
            days_of_week=activity.days_of_week or [],
            cost_amount=activity.cost_amount,
            cost_frequency_id=activity.cost_frequency_id,
            registration_fee=activity.registration_fee,
            equipment_cost=activity.equipment_cost,
            uniform_cost=activity.uniform_cost,
            other_costs=activity.other_costs,
            is_active=activity.is_active,
            annual_cost=activity_annual_cost(activity),
        )

    @staticmethod
    def get_members(session: Session) -> list[FamilyMemberORM]:
        """Primary member first, then adults, then children, each by name."""
        members = session.query(FamilyMemberORM).all()
        return sorted(members, key=lambda m: (not m.is_primary, m.member_type != "adult", m.name))

    @staticmethod
    def create_member(session: Session, data: FamilyMemberCreate) -> MutationResult:
        try:
            member = FamilyMemberORM(
                name=data.name,
                member_type=data.member_type,
                relationship_to_primary=data.relationship,
                date_of_birth=data.date_of_birth,
                is_primary=data.is_primary,
                notes=data.notes,
            )
            session.add(member)
            session.commit()
            return MutationResult(success=True, count=1, id=member.id)
        except SQLAlchemyError as e:
            return _failed(session, "create family member", e)

    @staticmethod
    def update_member(session: Session, member_id: int, update: FamilyMemberUpdate) -> MutationResult | None:
        member = session.get(FamilyMemberORM, member_id)
        if not member:
            return None
        try:
            for field, value in update.model_dump(exclude_unset=True).items():
                setattr(member, "relationship_to_primary" if field == "relationship" else field, value)
            session.commit()
            return MutationResult(success=True, count=1, id=member_id)
        except SQLAlchemyError as e:
            return _failed(session, "update family member", e)

    @staticmethod
    def delete_member(session: Session, member_id: int) -> MutationResult | None:
        """Delete a member together with their enrolments, fees and activities."""
        member = session.get(FamilyMemberORM, member_id)
        if not member:
            return None
        try:
            session.delete(member)
            session.commit()
            return MutationResult(success=True, count=1)
        except SQLAlchemyError as e:
            return _failed(session, "delete family member", e)

    @staticmethod
    def fee_query(session: Session):
        return session.query(SchoolFeeORM).options(
            joinedload(SchoolFeeORM.enrolment).joinedload(SchoolEnrolmentORM.school),
            joinedload(SchoolFeeORM.fee_type),
        )

    @staticmethod
    def get_fees(session: Session, member_id: int | None = None, year: int | None = None) -> list[SchoolFeeORM]:
        query = FamilyService.fee_query(session)
        if member_id is not None:
            query = query.join(SchoolFeeORM.enrolment).filter(SchoolEnrolmentORM.family_member_id == member_id)
        if year is not None:
            query = query.filter(SchoolFeeORM.year == year)
        return query.order_by(SchoolFeeORM.due_date.asc(), SchoolFeeORM.id.asc()).all()

    @staticmethod
    def get_upcoming_fees(session: Session, today: date, days: int = 30) -> list[SchoolFeeORM]:
        """Unpaid fees due between today and ``days`` from now."""
        return (
            FamilyService.fee_query(session)
            .filter(
                SchoolFeeORM.is_paid.is_(False),
                SchoolFeeORM.due_date >= today,
                SchoolFeeORM.due_date <= today + timedelta(days=days),
            )
            .order_by(SchoolFeeORM.due_date.asc())
            .all()
        )

    @staticmethod
    def get_overdue_fees(session: Session, today: date) -> list[SchoolFeeORM]:
        return (
            FamilyService.fee_query(session)
            .filter(SchoolFeeORM.is_paid.is_(False), SchoolFeeORM.due_date < today)
            .order_by(SchoolFeeORM.due_date.asc())
            .all()
        )

    @staticmethod
    def _check_fee_references(session: Session, fee_type_id: int | None, school_term_id: int | None) -> str | None:
        if fee_type_id is not None and not session.get(FeeTypeORM, fee_type_id):
            return "Fee type not found"
        if school_term_id is not None and not session.get(SchoolTermORM, school_term_id):
            return "School term not found"
        return None

    @staticmethod
    def create_fee(session: Session, data: SchoolFeeCreate) -> MutationResult:
        if not session.get(SchoolEnrolmentORM, data.enrolment_id):
            return MutationResult(success=False, error="Enrolment not found")
        error = FamilyService._check_fee_references(session, data.fee_type_id, data.school_term_id)
        if error:
            return MutationResult(success=False, error=error)
        try:
            fee = SchoolFeeORM(**data.model_dump())
            session.add(fee)
            session.commit()
            return MutationResult(success=True, count=1, id=fee.id)
        except SQLAlchemyError as e:
            return _failed(session, "create school fee", e)

    @staticmethod
    def update_fee(session: Session, fee_id: int, update: SchoolFeeUpdate) -> MutationResult | None:
        fee = session.get(SchoolFeeORM, fee_id)
        if not fee:
            return None
        changes = update.model_dump(exclude_unset=True)
        if changes.get("fee_type_id", fee.fee_type_id) is None:
            return MutationResult(success=False, error="Fee type is required")
        error = FamilyService._check_fee_references(session, changes.get("fee_type_id"), changes.get("school_term_id"))
        if error:
            return MutationResult(success=False, error=error)
        try:
            for field, value in changes.items():
                setattr(fee, field, value)
            session.commit()
            return MutationResult(success=True, count=1, id=fee_id)
        except SQLAlchemyError as e:
            return _failed(session, "update school fee", e)

    @staticmethod
    def mark_fee_paid(
        session: Session, fee_id: int, today: date, request: MarkFeePaidRequest | None = None
    ) -> MutationResult | None:
        """Mark a fee paid; defaults to paying the full amount today."""
        fee = session.get(SchoolFeeORM, fee_id)
        if not fee:
            return None
        request = request or MarkFeePaidRequest()
        try:
            fee.is_paid = True
            fee.paid_date = request.paid_date or today
            fee.paid_amount = request.paid_amount if request.paid_amount is not None else fee.amount
            fee.payment_method = request.payment_method
            session.commit()
            return MutationResult(success=True, count=1, id=fee_id)
        except SQLAlchemyError as e:
            return _failed(session, "mark school fee paid", e)

    @staticmethod
    def delete_fee(session: Session, fee_id: int) -> MutationResult | None:
        fee = session.get(SchoolFeeORM, fee_id)
        if not fee:
            return None
        try:
            session.delete(fee)
            session.commit()
            return MutationResult(success=True, count=1)
        except SQLAlchemyError as e:
            return _failed(session, "delete school fee", e)

    @staticmethod
    def get_activities(
        session: Session, member_id: int | None = None, active_only: bool = False
    ) -> list[ExtracurricularORM]:
        query = session.query(ExtracurricularORM).options(joinedload(ExtracurricularORM.cost_frequency))
        if member_id is not None:
            query = query.filter(ExtracurricularORM.family_member_id == member_id)
        if active_only:
            query = query.filter(ExtracurricularORM.is_active)
        return query.order_by(ExtracurricularORM.name).all()

    @staticmethod
    def create_activity(session: Session, data: ActivityCreate) -> MutationResult:
        if not session.get(FamilyMemberORM, data.family_member_id):
            return MutationResult(success=False, error="Family member not found")
        if not session.get(ActivityTypeORM, data.activity_type_id):
            return MutationResult(success=False, error="Activity type not found")
        try:
            activity = ExtracurricularORM(**data.model_dump())
            session.add(activity)
            session.commit()
            return MutationResult(success=True, count=1, id=activity.id)
        except SQLAlchemyError as e:
            return _failed(session, "create activity", e)

    @staticmethod
    def update_activity(session: Session, activity_id: int, update: ActivityUpdate) -> MutationResult | None:
        activity = session.get(ExtracurricularORM, activity_id)
        if not activity:
            return None
        changes = update.model_dump(exclude_unset=True)
        if "activity_type_id" in changes and not session.get(ActivityTypeORM, changes["activity_type_id"]):
            return MutationResult(success=False, error="Activity type not found")
        try:
            for field, value in changes.items():
                setattr(activity, field, value)
            session.commit()
            return MutationResult(success=True, count=1, id=activity_id)
        except SQLAlchemyError as e:
            return _failed(session, "update activity", e)

    @staticmethod
    def delete_activity(session: Session, activity_id: int) -> MutationResult | None:
        activity = session.get(ExtracurricularORM, activity_id)
        if not activity:
            return None
        try:
            session.delete(activity)
            session.commit()
            return MutationResult(success=True, count=1)
        except SQLAlchemyError as e:
            return _failed(session, "delete activity", e)

    @staticmethod
    def get_member_summary(session: Session, member_id: int, today: date) -> MemberSummaryResponse | None:
        """Age, this year's school fees and active activity costs for one member."""
        member = session.get(FamilyMemberORM, member_id)
        if not member:
            return None

        fees = FamilyService.get_fees(session, member_id=member_id, year=today.year)
        activities = FamilyService.get_activities(session, member_id=member_id, active_only=True)

        return MemberSummaryResponse(
            member=FamilyService.member_response(member, today),
            age=calculate_age(member.date_of_birth, today),
            estimated_year_level=estimate_year_level(member.date_of_birth, today),
            total_school_fees_year=sum(f.amount for f in fees),
            unpaid_fees_count=sum(1 for f in fees if not f.is_paid),
            active_activities_count=len(activities),
            total_activities_cost_year=total_activities_cost(activities),
        )

    @staticmethod
    def get_fees_overview(session: Session, year: int, today: date) -> FeesOverviewResponse:
        """School fees, payments and activity costs per child for a year."""
        overview = FeesOverviewResponse(year=year)
        children = (
            session.query(FamilyMemberORM)
            .filter(FamilyMemberORM.member_type == "child")
            .order_by(FamilyMemberORM.name)
            .all()
        )

        for child in children:
            fees = FamilyService.get_fees(session, member_id=child.id, year=year)
            activities = FamilyService.get_activities(session, member_id=child.id, active_only=True)

            school_fees = sum(f.amount for f in fees)
            paid_fees = sum(f.paid_amount or f.amount for f in fees if f.is_paid)
            activities_cost = total_activities_cost(activities)

            overview.total_school_fees += school_fees
            overview.total_paid += paid_fees
            overview.total_activities_cost += activities_cost
            overview.by_child.append(
                ChildFeesOverview(
                    family_member=FamilyService.member_response(child, today),
                    school_fees=school_fees,
                    paid_fees=paid_fees,
                    activities_cost=activities_cost,
                )
            )

        overview.total_remaining = overview.total_school_fees - overview.total_paid
        return overview


def _today(now: datetime = Depends(get_now)) -> date:
    return now.date() if isinstance(now, datetime) else now


@router.get("/members", response_model=list[FamilyMemberResponse])
async def get_members(
    db: Session = Depends(get_db_session), today: date = Depends(_today)
) -> list[FamilyMemberResponse]:
    return [FamilyService.member_response(m, today) for m in FamilyService.get_members(db)]


@router.get("/members/{member_id}", response_model=FamilyMemberResponse)
async def get_member(
    member_id: int, db: Session = Depends(get_db_session), today: date = Depends(_today)
) -> FamilyMemberResponse:
    member = db.get(FamilyMemberORM, member_id)
    if not member:
        raise HTTPException(status_code=404, detail="Family member not found")
    return FamilyService.member_response(member, today)


@router.get("/members/{member_id}/summary", response_model=MemberSummaryResponse)
async def get_member_summary(
    member_id: int, db: Session = Depends(get_db_session), today: date = Depends(_today)
) -> MemberSummaryResponse:
    summary = FamilyService.get_member_summary(db, member_id, today)
    if not summary:
        raise HTTPException(status_code=404, detail="Family member not found")
    return summary


@router.post("/members", response_model=FamilyMemberResponse, status_code=201)
async def create_member(
    data: FamilyMemberCreate, db: Session = Depends(get_db_session), today: date = Depends(_today)
) -> FamilyMemberResponse:
    result = raise_for_result(FamilyService.create_member(db, data))
    return FamilyService.member_response(db.get(FamilyMemberORM, result.id), today)


@router.put("/members/{member_id}", response_model=FamilyMemberResponse)
async def update_member(
    member_id: int,
    update: FamilyMemberUpdate,
    db: Session = Depends(get_db_session),
    today: date = Depends(_today),
) -> FamilyMemberResponse:
    raise_for_result(FamilyService.update_member(db, member_id, update), "Family member not found")
    return FamilyService.member_response(db.get(FamilyMemberORM, member_id), today)


@router.delete("/members/{member_id}")
async def delete_member(member_id: int, db: Session = Depends(get_db_session)) -> dict[str, Any]:
    raise_for_result(FamilyService.delete_member(db, member_id), "Family member not found")
    return {"success": True, "message": "Family member deleted"}


@router.get("/frequencies", response_model=list[FrequencyResponse])
async def get_frequencies(db: Session = Depends(get_db_session)) -> list[FrequencyResponse]:
    return [FrequencyResponse.model_validate(f) for f in LookupService.get_all(db, FrequencyORM)]


@router.post("/frequencies", response_model=FrequencyResponse, status_code=201)
async def create_frequency(data: FrequencyCreate, db: Session = Depends(get_db_session)) -> FrequencyResponse:
    result = raise_for_result(LookupService.create(db, FrequencyORM, data))
    return FrequencyResponse.model_validate(db.get(FrequencyORM, result.id))


@router.put("/frequencies/{frequency_id}", response_model=FrequencyResponse)
async def update_frequency(
    frequency_id: int, update: FrequencyUpdate, db: Session = Depends(get_db_session)
) -> FrequencyResponse:
    raise_for_result(LookupService.update(db, FrequencyORM, frequency_id, update), "Frequency not found")
    return FrequencyResponse.model_validate(db.get(FrequencyORM, frequency_id))


@router.delete("/frequencies/{frequency_id}")
async def delete_frequency(frequency_id: int, db: Session = Depends(get_db_session)) -> dict[str, Any]:
    raise_for_result(LookupService.delete(db, FrequencyORM, frequency_id), "Frequency not found")
    return {"success": True, "message": "Frequency deleted"}


@router.get("/fee-types", response_model=list[FeeTypeResponse])
async def get_fee_types(db: Session = Depends(get_db_session)) -> list[FeeTypeResponse]:
    return [FeeTypeResponse.model_validate(t) for t in LookupService.get_all(db, FeeTypeORM)]


@router.post("/fee-types", response_model=FeeTypeResponse, status_code=201)
async def create_fee_type(data: FeeTypeCreate, db: Session = Depends(get_db_session)) -> FeeTypeResponse:
    result = raise_for_result(LookupService.create(db, FeeTypeORM, data))
    return FeeTypeResponse.model_validate(db.get(FeeTypeORM, result.id))


@router.put("/fee-types/{fee_type_id}", response_model=FeeTypeResponse)
async def update_fee_type(
    fee_type_id: int, update: FeeTypeUpdate, db: Session = Depends(get_db_session)
) -> FeeTypeResponse:
    raise_for_result(LookupService.update(db, FeeTypeORM, fee_type_id, update), "Fee type not found")
    return FeeTypeResponse.model_validate(db.get(FeeTypeORM, fee_type_id))


@router.delete("/fee-types/{fee_type_id}")
async def delete_fee_type(fee_type_id: int, db: Session = Depends(get_db_session)) -> dict[str, Any]:
    raise_for_result(LookupService.delete(db, FeeTypeORM, fee_type_id), "Fee type not found")
    return {"success": True, "message": "Fee type deleted"}


@router.get("/activity-types", response_model=list[ActivityTypeResponse])
async def get_activity_types(db: Session = Depends(get_db_session)) -> list[ActivityTypeResponse]:
    return [ActivityTypeResponse.model_validate(t) for t in LookupService.get_all(db, ActivityTypeORM)]


@router.post("/activity-types", response_model=ActivityTypeResponse, status_code=201)
async def create_activity_type(data: ActivityTypeCreate, db: Session = Depends(get_db_session)) -> ActivityTypeResponse:
    result = raise_for_result(LookupService.create(db, ActivityTypeORM, data))
    return ActivityTypeResponse.model_validate(db.get(ActivityTypeORM, result.id))


@router.put("/activity-types/{activity_type_id}", response_model=ActivityTypeResponse)
async def update_activity_type(
    activity_type_id: int, update: ActivityTypeUpdate, db: Session = Depends(get_db_session)
) -> ActivityTypeResponse:
    raise_for_result(LookupService.update(db, ActivityTypeORM, activity_type_id, update), "Activity type not found")
    return ActivityTypeResponse.model_validate(db.get(ActivityTypeORM, activity_type_id))


@router.delete("/activity-types/{activity_type_id}")
async def delete_activity_type(activity_type_id: int, db: Session = Depends(get_db_session)) -> dict[str, Any]:
    raise_for_result(LookupService.delete(db, ActivityTypeORM, activity_type_id), "Activity type not found")
    return {"success": True, "message": "Activity type deleted"}


@router.get("/fees", response_model=list[SchoolFeeResponse])
async def get_fees(
    member_id: int | None = Query(None),
    year: int | None = Query(None),
    db: Session = Depends(get_db_session),
    today: date = Depends(_today),
) -> list[SchoolFeeResponse]:
    return [FamilyService.fee_response(f, today) for f in FamilyService.get_fees(db, member_id, year)]


@router.get("/fees/upcoming", response_model=list[SchoolFeeResponse])
async def get_upcoming_fees(
    days: int = Query(30, ge=1, le=366), db: Session = Depends(get_db_session), today: date = Depends(_today)
) -> list[SchoolFeeResponse]:
    """Unpaid fees due within the next ``days`` days."""
    return [FamilyService.fee_response(f, today) for f in FamilyService.get_upcoming_fees(db, today, days)]


@router.get("/fees/overdue", response_model=list[SchoolFeeResponse])
async def get_overdue_fees(
    db: Session = Depends(get_db_session), today: date = Depends(_today)
) -> list[SchoolFeeResponse]:
    return [FamilyService.fee_response(f, today) for f in FamilyService.get_overdue_fees(db, today)]


@router.get("/fees/overview", response_model=FeesOverviewResponse)
async def get_fees_overview(
    year: int | None = Query(None, ge=2000, le=2100),
    db: Session = Depends(get_db_session),
    today: date = Depends(_today),
) -> FeesOverviewResponse:
    """Per-child school fees, payments and activity costs (defaults to this year)."""
    try:
        return FamilyService.get_fees_overview(db, year or today.year, today)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.post("/fees", response_model=SchoolFeeResponse, status_code=201)
async def create_fee(
    data: SchoolFeeCreate, db: Session = Depends(get_db_session), today: date = Depends(_today)
) -> SchoolFeeResponse:
    result = raise_for_result(FamilyService.create_fee(db, data))
    return FamilyService.fee_response(db.get(SchoolFeeORM, result.id), today)


@router.put("/fees/{fee_id}", response_model=SchoolFeeResponse)
async def update_fee(
    fee_id: int, update: SchoolFeeUpdate, db: Session = Depends(get_db_session), today: date = Depends(_today)
) -> SchoolFeeResponse:
    raise_for_result(FamilyService.update_fee(db, fee_id, update), "School fee not found")
    return FamilyService.fee_response(db.get(SchoolFeeORM, fee_id), today)


@router.post("/fees/{fee_id}/paid", response_model=SchoolFeeResponse)
async def mark_fee_paid(
    fee_id: int,
    request: MarkFeePaidRequest | None = None,
    db: Session = Depends(get_db_session),
    today: date = Depends(_today),
) -> SchoolFeeResponse:
    raise_for_result(FamilyService.mark_fee_paid(db, fee_id, today, request), "School fee not found")
    return FamilyService.fee_response(db.get(SchoolFeeORM, fee_id), today)


@router.delete("/fees/{fee_id}")
async def delete_fee(fee_id: int, db: Session = Depends(get_db_session)) -> dict[str, Any]:
    raise_for_result(FamilyService.delete_fee(db, fee_id), "School fee not found")
    return {"success": True, "message": "School fee deleted"}


@router.get("/activities", response_model=list[ActivityResponse])
async def get_activities(
    member_id: int | None = Query(None),
    active_only: bool = Query(False),
    db: Session = Depends(get_db_session),
) -> list[ActivityResponse]:
    return [FamilyService.activity_response(a) for a in FamilyService.get_activities(db, member_id, active_only)]


@router.get("/activities/schedule")
async def get_activity_schedule(
    member_id: int | None = Query(None), db: Session = Depends(get_db_session)
) -> dict[str, list[ActivityResponse]]:
    """Active activities grouped by the weekdays they run on."""
    activities = FamilyService.get_activities(db, member_id, active_only=True)
    return {
        day: [FamilyService.activity_response(a) for a in day_activities]
        for day, day_activities in group_activities_by_day(activities).items()
    }


@router.post("/activities", response_model=ActivityResponse, status_code=201)
async def create_activity(data: ActivityCreate, db: Session = Depends(get_db_session)) -> ActivityResponse:
    result = raise_for_result(FamilyService.create_activity(db, data))
    return FamilyService.activity_response(db.get(ExtracurricularORM, result.id))


@router.put("/activities/{activity_id}", response_model=ActivityResponse)
async def update_activity(
    activity_id: int, update: ActivityUpdate, db: Session = Depends(get_db_session)
) -> ActivityResponse:
    raise_for_result(FamilyService.update_activity(db, activity_id, update), "Activity not found")
    return FamilyService.activity_response(db.get(ExtracurricularORM, activity_id))


@router.delete("/activities/{activity_id}")
async def delete_activity(activity_id: int, db: Session = Depends(get_db_session)) -> dict[str, Any]:
    raise_for_result(FamilyService.delete_activity(db, activity_id), "Activity not found")
    return {"success": True, "message": "Activity deleted"}
