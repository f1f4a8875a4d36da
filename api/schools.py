"""API routes for schools, their academic calendars and family member enrolments."""

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from api.dependencies import get_db_session, raise_for_result
from api.family import FamilyService, _today
from api.models import (
    EnrolmentCreate,
    EnrolmentResponse,
    EnrolmentUpdate,
    SchoolCreate,
    SchoolFeeResponse,
    SchoolResponse,
    SchoolTermBulkCreate,
    SchoolTermResponse,
    SchoolTermUpdate,
    SchoolUpdate,
    SchoolYearCreate,
    SchoolYearResponse,
    TermCalendarResponse,
)
from api.services import _failed
from src.famfin.core.database import (
    FamilyMemberORM,
    SchoolEnrolmentORM,
    SchoolFeeORM,
    SchoolORM,
    SchoolTermORM,
    SchoolYearORM,
)
from src.famfin.core.models import MutationResult
from src.famfin.family.costs import days_until_fees_due, get_current_term, get_next_term, next_year_level

router = APIRouter(prefix="/schools", tags=["schools"])


class SchoolService:
    """Service for schools, school years, terms and enrolments."""

    @staticmethod
    def term_response(term: SchoolTermORM, today: date) -> SchoolTermResponse:
        return SchoolTermResponse(
            id=term.id,
            school_year_id=term.school_year_id,
            term_type=term.term_type,
            term_number=term.term_number,
            name=term.name,
            start_date=term.start_date,
            end_date=term.end_date,
            fees_due_date=term.fees_due_date,
            notes=term.notes,
            is_current=term.start_date <= today <= term.end_date,
            days_until_fees_due=days_until_fees_due(term, today),
        )

    @staticmethod
    def year_response(school_year: SchoolYearORM, today: date) -> SchoolYearResponse:
        return SchoolYearResponse(
            id=school_year.id,
            school_id=school_year.school_id,
            year=school_year.year,
            year_start=school_year.year_start,
            year_end=school_year.year_end,
            notes=school_year.notes,
            terms=[SchoolService.term_response(t, today) for t in school_year.terms],
        )

    @staticmethod
    def enrolment_response(enrolment: SchoolEnrolmentORM) -> EnrolmentResponse:
        return EnrolmentResponse(
            id=enrolment.id,
            family_member_id=enrolment.family_member_id,
            family_member_name=enrolment.family_member.name,
            school_id=enrolment.school_id,
            school_name=enrolment.school.name,
            year_level=enrolment.year_level,
            next_year_level=next_year_level(enrolment.year_level),
            enrolment_date=enrolment.enrolment_date,
            expected_graduation=enrolment.expected_graduation,
            student_id=enrolment.student_id,
            house=enrolment.house,
            is_current=enrolment.is_current,
            notes=enrolment.notes,
        )

    @staticmethod
    def get_schools(session: Session) -> list[SchoolORM]:
        return session.query(SchoolORM).order_by(SchoolORM.name).all()

    @staticmethod
    def create_school(session: Session, data: SchoolCreate) -> MutationResult:
        try:
            school = SchoolORM(**data.model_dump())
            session.add(school)
            session.commit()
            return MutationResult(success=True, count=1, id=school.id)
        except SQLAlchemyError as e:
            return _failed(session, "create school", e)

    @staticmethod
    def update_school(session: Session, school_id: int, update: SchoolUpdate) -> MutationResult | None:
        school = session.get(SchoolORM, school_id)
        if not school:
            return None
        try:
            for field, value in update.model_dump(exclude_unset=True).items():
                setattr(school, field, value)
            session.commit()
            return MutationResult(success=True, count=1, id=school_id)
        except SQLAlchemyError as e:
            return _failed(session, "update school", e)

    @staticmethod
    def delete_school(session: Session, school_id: int) -> MutationResult | None:
        """Delete a school with its years, terms, enrolments and their fees."""
        school = session.get(SchoolORM, school_id)
        if not school:
            return None
        try:
            session.delete(school)
            session.commit()
            return MutationResult(success=True, count=1)
        except SQLAlchemyError as e:
            return _failed(session, "delete school", e)

    @staticmethod
    def get_school_years(session: Session, school_id: int) -> list[SchoolYearORM]:
        """Years of a school, most recent first, with their terms."""
        return (
            session.query(SchoolYearORM)
            .options(joinedload(SchoolYearORM.terms))
            .filter(SchoolYearORM.school_id == school_id)
            .order_by(SchoolYearORM.year.desc())
            .all()
        )

    @staticmethod
    def create_school_year(session: Session, school_id: int, data: SchoolYearCreate) -> MutationResult | None:
        if not session.get(SchoolORM, school_id):
            return None
        try:
            school_year = SchoolYearORM(school_id=school_id, **data.model_dump())
            session.add(school_year)
            session.commit()
            return MutationResult(success=True, count=1, id=school_year.id)
        except IntegrityError:
            session.rollback()
            return MutationResult(success=False, error=f"Year {data.year} already exists for this school")
        except SQLAlchemyError as e:
            return _failed(session, "create school year", e)

    @staticmethod
    def delete_school_year(session: Session, year_id: int) -> MutationResult | None:
        school_year = session.get(SchoolYearORM, year_id)
        if not school_year:
            return None
        try:
            session.delete(school_year)
            session.commit()
            return MutationResult(success=True, count=1)
        except SQLAlchemyError as e:
            return _failed(session, "delete school year", e)

    @staticmethod
    def create_school_terms_bulk(session: Session, year_id: int, data: SchoolTermBulkCreate) -> MutationResult | None:
        """Add every term of a school year in one transaction.

        Nothing is saved when any term ends before it starts or reuses a term number.
        """
        if not session.get(SchoolYearORM, year_id):
            return None
        for term in data.terms:
            if term.end_date < term.start_date:
                return MutationResult(success=False, error=f"Term {term.term_number} ends before it starts")
        try:
            for term in data.terms:
                session.add(SchoolTermORM(school_year_id=year_id, **term.model_dump()))
            session.commit()
            return MutationResult(success=True, count=len(data.terms))
        except IntegrityError:
            session.rollback()
            return MutationResult(success=False, error="Term numbers must be unique within a school year")
        except SQLAlchemyError as e:
            return _failed(session, "create school terms", e)

    @staticmethod
    def update_school_term(session: Session, term_id: int, update: SchoolTermUpdate) -> MutationResult | None:
        term = session.get(SchoolTermORM, term_id)
        if not term:
            return None
        changes = update.model_dump(exclude_unset=True)
        start = changes.get("start_date", term.start_date)
        end = changes.get("end_date", term.end_date)
        if start is None or end is None or end < start:
            return MutationResult(success=False, error="Term must end on or after its start date")
        try:
            for field, value in changes.items():
                setattr(term, field, value)
            session.commit()
            return MutationResult(success=True, count=1, id=term_id)
        except IntegrityError:
            session.rollback()
            return MutationResult(success=False, error="Term numbers must be unique within a school year")
        except SQLAlchemyError as e:
            return _failed(session, "update school term", e)

    @staticmethod
    def delete_school_term(session: Session, term_id: int) -> MutationResult | None:
        """Delete a term; fees linked to it keep their details but lose the term."""
        term = session.get(SchoolTermORM, term_id)
        if not term:
            return None
        try:
            session.delete(term)
            session.commit()
            return MutationResult(success=True, count=1)
        except SQLAlchemyError as e:
            return _failed(session, "delete school term", e)

    @staticmethod
    def _enrolment_query(session: Session):
        return session.query(SchoolEnrolmentORM).options(
            joinedload(SchoolEnrolmentORM.family_member), joinedload(SchoolEnrolmentORM.school)
        )

    @staticmethod
    def get_enrolments_by_member(session: Session, member_id: int) -> list[SchoolEnrolmentORM]:
        """A member's enrolments, current first, then most recently enrolled."""
        return (
            SchoolService._enrolment_query(session)
            .filter(SchoolEnrolmentORM.family_member_id == member_id)
            .order_by(SchoolEnrolmentORM.is_current.desc(), SchoolEnrolmentORM.enrolment_date.desc())
            .all()
        )

    @staticmethod
    def get_enrolments_by_school(session: Session, school_id: int) -> list[SchoolEnrolmentORM]:
        return (
            SchoolService._enrolment_query(session)
            .join(SchoolEnrolmentORM.family_member)
            .filter(SchoolEnrolmentORM.school_id == school_id)
            .order_by(FamilyMemberORM.name)
            .all()
        )

    @staticmethod
    def create_enrolment(session: Session, data: EnrolmentCreate) -> MutationResult:
        if not session.get(FamilyMemberORM, data.family_member_id):
            return MutationResult(success=False, error="Family member not found")
        if not session.get(SchoolORM, data.school_id):
            return MutationResult(success=False, error="School not found")
        try:
            enrolment = SchoolEnrolmentORM(**data.model_dump())
            session.add(enrolment)
            session.commit()
            return MutationResult(success=True, count=1, id=enrolment.id)
        except IntegrityError:
            session.rollback()
            return MutationResult(success=False, error="Family member is already enrolled at this school")
        except SQLAlchemyError as e:
            return _failed(session, "create enrolment", e)

    @staticmethod
    def update_enrolment(session: Session, enrolment_id: int, update: EnrolmentUpdate) -> MutationResult | None:
        enrolment = session.get(SchoolEnrolmentORM, enrolment_id)
        if not enrolment:
            return None
        try:
            for field, value in update.model_dump(exclude_unset=True).items():
                setattr(enrolment, field, value)
            session.commit()
            return MutationResult(success=True, count=1, id=enrolment_id)
        except SQLAlchemyError as e:
            return _failed(session, "update enrolment", e)

    @staticmethod
    def delete_enrolment(session: Session, enrolment_id: int) -> MutationResult | None:
        """Delete an enrolment and its fees."""
        enrolment = session.get(SchoolEnrolmentORM, enrolment_id)
        if not enrolment:
            return None
        try:
            session.delete(enrolment)
            session.commit()
            return MutationResult(success=True, count=1)
        except SQLAlchemyError as e:
            return _failed(session, "delete enrolment", e)

    @staticmethod
    def get_fees_by_enrolment(session: Session, enrolment_id: int) -> list[SchoolFeeORM]:
        return (
            FamilyService.fee_query(session)
            .filter(SchoolFeeORM.enrolment_id == enrolment_id)
            .order_by(SchoolFeeORM.due_date.asc(), SchoolFeeORM.id.asc())
            .all()
        )


# Fixed paths are registered before /{school_id} so they are not read as ids.


@router.get("/enrolments", response_model=list[EnrolmentResponse])
async def get_enrolments(
    member_id: int = Query(...), db: Session = Depends(get_db_session)
) -> list[EnrolmentResponse]:
    """Enrolments of one family member."""
    return [SchoolService.enrolment_response(e) for e in SchoolService.get_enrolments_by_member(db, member_id)]


@router.post("/enrolments", response_model=EnrolmentResponse, status_code=201)
async def create_enrolment(data: EnrolmentCreate, db: Session = Depends(get_db_session)) -> EnrolmentResponse:
    result = raise_for_result(SchoolService.create_enrolment(db, data))
    return SchoolService.enrolment_response(db.get(SchoolEnrolmentORM, result.id))


@router.put("/enrolments/{enrolment_id}", response_model=EnrolmentResponse)
async def update_enrolment(
    enrolment_id: int, update: EnrolmentUpdate, db: Session = Depends(get_db_session)
) -> EnrolmentResponse:
    raise_for_result(SchoolService.update_enrolment(db, enrolment_id, update), "Enrolment not found")
    return SchoolService.enrolment_response(db.get(SchoolEnrolmentORM, enrolment_id))


@router.delete("/enrolments/{enrolment_id}")
async def delete_enrolment(enrolment_id: int, db: Session = Depends(get_db_session)) -> dict[str, Any]:
    raise_for_result(SchoolService.delete_enrolment(db, enrolment_id), "Enrolment not found")
    return {"success": True, "message": "Enrolment deleted"}


@router.get("/enrolments/{enrolment_id}/fees", response_model=list[SchoolFeeResponse])
async def get_enrolment_fees(
    enrolment_id: int, db: Session = Depends(get_db_session), today: date = Depends(_today)
) -> list[SchoolFeeResponse]:
    if not db.get(SchoolEnrolmentORM, enrolment_id):
        raise HTTPException(status_code=404, detail="Enrolment not found")
    return [FamilyService.fee_response(f, today) for f in SchoolService.get_fees_by_enrolment(db, enrolment_id)]


@router.delete("/years/{year_id}")
async def delete_school_year(year_id: int, db: Session = Depends(get_db_session)) -> dict[str, Any]:
    raise_for_result(SchoolService.delete_school_year(db, year_id), "School year not found")
    return {"success": True, "message": "School year deleted"}


@router.post("/years/{year_id}/terms/bulk", response_model=SchoolYearResponse, status_code=201)
async def create_school_terms_bulk(
    year_id: int,
    data: SchoolTermBulkCreate,
    db: Session = Depends(get_db_session),
    today: date = Depends(_today),
) -> SchoolYearResponse:
    """Add all terms of a school year at once and return the year with its terms."""
    raise_for_result(SchoolService.create_school_terms_bulk(db, year_id, data), "School year not found")
    return SchoolService.year_response(db.get(SchoolYearORM, year_id), today)


@router.get("/years/{year_id}/calendar", response_model=TermCalendarResponse)
async def get_term_calendar(
    year_id: int, db: Session = Depends(get_db_session), today: date = Depends(_today)
) -> TermCalendarResponse:
    """The term in progress today and the next one to start."""
    school_year = db.get(SchoolYearORM, year_id)
    if not school_year:
        raise HTTPException(status_code=404, detail="School year not found")

    current = get_current_term(school_year.terms, today)
    upcoming = get_next_term(school_year.terms, today)
    return TermCalendarResponse(
        current_term=SchoolService.term_response(current, today) if current else None,
        next_term=SchoolService.term_response(upcoming, today) if upcoming else None,
    )


@router.put("/terms/{term_id}", response_model=SchoolTermResponse)
async def update_school_term(
    term_id: int, update: SchoolTermUpdate, db: Session = Depends(get_db_session), today: date = Depends(_today)
) -> SchoolTermResponse:
    raise_for_result(SchoolService.update_school_term(db, term_id, update), "School term not found")
    return SchoolService.term_response(db.get(SchoolTermORM, term_id), today)


@router.delete("/terms/{term_id}")
async def delete_school_term(term_id: int, db: Session = Depends(get_db_session)) -> dict[str, Any]:
    raise_for_result(SchoolService.delete_school_term(db, term_id), "School term not found")
    return {"success": True, "message": "School term deleted"}


@router.get("/", response_model=list[SchoolResponse])
async def get_schools(db: Session = Depends(get_db_session)) -> list[SchoolResponse]:
    return [SchoolResponse.model_validate(s) for s in SchoolService.get_schools(db)]


@router.post("/", response_model=SchoolResponse, status_code=201)
async def create_school(data: SchoolCreate, db: Session = Depends(get_db_session)) -> SchoolResponse:
    result = raise_for_result(SchoolService.create_school(db, data))
    return SchoolResponse.model_validate(db.get(SchoolORM, result.id))


@router.get("/{school_id}", response_model=SchoolResponse)
async def get_school(school_id: int, db: Session = Depends(get_db_session)) -> SchoolResponse:
    school = db.get(SchoolORM, school_id)
    if not school:
        raise HTTPException(status_code=404, detail="School not found")
    return SchoolResponse.model_validate(school)


@router.put("/{school_id}", response_model=SchoolResponse)
async def update_school(school_id: int, update: SchoolUpdate, db: Session = Depends(get_db_session)) -> SchoolResponse:
    raise_for_result(SchoolService.update_school(db, school_id, update), "School not found")
    return SchoolResponse.model_validate(db.get(SchoolORM, school_id))


@router.delete("/{school_id}")
async def delete_school(school_id: int, db: Session = Depends(get_db_session)) -> dict[str, Any]:
    raise_for_result(SchoolService.delete_school(db, school_id), "School not found")
    return {"success": True, "message": "School deleted"}


@router.get("/{school_id}/years", response_model=list[SchoolYearResponse])
async def get_school_years(
    school_id: int, db: Session = Depends(get_db_session), today: date = Depends(_today)
) -> list[SchoolYearResponse]:
    if not db.get(SchoolORM, school_id):
        raise HTTPException(status_code=404, detail="School not found")
    return [SchoolService.year_response(y, today) for y in SchoolService.get_school_years(db, school_id)]


@router.post("/{school_id}/years", response_model=SchoolYearResponse, status_code=201)
async def create_school_year(
    school_id: int, data: SchoolYearCreate, db: Session = Depends(get_db_session), today: date = Depends(_today)
) -> SchoolYearResponse:
    result = raise_for_result(SchoolService.create_school_year(db, school_id, data), "School not found")
    return SchoolService.year_response(db.get(SchoolYearORM, result.id), today)


@router.get("/{school_id}/enrolments", response_model=list[EnrolmentResponse])
async def get_school_enrolments(school_id: int, db: Session = Depends(get_db_session)) -> list[EnrolmentResponse]:
    """Enrolments at a school with the enrolled family member."""
    if not db.get(SchoolORM, school_id):
        raise HTTPException(status_code=404, detail="School not found")
    return [SchoolService.enrolment_response(e) for e in SchoolService.get_enrolments_by_school(db, school_id)]
