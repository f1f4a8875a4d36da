"""Pydantic models for API requests and responses."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from src.famfin.core.models import (
    BudgetPeriod,
    CategoryNode,
    CategoryType,
    ChartGroup,
    MatchField,
    MatchType,
    NotificationPriority,
    NotificationType,
    TransactionType,
)

ACCOUNT_TYPE_PATTERN = "^(transaction|savings|credit_card|loan|investment|other)$"
SCHOOL_TYPE_PATTERN = "^(primary|secondary|combined|preschool|tertiary|other)$"
SCHOOL_SECTOR_PATTERN = "^(public|private|catholic|independent|other)$"
TERM_TYPE_PATTERN = "^(term|semester|trimester|quarter)$"

# Fields named ``date`` shadow the type inside a class body
OptionalDate = date | None


class TransactionResponse(BaseModel):
    """Response model for transaction data."""

    id: int
    account_id: int
    account_name: str | None = None
    category_id: int | None = None
    category_name: str | None = None
    date: date
    description: str
    amount: float
    transaction_type: str
    payee: str | None = None
    reference: str | None = None
    notes: str | None = None
    import_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class TransactionCreate(BaseModel):
    """Request model for creating a transaction."""

    account_id: int
    category_id: int | None = None
    date: date
    description: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    transaction_type: TransactionType
    payee: str | None = None
    reference: str | None = None
    notes: str | None = None


class TransactionUpdate(BaseModel):
    """Request model for updating a transaction. Unset fields are left alone."""

    account_id: int | None = None
    category_id: int | None = None
    date: OptionalDate = None
    description: str | None = Field(None, min_length=1)
    amount: float | None = Field(None, ge=0)
    transaction_type: TransactionType | None = None
    payee: str | None = None
    reference: str | None = None
    notes: str | None = None


class TransactionPage(BaseModel):
    """One page of a filtered transaction list."""

    transactions: list[TransactionResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class TransactionSummaryResponse(BaseModel):
    total_income: float = 0.0
    total_expenses: float = 0.0
    net_cash_flow: float = 0.0
    transaction_count: int = 0


class BulkDeleteRequest(BaseModel):
    transaction_ids: list[int] = Field(..., min_length=1)


class BulkCategoryUpdate(BaseModel):
    """Request model for bulk categorisation. A null category clears it."""

    transaction_ids: list[int] = Field(..., min_length=1)
    category_id: int | None = None


class BulkPayeeUpdate(BaseModel):
    transaction_ids: list[int] = Field(..., min_length=1)
    payee: str | None = None


class BulkDescriptionUpdate(BaseModel):
    transaction_ids: list[int] = Field(..., min_length=1)
    description: str = Field(..., min_length=1)


class CategoryResponse(BaseModel):
    """Response model for category data."""

    id: int
    name: str
    category_type: str
    is_system: bool = False
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class CategoryCreate(BaseModel):
    """Request model for creating a category."""

    name: str = Field(..., min_length=1, max_length=100)
    category_type: CategoryType


class CategoryBulkCreate(BaseModel):
    categories: list[CategoryCreate] = Field(..., min_length=1)


class CategoryTreeResponse(BaseModel):
    categories: list[CategoryNode]


class AccountResponse(BaseModel):
    """Response model for account data."""

    id: int
    name: str
    account_type: str
    institution: str | None = None
    current_balance: float
    currency: str
    is_active: bool
    notes: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class AccountCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    account_type: str = Field("transaction", pattern=ACCOUNT_TYPE_PATTERN)
    institution: str | None = None
    current_balance: float = 0.0
    currency: str | None = Field(None, min_length=3, max_length=3)
    notes: str | None = None


class AccountUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    account_type: str | None = Field(None, pattern=ACCOUNT_TYPE_PATTERN)
    institution: str | None = None
    current_balance: float | None = None
    currency: str | None = Field(None, min_length=3, max_length=3)
    is_active: bool | None = None
    notes: str | None = None


class RuleResponse(BaseModel):
    """Response model for categorisation rules."""

    id: int
    category_id: int
    category_name: str | None = None
    match_field: str
    match_type: str
    match_value: str
    is_active: bool
    priority: int
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class RuleCreate(BaseModel):
    """Request model for creating a rule. Priority defaults to last in order."""

    category_id: int
    match_field: MatchField
    match_type: MatchType
    match_value: str = Field(..., min_length=1)
    priority: int | None = None
    is_active: bool = True


class RuleUpdate(BaseModel):
    category_id: int | None = None
    match_field: MatchField | None = None
    match_type: MatchType | None = None
    match_value: str | None = Field(None, min_length=1)
    priority: int | None = None
    is_active: bool | None = None


class RuleFromTransactionRequest(BaseModel):
    transaction_id: int
    category_id: int
    match_field: MatchField = MatchField.DESCRIPTION
    match_type: MatchType = MatchType.CONTAINS


class ApplyRulesRequest(BaseModel):
    """Restrict rule application to these transactions; all uncategorised when omitted."""

    transaction_ids: list[int] | None = None


class BudgetResponse(BaseModel):
    """Response model for budget data."""

    id: int
    name: str
    category_id: int | None = None
    category_name: str | None = None
    amount: float
    period: str
    alert_threshold: float | None = None
    alert_enabled: bool
    notes: str | None = None
    is_active: bool
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class BudgetCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    category_id: int | None = None
    amount: float = Field(..., ge=0)
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    alert_threshold: float | None = Field(None, gt=0, le=100)
    alert_enabled: bool = True
    notes: str | None = None


class BudgetUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    category_id: int | None = None
    amount: float | None = Field(None, ge=0)
    period: BudgetPeriod | None = None
    alert_threshold: float | None = Field(None, gt=0, le=100)
    alert_enabled: bool | None = None
    notes: str | None = None


class NotificationResponse(BaseModel):
    """Response model for notifications."""

    id: int
    title: str
    message: str
    notification_type: str
    priority: str
    is_read: bool
    is_dismissed: bool
    link_url: str | None = None
    related_entity_type: str | None = None
    related_entity_id: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None


class NotificationCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    notification_type: NotificationType = NotificationType.GENERAL
    priority: NotificationPriority = NotificationPriority.MEDIUM
    link_url: str | None = None
    related_entity_type: str | None = None
    related_entity_id: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class UploadResponse(BaseModel):
    """Response model for file upload."""

    import_id: str
    filename: str
    rows_processed: int
    transactions_imported: int
    duplicates_skipped: int
    transactions_categorised: int = 0


class ChartSummaryResponse(BaseModel):
    """Aggregated chart data for the whole filtered transaction set."""

    total_income: float = 0.0
    total_expenses: float = 0.0
    total_count: int = 0
    categories: list[ChartGroup] = Field(default_factory=list)
    payees: list[ChartGroup] = Field(default_factory=list)


class ExportRequest(BaseModel):
    """Request model for data export."""

    format: str = Field(..., pattern="^(csv|excel|json)$")
    start_date: date | None = None
    end_date: date | None = None
    account_id: int | None = None
    categories: list[str] | None = None


class FamilyMemberResponse(BaseModel):
    id: int
    name: str
    member_type: str
    relationship: str | None = None
    date_of_birth: date | None = None
    is_primary: bool = False
    notes: str | None = None
    age: int | None = None


class FamilyMemberCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    member_type: str = Field("child", pattern="^(adult|child)$")
    relationship: str | None = None
    date_of_birth: date | None = None
    is_primary: bool = False
    notes: str | None = None


class FamilyMemberUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    member_type: str | None = Field(None, pattern="^(adult|child)$")
    relationship: str | None = None
    date_of_birth: date | None = None
    is_primary: bool | None = None
    notes: str | None = None


class LookupResponse(BaseModel):
    """Frequency, fee type or activity type row."""

    id: int
    name: str
    description: str | None = None
    is_system: bool = False
    sort_order: int = 0

    class Config:
        from_attributes = True


class FrequencyResponse(LookupResponse):
    per_year_multiplier: float | None = None


class FrequencyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: str | None = None
    per_year_multiplier: float | None = Field(None, ge=0)
    sort_order: int = 0


class FrequencyUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=50)
    description: str | None = None
    per_year_multiplier: float | None = Field(None, ge=0)
    sort_order: int | None = None


class FeeTypeResponse(LookupResponse):
    pass


class FeeTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: str | None = None
    sort_order: int = 0


class FeeTypeUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=50)
    description: str | None = None
    sort_order: int | None = None


class ActivityTypeResponse(LookupResponse):
    icon: str | None = None


class ActivityTypeCreate(FeeTypeCreate):
    icon: str | None = Field(None, max_length=30)


class ActivityTypeUpdate(FeeTypeUpdate):
    icon: str | None = Field(None, max_length=30)


class SchoolResponse(BaseModel):
    id: int
    name: str
    school_type: str
    sector: str | None = None
    address: str | None = None
    suburb: str | None = None
    state: str | None = None
    postcode: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    notes: str | None = None

    class Config:
        from_attributes = True


class SchoolCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    school_type: str = Field("primary", pattern=SCHOOL_TYPE_PATTERN)
    sector: str | None = Field(None, pattern=SCHOOL_SECTOR_PATTERN)
    address: str | None = None
    suburb: str | None = None
    state: str = "QLD"
    postcode: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    notes: str | None = None


class SchoolUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=150)
    school_type: str | None = Field(None, pattern=SCHOOL_TYPE_PATTERN)
    sector: str | None = Field(None, pattern=SCHOOL_SECTOR_PATTERN)
    address: str | None = None
    suburb: str | None = None
    state: str | None = None
    postcode: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    notes: str | None = None


class SchoolTermResponse(BaseModel):
    """School term; ``days_until_fees_due`` counts from today."""

    id: int
    school_year_id: int
    term_type: str
    term_number: int
    name: str | None = None
    start_date: date
    end_date: date
    fees_due_date: date | None = None
    notes: str | None = None
    is_current: bool = False
    days_until_fees_due: int | None = None


class SchoolTermCreate(BaseModel):
    term_type: str = Field("term", pattern=TERM_TYPE_PATTERN)
    term_number: int = Field(..., ge=1)
    name: str | None = None
    start_date: date
    end_date: date
    fees_due_date: date | None = None
    notes: str | None = None


class SchoolTermBulkCreate(BaseModel):
    terms: list[SchoolTermCreate] = Field(..., min_length=1)


class SchoolTermUpdate(BaseModel):
    term_type: str | None = Field(None, pattern=TERM_TYPE_PATTERN)
    term_number: int | None = Field(None, ge=1)
    name: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    fees_due_date: date | None = None
    notes: str | None = None


class SchoolYearResponse(BaseModel):
    id: int
    school_id: int
    year: int
    year_start: date | None = None
    year_end: date | None = None
    notes: str | None = None
    terms: list[SchoolTermResponse] = Field(default_factory=list)


class SchoolYearCreate(BaseModel):
    year: int = Field(..., ge=2000, le=2100)
    year_start: date | None = None
    year_end: date | None = None
    notes: str | None = None


class TermCalendarResponse(BaseModel):
    current_term: SchoolTermResponse | None = None
    next_term: SchoolTermResponse | None = None


class EnrolmentResponse(BaseModel):
    """Enrolment with the school and member names and the following year level."""

    id: int
    family_member_id: int
    family_member_name: str
    school_id: int
    school_name: str
    year_level: str | None = None
    next_year_level: str | None = None
    enrolment_date: date | None = None
    expected_graduation: date | None = None
    student_id: str | None = None
    house: str | None = None
    is_current: bool = True
    notes: str | None = None


class EnrolmentCreate(BaseModel):
    family_member_id: int
    school_id: int
    year_level: str | None = None
    enrolment_date: date | None = None
    expected_graduation: date | None = None
    student_id: str | None = None
    house: str | None = None
    is_current: bool = True
    notes: str | None = None


class EnrolmentUpdate(BaseModel):
    year_level: str | None = None
    enrolment_date: date | None = None
    expected_graduation: date | None = None
    student_id: str | None = None
    house: str | None = None
    is_current: bool | None = None
    notes: str | None = None


class SchoolFeeResponse(BaseModel):
    """School fee with its derived payment status."""

    id: int
    enrolment_id: int
    family_member_id: int
    school_name: str
    fee_type_id: int
    fee_type: str
    school_term_id: int | None = None
    description: str
    amount: float
    frequency_id: int | None = None
    due_date: date | None = None
    year: int
    is_paid: bool
    paid_date: date | None = None
    paid_amount: float | None = None
    payment_method: str | None = None
    invoice_number: str | None = None
    notes: str | None = None
    status: str


class SchoolFeeCreate(BaseModel):
    enrolment_id: int
    fee_type_id: int
    school_term_id: int | None = None
    description: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    frequency_id: int | None = None
    due_date: date | None = None
    year: int = Field(..., ge=2000, le=2100)
    invoice_number: str | None = None
    notes: str | None = None


class SchoolFeeUpdate(BaseModel):
    fee_type_id: int | None = None
    school_term_id: int | None = None
    description: str | None = Field(None, min_length=1)
    amount: float | None = Field(None, ge=0)
    frequency_id: int | None = None
    due_date: date | None = None
    year: int | None = Field(None, ge=2000, le=2100)
    invoice_number: str | None = None
    notes: str | None = None


class MarkFeePaidRequest(BaseModel):
    paid_date: date | None = None
    paid_amount: float | None = Field(None, ge=0)
    payment_method: str | None = Field(None, max_length=50)


class ActivityResponse(BaseModel):
    """Extracurricular activity with its annualised cost."""

    id: int
    family_member_id: int
    name: str
    activity_type_id: int
    activity_type: str
    provider: str | None = None
    days_of_week: list[str] = Field(default_factory=list)
    cost_amount: float | None = None
    cost_frequency_id: int | None = None
    registration_fee: float | None = None
    equipment_cost: float | None = None
    uniform_cost: float | None = None
    other_costs: float | None = None
    is_active: bool
    annual_cost: float = 0.0


class ActivityCreate(BaseModel):
    family_member_id: int
    activity_type_id: int
    name: str = Field(..., min_length=1, max_length=100)
    provider: str | None = None
    days_of_week: list[str] = Field(default_factory=list)
    cost_amount: float | None = Field(None, ge=0)
    cost_frequency_id: int | None = None
    registration_fee: float | None = Field(None, ge=0)
    equipment_cost: float | None = Field(None, ge=0)
    uniform_cost: float | None = Field(None, ge=0)
    other_costs: float | None = Field(None, ge=0)
    is_active: bool = True


class ActivityUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    activity_type_id: int | None = None
    provider: str | None = None
    days_of_week: list[str] | None = None
    cost_amount: float | None = Field(None, ge=0)
    cost_frequency_id: int | None = None
    registration_fee: float | None = Field(None, ge=0)
    equipment_cost: float | None = Field(None, ge=0)
    uniform_cost: float | None = Field(None, ge=0)
    other_costs: float | None = Field(None, ge=0)
    is_active: bool | None = None


class MemberSummaryResponse(BaseModel):
    member: FamilyMemberResponse
    age: int | None = None
    estimated_year_level: str | None = None
    total_school_fees_year: float = 0.0
    unpaid_fees_count: int = 0
    active_activities_count: int = 0
    total_activities_cost_year: float = 0.0


class ChildFeesOverview(BaseModel):
    family_member: FamilyMemberResponse
    school_fees: float = 0.0
    paid_fees: float = 0.0
    activities_cost: float = 0.0


class FeesOverviewResponse(BaseModel):
    year: int
    total_school_fees: float = 0.0
    total_paid: float = 0.0
    total_remaining: float = 0.0
    total_activities_cost: float = 0.0
    by_child: list[ChildFeesOverview] = Field(default_factory=list)
