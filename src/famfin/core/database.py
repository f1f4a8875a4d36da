"""Database operations using SQLAlchemy."""

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker

from .config import AppConfig

Base = declarative_base()


DEFAULT_CATEGORIES = [
    ("Groceries", "expense"),
    ("Dining Out", "expense"),
    ("Transport", "expense"),
    ("Utilities", "expense"),
    ("Entertainment", "expense"),
    ("Shopping", "expense"),
    ("Health", "expense"),
    ("Insurance", "expense"),
    ("Education", "expense"),
    ("Subscriptions", "expense"),
    ("Home", "expense"),
    ("Personal Care", "expense"),
    ("Gifts", "expense"),
    ("Fees & Charges", "expense"),
    ("Other Expense", "expense"),
    ("Salary", "income"),
    ("Dividends", "income"),
    ("Interest", "income"),
    ("Trust Distribution", "income"),
    ("Rental Income", "income"),
    ("Other Income", "income"),
    ("Transfer", "transfer"),
]

# name, per_year_multiplier (None = charged per session), sort order
DEFAULT_FREQUENCIES = [
    ("Once Off", 1.0, 1),
    ("Per Session", None, 2),
    ("Weekly", 52.0, 3),
    ("Fortnightly", 26.0, 4),
    ("Monthly", 12.0, 5),
    ("Per Term", 4.0, 6),
    ("Per Semester", 2.0, 7),
    ("Annual", 1.0, 8),
    ("Per Quarter", 4.0, 9),
]

# name, sort order
DEFAULT_FEE_TYPES = [
    ("Tuition", 1),
    ("Building Levy", 2),
    ("Technology Levy", 3),
    ("Excursion", 4),
    ("Camp", 5),
    ("Uniform", 6),
    ("Books & Stationery", 7),
    ("Sport", 8),
    ("Music", 9),
    ("Before School Care", 10),
    ("After School Care", 11),
    ("Vacation Care", 12),
    ("Swimming", 13),
    ("Library", 14),
    ("Other", 99),
]

# name, icon, sort order
DEFAULT_ACTIVITY_TYPES = [
    ("Sport", "trophy", 1),
    ("Music", "music", 2),
    ("Dance", "sparkles", 3),
    ("Art", "palette", 4),
    ("Drama", "theater", 5),
    ("Swimming", "waves", 6),
    ("Martial Arts", "shield", 7),
    ("Tutoring", "book-open", 8),
    ("Language", "globe", 9),
    ("Coding", "code", 10),
    ("Scouts/Guides", "compass", 11),
    ("Religious", "heart", 12),
    ("Gymnastics", "dumbbell", 13),
    ("Horse Riding", "horse", 14),
    ("Other", "circle", 99),
]

SCHOOL_TYPES = ("primary", "secondary", "combined", "preschool", "tertiary", "other")
SCHOOL_SECTORS = ("public", "private", "catholic", "independent", "other")
TERM_TYPES = ("term", "semester", "trimester", "quarter")


class AccountORM(Base):
    """Bank or card account table."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    account_type = Column(String(20), nullable=False, default="transaction")
    institution = Column(String(100))
    current_balance = Column(Float, nullable=False, default=0.0)
    currency = Column(String(3), default="AUD")
    is_active = Column(Boolean, default=True)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(
            "account_type IN ('transaction', 'savings', 'credit_card', 'loan', 'investment', 'other')",
            name="check_account_type",
        ),
    )

    transactions = relationship("TransactionORM", back_populates="account")


class CategoryORM(Base):
    """Category table. Parent/child is encoded in the name as ``Parent:Child``."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    category_type = Column(String(20), nullable=False)
    is_system = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("category_type IN ('income', 'expense', 'transfer')", name="check_category_type"),
    )

    transactions = relationship("TransactionORM", back_populates="category")
    rules = relationship("CategorisationRuleORM", back_populates="category", cascade="all, delete-orphan")


class TransactionORM(Base):
    """Transaction table. ``amount`` is always a non-negative magnitude."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"))
    date = Column(Date, nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Float, nullable=False)
    transaction_type = Column(String(10), nullable=False)
    payee = Column(Text)
    reference = Column(Text)
    notes = Column(Text)
    import_id = Column(String(64))
    import_hash = Column(String(16))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("amount >= 0", name="check_amount_magnitude"),
        CheckConstraint("transaction_type IN ('income', 'expense', 'transfer')", name="check_transaction_type"),
        Index("idx_transactions_date", "date"),
        Index("idx_transactions_account", "account_id"),
        Index("idx_transactions_category", "category_id"),
        Index("idx_transactions_type_date", "transaction_type", "date"),
        Index("idx_transactions_import_hash", "import_hash"),
    )

    account = relationship("AccountORM", back_populates="transactions")
    category = relationship("CategoryORM", back_populates="transactions")


class CategorisationRuleORM(Base):
    """User-defined pattern that assigns a category to matching transactions."""

    __tablename__ = "categorisation_rules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    match_field = Column(String(20), nullable=False)
    match_type = Column(String(20), nullable=False)
    match_value = Column(Text, nullable=False)
    is_active = Column(Boolean, default=True)
    priority = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("match_field IN ('description', 'payee', 'reference')", name="check_rule_match_field"),
        CheckConstraint(
            "match_type IN ('contains', 'starts_with', 'ends_with', 'exact')", name="check_rule_match_type"
        ),
        Index("idx_rules_priority", "priority"),
    )

    category = relationship("CategoryORM", back_populates="rules")


class BudgetORM(Base):
    """Budget table. Rows are deactivated, never deleted."""

    __tablename__ = "budgets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"))
    category_name = Column(String(100))
    amount = Column(Float, nullable=False)
    period = Column(String(20), nullable=False, default="monthly")
    alert_threshold = Column(Float, default=80.0)
    alert_enabled = Column(Boolean, default=True)
    notes = Column(Text)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("amount >= 0", name="check_budget_positive"),
        CheckConstraint(
            "period IN ('weekly', 'fortnightly', 'monthly', 'quarterly', 'yearly')", name="check_budget_period"
        ),
        Index("idx_budgets_active", "is_active"),
    )

    category = relationship("CategoryORM")


class NotificationORM(Base):
    """In-app notifications."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    notification_type = Column(String(30), nullable=False, default="general")
    priority = Column(String(10), nullable=False, default="medium")
    is_read = Column(Boolean, default=False)
    is_dismissed = Column(Boolean, default=False)
    link_url = Column(String(200))
    related_entity_type = Column(String(30))
    related_entity_id = Column(Integer)
    meta = Column("metadata", JSON, default=dict)
    dedupe_key = Column(String(100), unique=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("priority IN ('low', 'medium', 'high', 'urgent')", name="check_notification_priority"),
        Index("idx_notifications_unread", "is_read", "is_dismissed"),
        Index("idx_notifications_created", "created_at"),
    )


def _one_of(column: str, values: tuple[str, ...]) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


class FamilyMemberORM(Base):
    """Household member table."""

    __tablename__ = "family_members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    member_type = Column(String(10), nullable=False, default="child")
    relationship_to_primary = Column("relationship", String(30))
    date_of_birth = Column(Date)
    is_primary = Column(Boolean, default=False)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (CheckConstraint("member_type IN ('adult', 'child')", name="check_member_type"),)

    enrolments = relationship("SchoolEnrolmentORM", back_populates="family_member", cascade="all, delete-orphan")
    activities = relationship("ExtracurricularORM", back_populates="family_member", cascade="all, delete-orphan")


class FrequencyORM(Base):
    """Payment frequency lookup table."""

    __tablename__ = "frequencies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True)
    description = Column(Text)
    per_year_multiplier = Column(Float)
    is_system = Column(Boolean, default=False)
    sort_order = Column(Integer, default=0)


class FeeTypeORM(Base):
    """School fee type lookup table."""

    __tablename__ = "fee_types"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True)
    description = Column(Text)
    is_system = Column(Boolean, default=False)
    sort_order = Column(Integer, default=0)


class ActivityTypeORM(Base):
    """Extracurricular activity type lookup table."""

    __tablename__ = "activity_types"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True)
    icon = Column(String(30))
    description = Column(Text)
    is_system = Column(Boolean, default=False)
    sort_order = Column(Integer, default=0)


class SchoolORM(Base):
    """School attended by a family member."""

    __tablename__ = "schools"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), nullable=False)
    school_type = Column(String(20), nullable=False, default="primary")
    sector = Column(String(20))
    address = Column(Text)
    suburb = Column(String(100))
    state = Column(String(10), default="QLD")
    postcode = Column(String(10))
    phone = Column(String(30))
    email = Column(String(100))
    website = Column(String(200))
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(_one_of("school_type", SCHOOL_TYPES), name="check_school_type"),
        CheckConstraint(f"sector IS NULL OR {_one_of('sector', SCHOOL_SECTORS)}", name="check_school_sector"),
    )

    years = relationship("SchoolYearORM", back_populates="school", cascade="all, delete-orphan")
    enrolments = relationship("SchoolEnrolmentORM", back_populates="school", cascade="all, delete-orphan")


class SchoolYearORM(Base):
    """Academic year of a school."""

    __tablename__ = "school_years"

    id = Column(Integer, primary_key=True, autoincrement=True)
    school_id = Column(Integer, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False)
    year = Column(Integer, nullable=False)
    year_start = Column(Date)
    year_end = Column(Date)
    notes = Column(Text)

    __table_args__ = (UniqueConstraint("school_id", "year", name="uq_school_year"),)

    school = relationship("SchoolORM", back_populates="years")
    terms = relationship(
        "SchoolTermORM",
        back_populates="school_year",
        cascade="all, delete-orphan",
        order_by="SchoolTermORM.term_number",
    )


class SchoolTermORM(Base):
    """Term, semester, trimester or quarter within a school year."""

    __tablename__ = "school_terms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    school_year_id = Column(Integer, ForeignKey("school_years.id", ondelete="CASCADE"), nullable=False)
    term_type = Column(String(20), nullable=False, default="term")
    term_number = Column(Integer, nullable=False)
    name = Column(String(50))
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    fees_due_date = Column(Date)
    notes = Column(Text)

    __table_args__ = (
        UniqueConstraint("school_year_id", "term_number", name="uq_school_term_number"),
        CheckConstraint(_one_of("term_type", TERM_TYPES), name="check_term_type"),
        CheckConstraint("end_date >= start_date", name="check_term_dates"),
    )

    school_year = relationship("SchoolYearORM", back_populates="terms")
    fees = relationship("SchoolFeeORM", back_populates="school_term")


class SchoolEnrolmentORM(Base):
    """A family member's enrolment at a school."""

    __tablename__ = "school_enrolments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    family_member_id = Column(Integer, ForeignKey("family_members.id", ondelete="CASCADE"), nullable=False)
    school_id = Column(Integer, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False)
    year_level = Column(String(20))
    enrolment_date = Column(Date)
    expected_graduation = Column(Date)
    student_id = Column(String(50))
    house = Column(String(50))
    is_current = Column(Boolean, default=True)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("family_member_id", "school_id", name="uq_member_school"),
        Index("idx_enrolments_member", "family_member_id"),
        Index("idx_enrolments_school", "school_id"),
    )

    family_member = relationship("FamilyMemberORM", back_populates="enrolments")
    school = relationship("SchoolORM", back_populates="enrolments")
    fees = relationship("SchoolFeeORM", back_populates="enrolment", cascade="all, delete-orphan")


class SchoolFeeORM(Base):
    """School fee with due date and payment status."""

    __tablename__ = "school_fees"

    id = Column(Integer, primary_key=True, autoincrement=True)
    enrolment_id = Column(Integer, ForeignKey("school_enrolments.id", ondelete="CASCADE"), nullable=False)
    fee_type_id = Column(Integer, ForeignKey("fee_types.id"), nullable=False)
    frequency_id = Column(Integer, ForeignKey("frequencies.id"))
    school_term_id = Column(Integer, ForeignKey("school_terms.id", ondelete="SET NULL"))
    description = Column(Text, nullable=False)
    amount = Column(Float, nullable=False)
    due_date = Column(Date)
    year = Column(Integer, nullable=False)
    is_paid = Column(Boolean, default=False)
    paid_date = Column(Date)
    paid_amount = Column(Float)
    payment_method = Column(String(50))
    invoice_number = Column(String(50))
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_school_fees_enrolment", "enrolment_id"),
        Index("idx_school_fees_due_date", "due_date"),
        Index("idx_school_fees_year", "year"),
    )

    enrolment = relationship("SchoolEnrolmentORM", back_populates="fees")
    fee_type = relationship("FeeTypeORM")
    frequency = relationship("FrequencyORM")
    school_term = relationship("SchoolTermORM", back_populates="fees")


class ExtracurricularORM(Base):
    """Extracurricular activity with recurring and one-off costs."""

    __tablename__ = "extracurriculars"

    id = Column(Integer, primary_key=True, autoincrement=True)
    family_member_id = Column(Integer, ForeignKey("family_members.id"), nullable=False)
    activity_type_id = Column(Integer, ForeignKey("activity_types.id"), nullable=False)
    name = Column(String(100), nullable=False)
    provider = Column(String(100))
    days_of_week = Column(JSON, default=list)
    cost_amount = Column(Float)
    cost_frequency_id = Column(Integer, ForeignKey("frequencies.id"))
    registration_fee = Column(Float)
    equipment_cost = Column(Float)
    uniform_cost = Column(Float)
    other_costs = Column(Float)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (Index("idx_extracurriculars_member", "family_member_id"),)

    family_member = relationship("FamilyMemberORM", back_populates="activities")
    activity_type = relationship("ActivityTypeORM")
    cost_frequency = relationship("FrequencyORM")


class DatabaseManager:
    """Database connection and session management."""

    def __init__(self, config: AppConfig):
        self.config = config

        connect_args = {}
        if config.database.url.startswith("sqlite"):
            connect_args = {"check_same_thread": False}

        self.engine = create_engine(config.database.url, echo=config.database.echo, connect_args=connect_args)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_tables(self) -> None:
        """Create all database tables."""
        Base.metadata.create_all(bind=self.engine)

    def get_session(self) -> Session:
        """Get database session."""
        return self.SessionLocal()

    def init_default_categories(self) -> int:
        """Seed the system categories when the table is empty.

        Returns:
            Number of categories created
        """
        with self.get_session() as session:
            if session.query(CategoryORM).count() > 0:
                return 0
            for name, category_type in DEFAULT_CATEGORIES:
                session.add(CategoryORM(name=name, category_type=category_type, is_system=True))
            session.commit()
        return len(DEFAULT_CATEGORIES)

    def init_default_frequencies(self) -> int:
        """Seed payment frequencies when the table is empty."""
        with self.get_session() as session:
            if session.query(FrequencyORM).count() > 0:
                return 0
            for name, multiplier, sort_order in DEFAULT_FREQUENCIES:
                session.add(
                    FrequencyORM(name=name, per_year_multiplier=multiplier, sort_order=sort_order, is_system=True)
                )
            session.commit()
        return len(DEFAULT_FREQUENCIES)

    def init_default_fee_types(self) -> int:
        """Seed school fee types when the table is empty."""
        with self.get_session() as session:
            if session.query(FeeTypeORM).count() > 0:
                return 0
            for name, sort_order in DEFAULT_FEE_TYPES:
                session.add(FeeTypeORM(name=name, sort_order=sort_order, is_system=True))
            session.commit()
        return len(DEFAULT_FEE_TYPES)

    def init_default_activity_types(self) -> int:
        """Seed activity types when the table is empty."""
        with self.get_session() as session:
            if session.query(ActivityTypeORM).count() > 0:
                return 0
            for name, icon, sort_order in DEFAULT_ACTIVITY_TYPES:
                session.add(ActivityTypeORM(name=name, icon=icon, sort_order=sort_order, is_system=True))
            session.commit()
        return len(DEFAULT_ACTIVITY_TYPES)


def get_categories(session: Session, category_type: str | None = None) -> list[CategoryORM]:
    """Get categories ordered by name."""
    query = session.query(CategoryORM)
    if category_type:
        query = query.filter(CategoryORM.category_type == category_type)
    return query.order_by(CategoryORM.name).all()


def get_active_rules(session: Session) -> list[CategorisationRuleORM]:
    """Get active categorisation rules."""
    return session.query(CategorisationRuleORM).filter(CategorisationRuleORM.is_active).all()


def get_active_budgets(session: Session) -> list[BudgetORM]:
    """Get active budgets ordered by name."""
    return session.query(BudgetORM).filter(BudgetORM.is_active).order_by(BudgetORM.name).all()
