from datetime import datetime, timezone
from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import relationship as orm_relationship

from ..config import Base
from ..constants import DEFAULT_EXECUTION_ORDER


def utcnow():
    return datetime.now(timezone.utc)


role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("permission_id", Integer, ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
)


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)
    description = Column(String, nullable=True)

    users = orm_relationship("User", back_populates="role")
    permissions = orm_relationship("Permission", secondary=role_permissions, back_populates="roles")


class Permission(Base):
    __tablename__ = "permissions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)

    roles = orm_relationship("Role", secondary=role_permissions, back_populates="permissions")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=False)
    hashed_password = Column(String, nullable=False)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    role = orm_relationship("Role", back_populates="users")
    audit_logs = orm_relationship("AuditLog", back_populates="actor")

    @property
    def role_name(self) -> str | None:
        return self.role.name if self.role else None

    @property
    def permission_names(self) -> set[str]:
        if not self.role:
            return set()
        return {permission.name for permission in self.role.permissions}

    def has_role(self, role_name: str) -> bool:
        return self.role_name == role_name

    def has_any_role(self, *role_names: str) -> bool:
        return self.role_name in set(role_names)

    def has_permission(self, permission: str) -> bool:
        return permission in self.permission_names


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    timestamp = Column(DateTime, default=utcnow, index=True, nullable=False)
    actor_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    actor_name = Column(String, nullable=True)
    action = Column(String, nullable=False)
    entity = Column(String, nullable=True)
    entity_id = Column(String, nullable=True)
    details = Column(Text, nullable=True)
    before = Column(Text, nullable=True)
    after = Column(Text, nullable=True)

    actor = orm_relationship("User", back_populates="audit_logs")


class Member(Base):
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    family_members = Column(Integer, nullable=False, default=1)
    occupation = Column(String, nullable=True)
    photo_url = Column(String, nullable=True)
    category = Column(String, nullable=False, default="INDIVIDUAL", index=True)
    status = Column(String, nullable=False, default="ACTIVE", index=True)
    monthly_fee = Column(Numeric(10, 2), nullable=False, default=0)
    # Kept as entered (YYYY-MM-DD); unparseable values exclude the member from aging.
    join_date = Column(String, nullable=False)
    parent_member_id = Column(Integer, ForeignKey("members.id", ondelete="SET NULL"), nullable=True)
    last_payment_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    parent = orm_relationship("Member", remote_side=[id], back_populates="dependents")
    dependents = orm_relationship("Member", back_populates="parent")


class BankAccount(Base):
    __tablename__ = "bank_accounts"

    id = Column(Integer, primary_key=True, index=True)
    bank_name = Column(String, nullable=False)
    account_number = Column(String, nullable=False)
    type = Column(String, nullable=False, default="CHECKING")
    currency = Column(String, nullable=False, default="USD")
    opening_balance = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    description = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    type = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False, index=True)
    related_member_id = Column(Integer, ForeignKey("members.id", ondelete="SET NULL"), nullable=True, index=True)
    related_bank_account_id = Column(Integer, ForeignKey("bank_accounts.id"), nullable=True)
    transfer_to_account_id = Column(Integer, ForeignKey("bank_accounts.id"), nullable=True)
    related_project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True)
    related_supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True)
    related_supplier = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    member = orm_relationship("Member")
    bank_account = orm_relationship("BankAccount", foreign_keys=[related_bank_account_id])
    transfer_to_account = orm_relationship("BankAccount", foreign_keys=[transfer_to_account_id])
    project = orm_relationship("Project")


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    unit = Column(String, nullable=False, default="lb")
    quantity = Column(Numeric(12, 2), nullable=False, default=0)
    unit_cost = Column(Numeric(10, 2), nullable=False, default=0)
    min_threshold = Column(Numeric(12, 2), nullable=False, default=5)
    last_restock_date = Column(Date, nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class MaintenanceLog(Base):
    __tablename__ = "maintenance_logs"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False)
    performed_by = Column(String, nullable=False)
    description = Column(String, nullable=False)
    items_used = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    ph_reading = Column(Float, nullable=True)
    chlorine_reading = Column(Float, nullable=True)
    alkalinity_reading = Column(Float, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    budget = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(String, nullable=False, default="PLANNED")
    priority = Column(String, nullable=False, default="MEDIUM")
    execution_order = Column(Integer, nullable=True, default=DEFAULT_EXECUTION_ORDER)
    progress = Column(Integer, nullable=False, default=0)
    before_photos = Column(JSON, nullable=False, default=list)
    after_photos = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    tasks = orm_relationship(
        "ProjectTask",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="ProjectTask.id",
    )


class ProjectTask(Base):
    __tablename__ = "project_tasks"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    assigned_to = Column(String, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    estimated_cost = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(String, nullable=False, default="PENDING")

    project = orm_relationship("Project", back_populates="tasks")


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, index=True)
    business_name = Column(String, nullable=False)
    tax_id = Column(String, nullable=True)
    address = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    contact_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class ServiceOrder(Base):
    __tablename__ = "service_orders"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    service_type = Column(String, nullable=True)
    responsible = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    deadline = Column(Date, nullable=True)
    status = Column(String, nullable=False, default="PENDING")
    estimated_cost = Column(Numeric(12, 2), nullable=False, default=0)
    actual_cost = Column(Numeric(12, 2), nullable=True)
    materials = Column(JSON, nullable=False, default=list)
    payment_status = Column(String, nullable=False, default="PENDING")
    related_transaction_id = Column(Integer, ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class PurchaseOrder(Base):
    __tablename__ = "purchase_orders"

    id = Column(Integer, primary_key=True, index=True)
    supplier = Column(String, nullable=False)
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True)
    date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default="DRAFT")
    items = Column(JSON, nullable=False, default=list)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    payment_status = Column(String, nullable=False, default="PENDING")
    related_transaction_id = Column(Integer, ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class BoardMember(Base):
    __tablename__ = "board_members"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    role = Column(String, nullable=False)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    status = Column(String, nullable=False, default="ACTIVE")


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    national_id = Column(String, nullable=False)
    position = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    base_salary = Column(Numeric(10, 2), nullable=False, default=0)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    status = Column(String, nullable=False, default="ACTIVE")
    payment_method = Column(String, nullable=False, default="ACH")
    bank = Column(String, nullable=True)
    account_number = Column(String, nullable=True)
