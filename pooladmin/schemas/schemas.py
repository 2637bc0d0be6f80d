import datetime as dt
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

MemberCategory = Literal["INDIVIDUAL", "PRINCIPAL", "DEPENDENT"]
MemberStatus = Literal["ACTIVE", "INACTIVE", "PENDING"]
TransactionType = Literal["INCOME", "EXPENSE", "TRANSFER"]
TransactionCategory = Literal[
    "CONTRIBUTION",
    "DONATION",
    "MAINTENANCE",
    "CHEMICALS",
    "UTILITIES",
    "SALARY",
    "OTHER",
    "PROJECT",
    "INTERNAL",
]
BankAccountType = Literal["CHECKING", "SAVINGS", "CASH"]
ProjectStatus = Literal["PLANNED", "IN_PROGRESS", "COMPLETED", "PAUSED"]
ProjectPriority = Literal["CRITICAL", "HIGH", "MEDIUM", "LOW"]
TaskStatus = Literal["PENDING", "IN_PROGRESS", "COMPLETED"]
ServiceStatus = Literal["PENDING", "IN_PROGRESS", "COMPLETED", "CANCELLED"]
PurchaseStatus = Literal["DRAFT", "ORDERED", "RECEIVED", "PAID", "CANCELLED"]
PaymentStatus = Literal["PENDING", "PAID"]
BoardRole = Literal["PRESIDENT", "VICE_PRESIDENT", "SECRETARY", "TREASURER", "VOCAL", "FISCAL"]
EmployeeStatus = Literal["ACTIVE", "INACTIVE", "VACATION"]
PaymentMethod = Literal["ACH", "CHECK"]
RoleName = Literal["ADMIN", "EDITOR", "VIEWER"]


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# --- Auth / users ---


class PermissionRead(ORMModel):
    id: int
    name: str


class RoleRead(ORMModel):
    id: int
    name: str
    description: Optional[str] = None
    permissions: List[PermissionRead] = []


class UserCreate(BaseModel):
    username: str = Field(min_length=3, max_length=64)
    full_name: str = Field(min_length=1)
    password: str = Field(min_length=6)
    role: RoleName = "VIEWER"


class UserUpdate(BaseModel):
    full_name: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=6)
    role: Optional[RoleName] = None


class UserRead(ORMModel):
    id: int
    username: str
    full_name: str
    role: Optional[RoleRead] = None
    last_login: Optional[datetime] = None
    created_at: datetime


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    role: Optional[str] = None
    permissions: List[str] = []
    expires_in: int
    refresh_expires_in: int


class TokenRefreshRequest(BaseModel):
    refresh_token: str


# --- Members ---


class MemberBase(BaseModel):
    full_name: str = Field(min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    family_members: int = Field(default=1, ge=0)
    occupation: Optional[str] = None
    photo_url: Optional[str] = None
    category: MemberCategory = "INDIVIDUAL"
    status: MemberStatus = "ACTIVE"
    monthly_fee: Decimal = Field(default=Decimal("0"), ge=0)
    join_date: str
    parent_member_id: Optional[int] = None
    last_payment_date: Optional[date] = None


class MemberCreate(MemberBase):
    @model_validator(mode="after")
    def _check_parent(self) -> "MemberCreate":
        if self.category == "DEPENDENT" and self.parent_member_id is None:
            raise ValueError("Dependents must reference a principal member")
        if self.category != "DEPENDENT":
            self.parent_member_id = None
        return self


class MemberUpdate(BaseModel):
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    family_members: Optional[int] = Field(default=None, ge=0)
    occupation: Optional[str] = None
    photo_url: Optional[str] = None
    category: Optional[MemberCategory] = None
    status: Optional[MemberStatus] = None
    monthly_fee: Optional[Decimal] = Field(default=None, ge=0)
    join_date: Optional[str] = None
    parent_member_id: Optional[int] = None
    last_payment_date: Optional[date] = None


class MemberRead(MemberBase, ORMModel):
    id: int
    email: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# --- Bank accounts / transactions ---


class BankAccountCreate(BaseModel):
    bank_name: str = Field(min_length=1)
    account_number: str = Field(min_length=1)
    type: BankAccountType = "CHECKING"
    currency: str = "USD"
    opening_balance: Decimal = Decimal("0")


class BankAccountUpdate(BaseModel):
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    type: Optional[BankAccountType] = None
    currency: Optional[str] = None
    opening_balance: Optional[Decimal] = None


class BankAccountRead(ORMModel):
    id: int
    bank_name: str
    account_number: str
    type: str
    currency: str
    opening_balance: Decimal
    balance: Decimal = Decimal("0")


class TransactionBase(BaseModel):
    date: Optional[dt.date] = None
    description: str = Field(min_length=1)
    amount: Decimal = Field(gt=0)
    type: TransactionType
    category: Optional[TransactionCategory] = None
    related_member_id: Optional[int] = None
    related_bank_account_id: Optional[int] = None
    transfer_to_account_id: Optional[int] = None
    related_project_id: Optional[int] = None
    related_supplier_id: Optional[int] = None
    related_supplier: Optional[str] = None


class TransactionCreate(TransactionBase):
    pass


class TransactionUpdate(BaseModel):
    date: Optional[dt.date] = None
    description: Optional[str] = None
    amount: Optional[Decimal] = Field(default=None, gt=0)
    type: Optional[TransactionType] = None
    category: Optional[TransactionCategory] = None
    related_member_id: Optional[int] = None
    related_bank_account_id: Optional[int] = None
    transfer_to_account_id: Optional[int] = None
    related_project_id: Optional[int] = None
    related_supplier_id: Optional[int] = None
    related_supplier: Optional[str] = None


class TransactionRead(TransactionBase, ORMModel):
    id: int
    date: date
    category: str
    created_at: datetime


# --- Commands ---


class CommandStepRead(ORMModel):
    key: str
    label: str
    status: str
    error: Optional[str] = None


class CommandResultRead(ORMModel):
    name: str
    ok: bool
    steps: List[CommandStepRead]
    failed_step: Optional[str] = None
    error: Optional[str] = None


# --- Receivables / payables ---


class DebtorRead(BaseModel):
    member_id: int
    full_name: str
    category: str
    effective_fee: Decimal
    billable_cycles: int
    expected_total: Decimal
    paid_total: Decimal
    amount_owed: Decimal
    months_owed: Decimal
    last_payment: Optional[str] = None


class ReceivablesRead(BaseModel):
    evaluated_on: date
    total_receivable: Decimal
    debtors: List[DebtorRead]


class SettleDebtRequest(BaseModel):
    member_id: int
    bank_account_id: int
    settlement_date: Optional[date] = None


class SettleDebtResponse(BaseModel):
    command: CommandResultRead
    transaction: TransactionRead
    bank_balance: Decimal


class PayableRead(ORMModel):
    kind: str
    order_id: int
    reference: str
    beneficiary: str
    date: date
    amount: Decimal
    supplier_id: Optional[int] = None


class PayablesRead(ORMModel):
    total_payable: Decimal
    items: List[PayableRead]


class PayPayableRequest(BaseModel):
    kind: Literal["SERVICE", "PURCHASE"]
    order_id: int
    bank_account_id: int
    payment_date: Optional[date] = None
    category: TransactionCategory = "MAINTENANCE"


class PayPayableResponse(BaseModel):
    command: CommandResultRead
    transaction: TransactionRead
    bank_balance: Decimal


# --- Inventory / dosing ---


class InventoryItemCreate(BaseModel):
    name: str = Field(min_length=1)
    unit: str = "lb"
    quantity: Decimal = Field(default=Decimal("0"), ge=0)
    unit_cost: Decimal = Field(default=Decimal("0"), ge=0)
    min_threshold: Decimal = Field(default=Decimal("5"), ge=0)
    last_restock_date: Optional[date] = None


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = None
    unit: Optional[str] = None
    quantity: Optional[Decimal] = Field(default=None, ge=0)
    unit_cost: Optional[Decimal] = Field(default=None, ge=0)
    min_threshold: Optional[Decimal] = Field(default=None, ge=0)
    last_restock_date: Optional[date] = None


class InventoryItemRead(InventoryItemCreate, ORMModel):
    id: int
    updated_at: datetime


class PoolReadingsIn(BaseModel):
    ph: Decimal = Decimal("7.8")
    chlorine: Decimal = Decimal("1.0")
    alkalinity: Decimal = Decimal("80")
    target_ph: Decimal = Decimal("7.4")
    target_chlorine: Decimal = Decimal("3.0")
    target_alkalinity: Decimal = Decimal("100")


class ReagentPurityIn(BaseModel):
    chlorine: Decimal = Decimal("65")
    ph_down: Decimal = Decimal("93")
    alkalinity: Decimal = Decimal("100")


class DosingRequest(BaseModel):
    readings: PoolReadingsIn = PoolReadingsIn()
    purity: ReagentPurityIn = ReagentPurityIn()


class DosingApplyRequest(DosingRequest):
    item_ids: Dict[Literal["chlorine", "ph_down", "alkalinity"], Optional[int]] = {}


class DosingResultRead(ORMModel):
    chlorine_lb: Decimal
    ph_down_lb: Decimal
    alkalinity_lb: Decimal
    chlorine_delta_ppm: Decimal
    ph_delta: Decimal
    alkalinity_delta_ppm: Decimal
    suggested_items: Dict[str, Optional[int]] = {}


class ManualUsageLine(BaseModel):
    item_id: int
    amount: Decimal


class ManualUsageRequest(BaseModel):
    items: List[ManualUsageLine]
    notes: Optional[str] = None


class MaintenanceLogRead(ORMModel):
    id: int
    date: date
    performed_by: str
    description: str
    items_used: List[Dict[str, Any]] = []
    notes: Optional[str] = None
    ph_reading: Optional[float] = None
    chlorine_reading: Optional[float] = None
    alkalinity_reading: Optional[float] = None


class InventoryCommandResponse(BaseModel):
    command: CommandResultRead
    log: Optional[MaintenanceLogRead] = None


class PurchaseOrderLine(BaseModel):
    inventory_item_id: Optional[int] = None
    item_name: str = Field(min_length=1)
    quantity: Decimal = Field(gt=0)
    unit_price: Decimal = Field(ge=0)


class PurchaseOrderCreate(BaseModel):
    supplier: Optional[str] = None
    supplier_id: Optional[int] = None
    date: Optional[dt.date] = None
    status: PurchaseStatus = "DRAFT"
    items: List[PurchaseOrderLine] = Field(min_length=1)

    @model_validator(mode="after")
    def _check_supplier(self) -> "PurchaseOrderCreate":
        if not self.supplier and self.supplier_id is None:
            raise ValueError("A supplier name or supplier_id is required")
        return self


class PurchaseOrderUpdate(BaseModel):
    status: Optional[PurchaseStatus] = None


class PurchaseOrderRead(ORMModel):
    id: int
    supplier: str
    supplier_id: Optional[int] = None
    date: date
    status: str
    items: List[Dict[str, Any]]
    total_amount: Decimal
    payment_status: str
    related_transaction_id: Optional[int] = None


class ReceivePurchaseOrderRequest(BaseModel):
    reception_date: Optional[date] = None


class ServiceMaterial(BaseModel):
    inventory_item_id: Optional[int] = None
    item_name: str
    quantity: Decimal = Field(gt=0)


class ServiceOrderCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    service_type: Optional[str] = None
    responsible: str = Field(min_length=1)
    start_date: date
    deadline: Optional[date] = None
    status: ServiceStatus = "PENDING"
    estimated_cost: Decimal = Field(default=Decimal("0"), ge=0)
    actual_cost: Optional[Decimal] = Field(default=None, ge=0)
    materials: List[ServiceMaterial] = []


class ServiceOrderUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    service_type: Optional[str] = None
    responsible: Optional[str] = None
    start_date: Optional[date] = None
    deadline: Optional[date] = None
    status: Optional[ServiceStatus] = None
    estimated_cost: Optional[Decimal] = Field(default=None, ge=0)
    actual_cost: Optional[Decimal] = Field(default=None, ge=0)
    materials: Optional[List[ServiceMaterial]] = None


class ServiceOrderRead(ORMModel):
    id: int
    title: str
    description: Optional[str] = None
    service_type: Optional[str] = None
    responsible: str
    start_date: date
    deadline: Optional[date] = None
    status: str
    estimated_cost: Decimal
    actual_cost: Optional[Decimal] = None
    materials: List[Dict[str, Any]] = []
    payment_status: str
    related_transaction_id: Optional[int] = None


# --- Projects ---


class ProjectTaskCreate(BaseModel):
    name: str = Field(min_length=1)
    assigned_to: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    estimated_cost: Decimal = Field(default=Decimal("0"), ge=0)
    status: TaskStatus = "PENDING"


class ProjectTaskUpdate(BaseModel):
    name: Optional[str] = None
    assigned_to: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    estimated_cost: Optional[Decimal] = Field(default=None, ge=0)
    status: Optional[TaskStatus] = None


class ProjectTaskRead(ProjectTaskCreate, ORMModel):
    id: int
    project_id: int


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    budget: Decimal = Field(default=Decimal("0"), ge=0)
    status: ProjectStatus = "PLANNED"
    priority: ProjectPriority = "MEDIUM"
    execution_order: Optional[int] = None
    progress: int = Field(default=0, ge=0, le=100)
    before_photos: List[str] = []
    after_photos: List[str] = []


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[Decimal] = Field(default=None, ge=0)
    status: Optional[ProjectStatus] = None
    priority: Optional[ProjectPriority] = None
    execution_order: Optional[int] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    before_photos: Optional[List[str]] = None
    after_photos: Optional[List[str]] = None


class BudgetUsageRead(ORMModel):
    budget: Decimal
    allocated: Decimal
    remaining: Decimal
    usage_percent: Decimal
    over_budget: bool


class ProjectRead(ProjectCreate, ORMModel):
    id: int
    tasks: List[ProjectTaskRead] = []
    budget_usage: Optional[BudgetUsageRead] = None


# --- Directory: suppliers, board, employees ---


class SupplierCreate(BaseModel):
    business_name: str = Field(min_length=1)
    tax_id: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    contact_name: Optional[str] = None


class SupplierUpdate(BaseModel):
    business_name: Optional[str] = None
    tax_id: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    contact_name: Optional[str] = None


class SupplierRead(SupplierCreate, ORMModel):
    id: int
    email: Optional[str] = None


class BoardMemberCreate(BaseModel):
    full_name: str = Field(min_length=1)
    role: BoardRole
    period_start: date
    period_end: date
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    status: Literal["ACTIVE", "INACTIVE"] = "ACTIVE"

    @model_validator(mode="after")
    def _check_period(self) -> "BoardMemberCreate":
        if self.period_end < self.period_start:
            raise ValueError("period_end must be on or after period_start")
        return self


class BoardMemberUpdate(BaseModel):
    full_name: Optional[str] = None
    role: Optional[BoardRole] = None
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    status: Optional[Literal["ACTIVE", "INACTIVE"]] = None


class BoardMemberRead(ORMModel):
    id: int
    full_name: str
    role: str
    period_start: date
    period_end: date
    email: Optional[str] = None
    phone: Optional[str] = None
    status: str


class EmployeeCreate(BaseModel):
    full_name: str = Field(min_length=1)
    national_id: str = Field(min_length=1)
    position: str = Field(min_length=1)
    start_date: date
    base_salary: Decimal = Field(default=Decimal("0"), ge=0)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    status: EmployeeStatus = "ACTIVE"
    payment_method: PaymentMethod = "ACH"
    bank: Optional[str] = None
    account_number: Optional[str] = None


class EmployeeUpdate(BaseModel):
    full_name: Optional[str] = None
    national_id: Optional[str] = None
    position: Optional[str] = None
    start_date: Optional[date] = None
    base_salary: Optional[Decimal] = Field(default=None, ge=0)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    status: Optional[EmployeeStatus] = None
    payment_method: Optional[PaymentMethod] = None
    bank: Optional[str] = None
    account_number: Optional[str] = None


class EmployeeRead(EmployeeCreate, ORMModel):
    id: int
    email: Optional[str] = None


class PayrollEstimateRequest(BaseModel):
    base_salary: Optional[Decimal] = Field(default=None, ge=0)
    employee_id: Optional[int] = None
    professional_risk_rate: Decimal = Field(default=Decimal("2.10"), ge=0)

    @model_validator(mode="after")
    def _check_source(self) -> "PayrollEstimateRequest":
        if self.base_salary is None and self.employee_id is None:
            raise ValueError("Provide base_salary or employee_id")
        return self


class PayrollEstimateRead(ORMModel):
    base_salary: Decimal
    professional_risk_rate: Decimal
    employee_social_security: Decimal
    employee_education_tax: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    employer_social_security: Decimal
    employer_education_tax: Decimal
    employer_professional_risk: Decimal
    total_employer_taxes: Decimal
    thirteenth_month: Decimal
    vacation: Decimal
    seniority_premium: Decimal
    total_provisions: Decimal
    total_monthly_cost: Decimal
    annual_provision_liability: Decimal


# --- Reports / system ---


class IncomeStatementRead(ORMModel):
    year: int
    month: Optional[int] = None
    period_label: str
    income: Decimal
    expense: Decimal
    income_by_category: Dict[str, Decimal]
    expense_by_category: Dict[str, Decimal]
    project_expenses: Dict[str, Decimal]
    total_operating_expense: Decimal
    total_project_expense: Decimal
    operating_result: Decimal
    net_result: Decimal


class AssistantRequest(BaseModel):
    prompt: str = Field(min_length=1, max_length=4000)

    @field_validator("prompt")
    @classmethod
    def _strip_prompt(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Prompt cannot be blank")
        return value


class AssistantResponse(BaseModel):
    text: str


class AuditLogEntry(ORMModel):
    id: int
    timestamp: datetime
    actor_user_id: Optional[int] = None
    actor_name: Optional[str] = None
    action: str
    entity: Optional[str] = None
    entity_id: Optional[str] = None
    details: Optional[str] = None
    before: Optional[str] = None
    after: Optional[str] = None


class AuditLogList(BaseModel):
    items: List[AuditLogEntry]
    total: int


class StateSnapshotRead(ORMModel):
    data: Dict[str, List[Dict[str, Any]]]
    missing_tables: bool
    hint: Optional[str] = None
    errors: List[str] = []


class DashboardSummary(BaseModel):
    members_total: int
    members_by_status: Dict[str, int]
    cash_position: Decimal
    total_receivable: Decimal
    debtor_count: int
    total_payable: Decimal
    low_stock_count: int
