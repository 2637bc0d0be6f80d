DEFAULT_ROLES = [
    ("ADMIN", "Administrator with full access, including deletes and user management"),
    ("EDITOR", "Operator who records members, finances, inventory and projects"),
    ("VIEWER", "Read-only access to every module"),
]

READ_PERMISSIONS = [
    "members:read",
    "finance:read",
    "inventory:read",
    "projects:read",
    "payroll:read",
    "reports:read",
    "board:read",
    "suppliers:read",
    "assistant:use",
]

WRITE_PERMISSIONS = [
    "members:write",
    "finance:write",
    "inventory:write",
    "projects:write",
    "payroll:write",
    "board:write",
    "suppliers:write",
]

ADMIN_PERMISSIONS = [
    "members:delete",
    "finance:delete",
    "inventory:delete",
    "projects:delete",
    "payroll:delete",
    "board:delete",
    "suppliers:delete",
    "users:manage",
    "audit:read",
]

ROLE_PERMISSIONS = {
    "VIEWER": READ_PERMISSIONS,
    "EDITOR": READ_PERMISSIONS + WRITE_PERMISSIONS,
    "ADMIN": READ_PERMISSIONS + WRITE_PERMISSIONS + ADMIN_PERMISSIONS,
}

MEMBER_STATUSES = ("ACTIVE", "INACTIVE", "PENDING")
MEMBER_CATEGORIES = ("INDIVIDUAL", "PRINCIPAL", "DEPENDENT")

TRANSACTION_TYPES = ("INCOME", "EXPENSE", "TRANSFER")
TRANSACTION_CATEGORIES = (
    "CONTRIBUTION",
    "DONATION",
    "MAINTENANCE",
    "CHEMICALS",
    "UTILITIES",
    "SALARY",
    "OTHER",
    "PROJECT",
    "INTERNAL",
)

BANK_ACCOUNT_TYPES = ("CHECKING", "SAVINGS", "CASH")

PROJECT_STATUSES = ("PLANNED", "IN_PROGRESS", "COMPLETED", "PAUSED")
PROJECT_PRIORITIES = ("CRITICAL", "HIGH", "MEDIUM", "LOW")
TASK_STATUSES = ("PENDING", "IN_PROGRESS", "COMPLETED")
DEFAULT_EXECUTION_ORDER = 99

SERVICE_STATUSES = ("PENDING", "IN_PROGRESS", "COMPLETED", "CANCELLED")
PURCHASE_STATUSES = ("DRAFT", "ORDERED", "RECEIVED", "PAID", "CANCELLED")
PAYMENT_STATUSES = ("PENDING", "PAID")

BOARD_ROLES = ("PRESIDENT", "VICE_PRESIDENT", "SECRETARY", "TREASURER", "VOCAL", "FISCAL")
EMPLOYEE_STATUSES = ("ACTIVE", "INACTIVE", "VACATION")
EMPLOYEE_PAYMENT_METHODS = ("ACH", "CHECK")

# Pool geometry used by the dosing calculator
POOL_VOLUME_GAL = 610000
POOL_VOLUME_M3 = 2309.1

# Reference purities (percent) the dosing rules of thumb are written against
REFERENCE_CHLORINE_PURITY = 65
REFERENCE_PH_DOWN_PURITY = 93
REFERENCE_ALKALINITY_PURITY = 100

DEFAULT_POOL_READINGS = {
    "ph": 7.8,
    "chlorine": 1.0,
    "alkalinity": 80,
    "target_ph": 7.4,
    "target_chlorine": 3.0,
    "target_alkalinity": 100,
}

# Name fragments used to auto-link dosing reagents to inventory items
REAGENT_KEYWORDS = {
    "chlorine": ("cloro", "chlorine"),
    "ph_down": ("ácido", "acido", "acid", "ph-"),
    "alkalinity": ("alcalinidad", "bicarbonato", "alkalinity"),
}

# Panama payroll rates
PAYROLL_RATES = {
    "employee_social_security": 0.0975,
    "employee_education_tax": 0.0125,
    "employer_social_security": 0.1225,
    "employer_education_tax": 0.0150,
    "thirteenth_month": 0.0833,
    "vacation": 0.0909,
    "seniority_premium": 0.0192,
}
DEFAULT_PROFESSIONAL_RISK_RATE = 2.10  # percent, class II
