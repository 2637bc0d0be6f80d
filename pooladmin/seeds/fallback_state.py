"""Built-in dataset served when the database schema has not been created yet."""

FALLBACK_STATE = {
    "members": [
        {
            "id": 1,
            "full_name": "Juan Pérez",
            "email": "juan@example.com",
            "phone": "6600-1122",
            "family_members": 4,
            "occupation": "Civil engineer",
            "join_date": "2023-01-15",
            "status": "ACTIVE",
            "category": "INDIVIDUAL",
            "last_payment_date": "2023-10-01",
            "monthly_fee": "45.00",
            "parent_member_id": None,
        },
        {
            "id": 2,
            "full_name": "Maria Rodriguez",
            "email": "maria@example.com",
            "phone": "6555-9988",
            "family_members": 2,
            "occupation": "Architect",
            "join_date": "2023-03-10",
            "status": "ACTIVE",
            "category": "INDIVIDUAL",
            "last_payment_date": "2023-09-28",
            "monthly_fee": "35.00",
            "parent_member_id": None,
        },
        {
            "id": 3,
            "full_name": "Carlos Torres",
            "email": "carlos@example.com",
            "phone": "6123-4567",
            "family_members": 1,
            "occupation": "Retired",
            "join_date": "2023-06-20",
            "status": "INACTIVE",
            "category": "INDIVIDUAL",
            "last_payment_date": None,
            "monthly_fee": "30.00",
            "parent_member_id": None,
        },
        {
            "id": 4,
            "full_name": "Club de Natación Delfines",
            "email": "admin@delfines.com",
            "phone": "2233-4455",
            "family_members": 0,
            "occupation": None,
            "join_date": "2023-08-01",
            "status": "ACTIVE",
            "category": "PRINCIPAL",
            "last_payment_date": None,
            "monthly_fee": "0.00",
            "parent_member_id": None,
        },
        {
            "id": 5,
            "full_name": "Student: Luisito Rey",
            "email": "luis.rey@gmail.com",
            "phone": "6000-0001",
            "family_members": 1,
            "occupation": None,
            "join_date": "2023-08-05",
            "status": "ACTIVE",
            "category": "DEPENDENT",
            "last_payment_date": None,
            "monthly_fee": "25.00",
            "parent_member_id": 4,
        },
        {
            "id": 6,
            "full_name": "Student: Ana Paula",
            "email": "ana.p@gmail.com",
            "phone": "6000-0002",
            "family_members": 1,
            "occupation": None,
            "join_date": "2023-08-05",
            "status": "ACTIVE",
            "category": "DEPENDENT",
            "last_payment_date": None,
            "monthly_fee": "25.00",
            "parent_member_id": 4,
        },
    ],
    "transactions": [
        {
            "id": 1,
            "date": "2023-10-01",
            "description": "October contribution - Juan Pérez",
            "amount": "45.00",
            "type": "INCOME",
            "category": "CONTRIBUTION",
            "related_member_id": 1,
            "related_bank_account_id": 1,
        },
        {
            "id": 2,
            "date": "2023-10-02",
            "description": "Granular chlorine purchase",
            "amount": "120.50",
            "type": "EXPENSE",
            "category": "CHEMICALS",
            "related_bank_account_id": 1,
        },
        {
            "id": 3,
            "date": "2023-10-05",
            "description": "Gardener payment",
            "amount": "80.00",
            "type": "EXPENSE",
            "category": "MAINTENANCE",
            "related_bank_account_id": 1,
        },
        {
            "id": 4,
            "date": "2023-11-02",
            "description": "Treated lumber for the deck",
            "amount": "450.00",
            "type": "EXPENSE",
            "category": "PROJECT",
            "related_bank_account_id": 1,
            "related_project_id": None,
        },
    ],
    "inventory_items": [
        {"id": 1, "name": "Cloro Granulado 65%", "unit": "lb", "quantity": "50.00", "unit_cost": "3.50", "min_threshold": "10.00", "last_restock_date": "2023-10-02"},
        {"id": 2, "name": "Incrementador Alcalinidad", "unit": "lb", "quantity": "150.00", "unit_cost": "1.25", "min_threshold": "50.00", "last_restock_date": "2023-09-15"},
        {"id": 3, "name": "Clarificador", "unit": "litros", "quantity": "8.00", "unit_cost": "8.75", "min_threshold": "2.00", "last_restock_date": "2023-08-20"},
        {"id": 4, "name": "Ácido Seco (pH-)", "unit": "lb", "quantity": "100.00", "unit_cost": "2.15", "min_threshold": "20.00", "last_restock_date": "2023-06-01"},
    ],
    "maintenance_logs": [],
    "bank_accounts": [
        # Opening balances chosen so the derived balances are 2090.50 and 5000.00.
        {"id": 1, "bank_name": "Banco General", "account_number": "****-1234", "type": "CHECKING", "currency": "USD", "opening_balance": "2696.00", "balance": "2090.50"},
        {"id": 2, "bank_name": "Banistmo", "account_number": "****-9876", "type": "SAVINGS", "currency": "USD", "opening_balance": "5000.00", "balance": "5000.00"},
    ],
    "projects": [],
    "project_tasks": [],
    "service_orders": [],
    "purchase_orders": [],
    "board_members": [],
    "employees": [],
    "suppliers": [],
    "users": [
        {"id": 1, "username": "admin", "full_name": "Main administrator", "role": "ADMIN"},
        {"id": 2, "username": "operator", "full_name": "Standard operator", "role": "EDITOR"},
        {"id": 3, "username": "guest", "full_name": "Guest viewer", "role": "VIEWER"},
    ],
    "audit_logs": [],
}
