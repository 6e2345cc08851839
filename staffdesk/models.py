from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from datetime import date, datetime
from typing import Optional, Literal
from uuid import UUID
from pydantic import EmailStr

EmployeeStatus = Literal['active', 'inactive', 'on_leave', 'vacation', 'disabled']
AttendanceStatus = Literal['present', 'absent', 'late', 'remote', 'vacation', 'sick_leave', 'holiday']
AttendanceSource = Literal['manual', 'import', 'correction']
PaymentFrequency = Literal['monthly', 'biweekly', 'weekly']
ReceiptStatus = Literal['pending', 'paid', 'cancelled']

CLOCK_PATTERN = r"^([01]?\d|2[0-3]):[0-5]\d(:[0-5]\d)?$"


def _blank_to_none(data):
    # Forms post "" for untouched fields
    if isinstance(data, dict):
        return {key: (None if value == "" else value) for key, value in data.items()}
    return data


# --- STATUS INPUTS ---
class EmployeeStatusInput(BaseModel):
    """Fields of an employees row that drive the effective status."""
    status: Optional[str] = None
    vacation_start: Optional[str] = None
    vacation_end: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("status", mode="before")
    @classmethod
    def loose_status(cls, value):
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    @field_validator("vacation_start", "vacation_end", mode="before")
    @classmethod
    def loose_date(cls, value):
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        if isinstance(value, str) and value:
            return value
        return None

    @classmethod
    def from_row(cls, row: dict) -> "EmployeeStatusInput":
        return cls.model_validate(row or {})
# -------------------

# --- AUTH MODELS ---
class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None
    role: Optional[str] = None
# -------------------

class EmployeeCreate(BaseModel):
    employee_number: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    status: Optional[EmployeeStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    emergency_contact_relationship: Optional[str] = None
    profile_image_url: Optional[str] = None
    cv_url: Optional[str] = None
    vacation_start: Optional[date] = None
    vacation_end: Optional[date] = None

    @model_validator(mode="before")
    @classmethod
    def blank_fields(cls, data):
        return _blank_to_none(data)

class EmployeeUpdate(EmployeeCreate):
    pass

class AttendanceCreate(BaseModel):
    employee_id: UUID
    attendance_date: Optional[date] = None
    status: Optional[AttendanceStatus] = None
    check_in: Optional[str] = Field(None, pattern=CLOCK_PATTERN)
    check_out: Optional[str] = Field(None, pattern=CLOCK_PATTERN)
    break_minutes: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None
    source: Optional[AttendanceSource] = None

    @model_validator(mode="before")
    @classmethod
    def blank_fields(cls, data):
        return _blank_to_none(data)

class AttendanceUpdate(AttendanceCreate):
    employee_id: Optional[UUID] = None

# --- PAYROLL MODELS ---
class SalaryCreate(BaseModel):
    employee_id: UUID
    base_salary: float = Field(ge=0)
    currency: str = "USD"
    payment_frequency: PaymentFrequency = "monthly"
    bonuses: float = Field(0, ge=0)
    deductions: float = Field(0, ge=0)
    bank_account: Optional[str] = None
    effective_date: date
    end_date: Optional[date] = None
    is_current: bool = True
    notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def blank_fields(cls, data):
        return _blank_to_none(data)

class SalaryUpdate(BaseModel):
    employee_id: Optional[UUID] = None
    base_salary: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = None
    payment_frequency: Optional[PaymentFrequency] = None
    bonuses: Optional[float] = Field(None, ge=0)
    deductions: Optional[float] = Field(None, ge=0)
    bank_account: Optional[str] = None
    effective_date: Optional[date] = None
    end_date: Optional[date] = None
    is_current: Optional[bool] = None
    notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def blank_fields(cls, data):
        return _blank_to_none(data)

class SalaryReceiptCreate(BaseModel):
    employee_id: UUID
    salary_id: Optional[UUID] = None
    period_start: date
    period_end: date
    payment_date: date
    gross_amount: float = Field(ge=0)
    net_amount: float = Field(ge=0)
    bonuses: float = Field(0, ge=0)
    deductions: float = Field(0, ge=0)
    status: ReceiptStatus = "pending"
    receipt_file_url: Optional[str] = None
    original_file_name: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def blank_fields(cls, data):
        return _blank_to_none(data)

class SalaryReceiptUpdate(BaseModel):
    employee_id: Optional[UUID] = None
    salary_id: Optional[UUID] = None
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    payment_date: Optional[date] = None
    gross_amount: Optional[float] = Field(None, ge=0)
    net_amount: Optional[float] = Field(None, ge=0)
    bonuses: Optional[float] = Field(None, ge=0)
    deductions: Optional[float] = Field(None, ge=0)
    status: Optional[ReceiptStatus] = None
    receipt_file_url: Optional[str] = None
    original_file_name: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def blank_fields(cls, data):
        return _blank_to_none(data)
# -------------------

class DocumentCreate(BaseModel):
    document_type: Optional[str] = None
    document_name: Optional[str] = None
    file_url: Optional[str] = None
    file_size: Optional[int] = None

    @field_validator("document_type", "document_name", "file_url", mode="before")
    @classmethod
    def stripped(cls, value):
        if isinstance(value, str):
            return value.strip() or None
        return value

class LeaveRequest(BaseModel):
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None

class MedicalCertificate(BaseModel):
    employee_id: Optional[str] = None
    document_id: Optional[str] = None
    uploaded_at: Optional[str] = None
    expiry: Optional[datetime] = None
    status: Literal['valid', 'expired', 'missing']
    label: str

class DashboardStats(BaseModel):
    total_employees: int
    active: int
    vacation: int
    on_leave: int
    inactive: int
    payroll_base: float
    payroll_bonuses: float
    payroll_deductions: float
    monthly_payroll: float
    average_payroll: float
    employees_without_salary: int
    pending_receipts: int
    pending_uniforms: int
    medical_missing: int
    medical_expired: int
    pending_medical: int

class PortalSummary(BaseModel):
    employee_id: str
    effective_status: Literal['active', 'on_leave', 'vacation', 'inactive']
    status_label: str
    medical_count: int
    medical: MedicalCertificate
    pending_receipts: int
    pending_uniforms: int
