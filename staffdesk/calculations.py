import re
from datetime import date, datetime, timezone
from typing import Iterable, Literal, NewType, Optional, Union

from .models import EmployeeStatusInput

DateKey = NewType("DateKey", str)
DateLike = Union[str, date, datetime, None]

EffectiveStatus = Literal["active", "on_leave", "vacation", "inactive"]
MedicalCertificateStatus = Literal["valid", "expired", "missing"]

INACTIVE_STATUSES = {"inactive", "disabled"}
MEDICAL_DOCUMENT_TYPES = ("certificado_medico", "certificados_medicos", "medical_certificate")
UNIFORM_DOCUMENT_TYPES = ("uniforme", "uniformes", "uniform")
MAX_LEAVE_DAYS = 31
DATE_KEY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

STATUS_LABELS = {
    "active": "Activo",
    "on_leave": "Licencia",
    "vacation": "Vacaciones",
    "inactive": "Desactivado",
}


# --- Date keys ---

def to_date_key(value: DateLike) -> Optional[DateKey]:
    """
    Reduce a date, datetime or ISO-8601-like string to its YYYY-MM-DD key.
    No timezone conversion happens here: the key is the calendar date as written.
    """
    if isinstance(value, datetime):
        return DateKey(value.date().isoformat())
    if isinstance(value, date):
        return DateKey(value.isoformat())
    if not isinstance(value, str) or not value:
        return None
    key = value[:10]
    if not DATE_KEY_PATTERN.match(key):
        return None
    try:
        return DateKey(date.fromisoformat(key).isoformat())
    except ValueError:
        return None


def parse_instant(value: DateLike) -> Optional[datetime]:
    # Aware values are moved to UTC, then everything is compared naive
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def dates_in_range(start: DateLike, end: DateLike, max_days: int = MAX_LEAVE_DAYS) -> list[DateKey]:
    start_key = to_date_key(start)
    end_key = to_date_key(end)
    if not start_key or not end_key:
        return []
    current = date.fromisoformat(start_key)
    last = date.fromisoformat(end_key)
    keys = []
    while current <= last and len(keys) < max_days:
        keys.append(DateKey(current.isoformat()))
        current = date.fromordinal(current.toordinal() + 1)
    return keys


def format_date(value: DateLike) -> str:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value.strftime("%d/%m/%Y")
    parsed = parse_instant(value)
    if not parsed:
        return "-"
    return parsed.strftime("%d/%m/%Y")


def format_date_range(start: DateLike, end: DateLike) -> str:
    start_label = format_date(start)
    end_label = format_date(end)
    if start_label == "-":
        return end_label
    if end_label == "-":
        return start_label
    return f"{start_label} - {end_label}"


# --- Employee status ---

def effective_status(employee: EmployeeStatusInput, today: DateLike) -> EffectiveStatus:
    """
    Priority: inactive > on_leave > explicit vacation > vacation window > active.
    Both ends of the vacation window are inclusive; a one-sided window is ignored.
    """
    base_status = employee.status or "active"
    if base_status in INACTIVE_STATUSES:
        return "inactive"
    if base_status == "on_leave":
        return "on_leave"
    if base_status == "vacation":
        return "vacation"

    today_key = to_date_key(today)
    start = to_date_key(employee.vacation_start)
    end = to_date_key(employee.vacation_end)
    if today_key and start and end and start <= today_key <= end:
        return "vacation"
    return "active"


def status_label(status: Optional[str]) -> str:
    return STATUS_LABELS.get(status, "Desconocido")


# --- Medical certificates ---

def medical_certificate_expiry(uploaded_at: DateLike) -> Optional[datetime]:
    """
    One calendar year after the upload instant.
    Feb 29 rolls over to Mar 1 when the following year is not a leap year.
    """
    issued_at = parse_instant(uploaded_at)
    if not issued_at:
        return None
    try:
        return issued_at.replace(year=issued_at.year + 1)
    except ValueError:
        return issued_at.replace(year=issued_at.year + 1, month=3, day=1)


def medical_certificate_status(uploaded_at: DateLike, reference: DateLike) -> MedicalCertificateStatus:
    expiry = medical_certificate_expiry(uploaded_at)
    if not expiry:
        return "missing"
    reference_at = parse_instant(reference)
    if reference_at and expiry < reference_at:
        return "expired"
    return "valid"


def medical_status_label(status: MedicalCertificateStatus, expiry: Optional[datetime]) -> str:
    if status == "valid":
        return f"Vigente hasta {format_date(expiry)}"
    if status == "expired":
        return "Vencido"
    return "Sin certificado"


def _document_rank(document: dict) -> tuple:
    uploaded = parse_instant(document.get("uploaded_at"))
    # Missing timestamps sort below every present one
    return (uploaded is not None, uploaded or datetime.min, str(document.get("id") or ""))


def latest_documents_by_employee(documents: Iterable[dict]) -> dict[str, dict]:
    """Pick the newest document per employee, ties broken by document id."""
    latest: dict[str, dict] = {}
    for doc in documents:
        employee_id = doc.get("employee_id")
        if not employee_id:
            continue
        existing = latest.get(employee_id)
        if existing is None or _document_rank(doc) > _document_rank(existing):
            latest[employee_id] = doc
    return latest


# --- Attendance ---

def clock_to_minutes(value: Optional[str]) -> Optional[int]:
    if not isinstance(value, str) or not value:
        return None
    parts = value.strip().split(":")
    if len(parts) < 2:
        return None
    if not (parts[0].isdigit() and parts[1].isdigit()):
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def hours_worked(check_in: Optional[str], check_out: Optional[str], break_minutes: Optional[int] = 0) -> Optional[float]:
    start = clock_to_minutes(check_in)
    end = clock_to_minutes(check_out)
    if start is None or end is None:
        return None
    try:
        pause = int(break_minutes or 0)
    except (TypeError, ValueError):
        pause = 0
    # Overnight shifts are not wrapped; they count as zero
    return max(0, end - start - pause) / 60
