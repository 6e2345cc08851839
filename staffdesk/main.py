from fastapi import Depends, FastAPI, HTTPException, Query, Response
from datetime import date, datetime, timezone
from typing import Optional
import logging

import pandas as pd

from . import config
from .auth import get_current_user, get_portal_employee, require_admin
from .calculations import (
    MEDICAL_DOCUMENT_TYPES,
    UNIFORM_DOCUMENT_TYPES,
    dates_in_range,
    effective_status,
    format_date,
    format_date_range,
    hours_worked,
    latest_documents_by_employee,
    medical_certificate_expiry,
    medical_certificate_status,
    medical_status_label,
    status_label,
    to_date_key,
)
from .db import execute, fetch_one, fetch_rows, get_supabase_client
from .models import (
    AttendanceCreate,
    AttendanceUpdate,
    AuthUser,
    DashboardStats,
    DocumentCreate,
    EmployeeCreate,
    EmployeeStatusInput,
    EmployeeUpdate,
    LeaveRequest,
    MedicalCertificate,
    PortalSummary,
    SalaryCreate,
    SalaryReceiptCreate,
    SalaryReceiptUpdate,
    SalaryUpdate,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Staffdesk API")

LEAVE_STATUSES = ("sick_leave", "vacation")


# --- Clock ---
# Resolved once per request so every row of a response is judged against the same instant

def get_today() -> date:
    return date.today()

def get_now() -> datetime:
    return datetime.now(timezone.utc)


# --- Helpers ---

def full_name(row: Optional[dict]) -> str:
    if not row:
        return ""
    return " ".join(part for part in (row.get("first_name"), row.get("last_name")) if part)

def with_status(row: dict, today: date) -> dict:
    status = effective_status(EmployeeStatusInput.from_row(row), today)
    return {**row, "effective_status": status, "status_label": status_label(status)}

def with_hours(row: dict) -> dict:
    hours = hours_worked(row.get("check_in"), row.get("check_out"), row.get("break_minutes"))
    return {**row, "hours_worked": round(hours, 2) if hours is not None else None}

def medical_summary(document: Optional[dict], now: datetime, employee_id: Optional[str] = None) -> MedicalCertificate:
    uploaded_at = document.get("uploaded_at") if document else None
    status = medical_certificate_status(uploaded_at, now)
    expiry = medical_certificate_expiry(uploaded_at)
    return MedicalCertificate(
        employee_id=employee_id or (document or {}).get("employee_id"),
        document_id=(document or {}).get("id"),
        uploaded_at=uploaded_at,
        expiry=expiry,
        status=status,
        label=medical_status_label(status, expiry),
    )

def validate_vacation_range(payload: dict):
    start, end = to_date_key(payload.get("vacation_start")), to_date_key(payload.get("vacation_end"))
    if start and end and start > end:
        raise HTTPException(status_code=400, detail="Vacation start must be on or before vacation end.")

def matches_search(row: dict, search: str) -> bool:
    needle = search.strip().lower()
    haystack = (full_name(row), row.get("email"), row.get("employee_number"))
    return any(needle in str(value).lower() for value in haystack if value)

def attendance_query(supabase, employee_id=None, status=None, start_date=None, end_date=None, count=None):
    query = supabase.table("attendance_records").select("*", count=count)
    if employee_id:
        query = query.eq("employee_id", employee_id)
    if status:
        query = query.eq("status", status)
    if start_date:
        query = query.gte("attendance_date", str(start_date))
    if end_date:
        query = query.lte("attendance_date", str(end_date))
    return query.order("attendance_date", desc=True)

def paginate(query, page: int, page_size: int, what: str) -> dict:
    response = execute(query.range((page - 1) * page_size, page * page_size - 1), what)
    return {"data": response.data or [], "count": response.count or 0}

def signed_url(supabase, bucket: str, path: str) -> dict:
    try:
        signed = supabase.storage.from_(bucket).create_signed_url(path, config.SIGNED_URL_TTL)
    except Exception as e:
        logger.exception("Signing %s/%s failed", bucket, path)
        raise HTTPException(status_code=500, detail=str(e))
    url = signed.get("signedURL") or signed.get("signedUrl")
    if not url:
        raise HTTPException(status_code=500, detail="Could not sign the file.")
    return {"url": url}

def document_payload(req: DocumentCreate, employee_id: str, user: AuthUser) -> dict:
    if not req.document_type or not req.document_name or not req.file_url:
        raise HTTPException(status_code=400, detail="Document type, name and file are required.")
    payload = req.model_dump(mode="json", exclude_none=True)
    payload.update(employee_id=employee_id, uploaded_by=user.id)
    return payload

def csv_response(records: list, columns: list, filename: str) -> Response:
    df = pd.DataFrame(records, columns=columns, dtype=object)
    return Response(
        content=df.to_csv(index=False),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# --- Endpoints ---

@app.get("/health")
def health():
    return {"status": "ok"}

@app.get("/employees")
def list_employees(
    status: Optional[str] = None,
    search: Optional[str] = None,
    today: date = Depends(get_today),
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    rows = fetch_rows(supabase.table("employees").select("*").order("last_name"), "employee list")
    data = [with_status(row, today) for row in rows]
    if status:
        data = [row for row in data if row["effective_status"] == status]
    if search:
        data = [row for row in data if matches_search(row, search)]
    return data

@app.get("/employees/{employee_id}")
def get_employee(
    employee_id: str,
    today: date = Depends(get_today),
    now: datetime = Depends(get_now),
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    employee = fetch_one(supabase.table("employees").select("*").eq("id", employee_id), "employee lookup")
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found.")

    documents = fetch_rows(
        supabase.table("employee_documents")
        .select("id, employee_id, uploaded_at")
        .eq("employee_id", employee_id)
        .in_("document_type", list(MEDICAL_DOCUMENT_TYPES)),
        "medical certificates",
    )
    latest = latest_documents_by_employee(documents).get(employee_id)
    res = with_status(employee, today)
    res["medical_certificate"] = medical_summary(latest, now, employee_id).model_dump(mode="json")
    return res

@app.post("/employees")
def create_employee(
    req: EmployeeCreate,
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    payload = req.model_dump(mode="json", exclude_none=True)
    validate_vacation_range(payload)
    payload["created_by"] = user.id

    rows = fetch_rows(supabase.table("employees").insert(payload), "employee insert")
    logger.info("Employee created by %s", user.id)
    return rows[0] if rows else payload

@app.patch("/employees/{employee_id}")
def update_employee(
    employee_id: str,
    req: EmployeeUpdate,
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    payload = req.model_dump(mode="json", exclude_unset=True)
    if not payload:
        raise HTTPException(status_code=400, detail="Nothing to update.")
    if "vacation_start" in payload or "vacation_end" in payload:
        stored = fetch_one(
            supabase.table("employees").select("id, vacation_start, vacation_end").eq("id", employee_id),
            "employee lookup",
        )
        if not stored:
            raise HTTPException(status_code=404, detail="Employee not found.")
        # A one-sided change is checked against the other stored end
        validate_vacation_range({**stored, **payload})

    rows = fetch_rows(supabase.table("employees").update(payload).eq("id", employee_id), "employee update")
    if not rows:
        raise HTTPException(status_code=404, detail="Employee not found.")
    logger.info("Employee %s updated by %s", employee_id, user.id)
    return rows[0]

@app.delete("/employees/{employee_id}")
def delete_employee(
    employee_id: str,
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    execute(supabase.table("employees").delete().eq("id", employee_id), "employee delete")
    logger.info("Employee %s deleted by %s", employee_id, user.id)
    return {"status": "deleted"}

@app.get("/attendance")
def list_attendance(
    employee_id: Optional[str] = None,
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    query = attendance_query(supabase, employee_id, status, start_date, end_date, count="exact")
    res = paginate(query, page, page_size, "attendance list")
    res["data"] = [with_hours(row) for row in res["data"]]
    return res

@app.post("/attendance")
def create_attendance(
    req: AttendanceCreate,
    today: date = Depends(get_today),
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    payload = req.model_dump(mode="json", exclude_none=True)
    payload.setdefault("attendance_date", today.isoformat())
    payload.setdefault("status", "present")
    payload.setdefault("source", "manual")
    payload.setdefault("break_minutes", 0)
    payload["created_by"] = user.id

    rows = fetch_rows(supabase.table("attendance_records").insert(payload), "attendance insert")
    return with_hours(rows[0] if rows else payload)

@app.patch("/attendance/{record_id}")
def update_attendance(
    record_id: str,
    req: AttendanceUpdate,
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    payload = req.model_dump(mode="json", exclude_unset=True)
    if not payload:
        raise HTTPException(status_code=400, detail="Nothing to update.")

    rows = fetch_rows(supabase.table("attendance_records").update(payload).eq("id", record_id), "attendance update")
    if not rows:
        raise HTTPException(status_code=404, detail="Attendance record not found.")
    return with_hours(rows[0])

@app.delete("/attendance/{record_id}")
def delete_attendance(
    record_id: str,
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    execute(supabase.table("attendance_records").delete().eq("id", record_id), "attendance delete")
    return {"status": "deleted"}

@app.get("/salaries")
def list_salaries(
    employee_id: Optional[str] = None,
    current_only: bool = False,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=200),
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    query = supabase.table("salaries").select("*", count="exact")
    if employee_id:
        query = query.eq("employee_id", employee_id)
    if current_only:
        query = query.eq("is_current", True)
    return paginate(query.order("effective_date", desc=True), page, page_size, "salary list")

@app.post("/salaries")
def create_salary(
    req: SalaryCreate,
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    payload = req.model_dump(mode="json", exclude_none=True)
    if payload["is_current"]:
        # Only one current salary per employee; the previous one ends where the new one starts
        execute(
            supabase.table("salaries")
            .update({"is_current": False, "end_date": payload["effective_date"]})
            .eq("employee_id", payload["employee_id"])
            .eq("is_current", True),
            "salary rollover",
        )
    payload["created_by"] = user.id

    rows = fetch_rows(supabase.table("salaries").insert(payload), "salary insert")
    logger.info("Salary for %s created by %s", payload["employee_id"], user.id)
    return rows[0] if rows else payload

@app.patch("/salaries/{salary_id}")
def update_salary(
    salary_id: str,
    req: SalaryUpdate,
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    payload = req.model_dump(mode="json", exclude_unset=True)
    if not payload:
        raise HTTPException(status_code=400, detail="Nothing to update.")

    if payload.get("is_current"):
        stored = fetch_one(supabase.table("salaries").select("id, employee_id").eq("id", salary_id), "salary lookup")
        if not stored:
            raise HTTPException(status_code=404, detail="Salary not found.")
        execute(
            supabase.table("salaries")
            .update({"is_current": False})
            .eq("employee_id", payload.get("employee_id") or stored["employee_id"])
            .eq("is_current", True)
            .neq("id", salary_id),
            "salary rollover",
        )

    rows = fetch_rows(supabase.table("salaries").update(payload).eq("id", salary_id), "salary update")
    if not rows:
        raise HTTPException(status_code=404, detail="Salary not found.")
    logger.info("Salary %s updated by %s", salary_id, user.id)
    return rows[0]

@app.delete("/salaries/{salary_id}")
def delete_salary(
    salary_id: str,
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    execute(supabase.table("salaries").delete().eq("id", salary_id), "salary delete")
    logger.info("Salary %s deleted by %s", salary_id, user.id)
    return {"status": "deleted"}

@app.get("/salary-receipts")
def list_salary_receipts(
    employee_id: Optional[str] = None,
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=200),
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    query = supabase.table("salary_receipts").select("*", count="exact")
    if employee_id:
        query = query.eq("employee_id", employee_id)
    if status:
        query = query.eq("status", status)
    if start_date:
        query = query.gte("period_start", str(start_date))
    if end_date:
        query = query.lte("period_end", str(end_date))
    return paginate(query.order("payment_date", desc=True), page, page_size, "receipt list")

@app.post("/salary-receipts")
def create_salary_receipt(
    req: SalaryReceiptCreate,
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    if req.period_start > req.period_end:
        raise HTTPException(status_code=400, detail="Period start must be on or before period end.")
    payload = req.model_dump(mode="json", exclude_none=True)
    payload["created_by"] = user.id

    rows = fetch_rows(supabase.table("salary_receipts").insert(payload), "receipt insert")
    logger.info("Receipt for %s created by %s", payload["employee_id"], user.id)
    return rows[0] if rows else payload

@app.patch("/salary-receipts/{receipt_id}")
def update_salary_receipt(
    receipt_id: str,
    req: SalaryReceiptUpdate,
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    payload = req.model_dump(mode="json", exclude_unset=True)
    if not payload:
        raise HTTPException(status_code=400, detail="Nothing to update.")

    rows = fetch_rows(supabase.table("salary_receipts").update(payload).eq("id", receipt_id), "receipt update")
    if not rows:
        raise HTTPException(status_code=404, detail="Receipt not found.")
    return rows[0]

@app.delete("/salary-receipts/{receipt_id}")
def delete_salary_receipt(
    receipt_id: str,
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    execute(supabase.table("salary_receipts").delete().eq("id", receipt_id), "receipt delete")
    logger.info("Receipt %s deleted by %s", receipt_id, user.id)
    return {"status": "deleted"}

@app.get("/salary-receipts/{receipt_id}/signed-url")
def salary_receipt_signed_url(
    receipt_id: str,
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    receipt = fetch_one(
        supabase.table("salary_receipts").select("id, receipt_file_url").eq("id", receipt_id), "receipt lookup"
    )
    if not receipt or not receipt.get("receipt_file_url"):
        raise HTTPException(status_code=404, detail="Receipt file not found.")
    return signed_url(supabase, config.RECEIPTS_BUCKET, receipt["receipt_file_url"])

@app.get("/documents/medical")
def list_medical_certificates(
    now: datetime = Depends(get_now),
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    employees = fetch_rows(supabase.table("employees").select("id, first_name, last_name"), "employee list")
    documents = fetch_rows(
        supabase.table("employee_documents")
        .select("id, employee_id, uploaded_at")
        .in_("document_type", list(MEDICAL_DOCUMENT_TYPES)),
        "medical certificates",
    )
    latest = latest_documents_by_employee(documents)

    data = []
    for employee in employees:
        summary = medical_summary(latest.get(employee["id"]), now, employee["id"])
        data.append({"employee_name": full_name(employee), **summary.model_dump(mode="json")})
    return data

@app.get("/documents/{document_id}/signed-url")
def document_signed_url(
    document_id: str,
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    document = fetch_one(supabase.table("employee_documents").select("id, file_url").eq("id", document_id), "document lookup")
    if not document or not document.get("file_url"):
        raise HTTPException(status_code=404, detail="Document not found.")
    return signed_url(supabase, config.DOCUMENTS_BUCKET, document["file_url"])

@app.get("/employees/{employee_id}/documents")
def list_employee_documents(
    employee_id: str,
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    rows = fetch_rows(
        supabase.table("employee_documents").select("*").eq("employee_id", employee_id).order("uploaded_at", desc=True),
        "employee documents",
    )
    return {"data": rows}

@app.post("/employees/{employee_id}/documents")
def add_employee_document(
    employee_id: str,
    req: DocumentCreate,
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    payload = document_payload(req, employee_id, user)
    rows = fetch_rows(supabase.table("employee_documents").insert(payload), "document insert")
    logger.info("Document %s added to %s by %s", payload["document_type"], employee_id, user.id)
    return {"data": rows[0] if rows else payload}

@app.get("/dashboard", response_model=DashboardStats)
def dashboard(
    today: date = Depends(get_today),
    now: datetime = Depends(get_now),
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    employees = fetch_rows(
        supabase.table("employees").select("id, status, vacation_start, vacation_end"), "employee list"
    )
    salaries = fetch_rows(
        supabase.table("salaries")
        .select("employee_id, base_salary, bonuses, deductions, is_current")
        .eq("is_current", True),
        "salary list",
    )
    receipts = fetch_rows(supabase.table("salary_receipts").select("id, signed_at"), "receipt list")
    uniforms = fetch_rows(
        supabase.table("employee_documents")
        .select("id, employee_id, signed_at")
        .in_("document_type", list(UNIFORM_DOCUMENT_TYPES)),
        "uniform list",
    )
    medical = fetch_rows(
        supabase.table("employee_documents")
        .select("id, employee_id, uploaded_at")
        .in_("document_type", list(MEDICAL_DOCUMENT_TYPES)),
        "medical certificates",
    )

    statuses = {row["id"]: effective_status(EmployeeStatusInput.from_row(row), today) for row in employees}
    counts = {name: list(statuses.values()).count(name) for name in ("active", "vacation", "on_leave", "inactive")}

    base = sum(float(s.get("base_salary") or 0) for s in salaries)
    bonuses = sum(float(s.get("bonuses") or 0) for s in salaries)
    deductions = sum(float(s.get("deductions") or 0) for s in salaries)
    payroll = base + bonuses - deductions
    salaried = {s["employee_id"] for s in salaries if s.get("employee_id")}

    latest = latest_documents_by_employee(medical)
    medical_statuses = [
        medical_certificate_status((latest.get(employee_id) or {}).get("uploaded_at"), now)
        for employee_id in statuses
    ]
    missing = medical_statuses.count("missing")
    expired = medical_statuses.count("expired")

    return DashboardStats(
        total_employees=len(statuses) - counts["inactive"],
        active=counts["active"],
        vacation=counts["vacation"],
        on_leave=counts["on_leave"],
        inactive=counts["inactive"],
        payroll_base=base,
        payroll_bonuses=bonuses,
        payroll_deductions=deductions,
        monthly_payroll=payroll,
        average_payroll=payroll / len(salaried) if salaried else 0,
        employees_without_salary=sum(
            1 for employee_id, status in statuses.items() if status != "inactive" and employee_id not in salaried
        ),
        pending_receipts=sum(1 for r in receipts if not r.get("signed_at")),
        pending_uniforms=sum(1 for u in uniforms if not u.get("signed_at")),
        medical_missing=missing,
        medical_expired=expired,
        pending_medical=missing + expired,
    )

@app.get("/export/employees.csv")
def export_employees(
    today: date = Depends(get_today),
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    rows = fetch_rows(supabase.table("employees").select("*").order("last_name"), "employee export")
    records = []
    for row in rows:
        status = effective_status(EmployeeStatusInput.from_row(row), today)
        records.append({
            "Legajo": row.get("employee_number"),
            "Nombre": row.get("first_name"),
            "Apellido": row.get("last_name"),
            "Email": row.get("email"),
            "Puesto": row.get("position"),
            "Departamento": row.get("department"),
            "Estado": status_label(status),
            "Vacaciones": format_date_range(row.get("vacation_start"), row.get("vacation_end")),
            "Ingreso": format_date(row.get("start_date")),
        })
    columns = ["Legajo", "Nombre", "Apellido", "Email", "Puesto", "Departamento", "Estado", "Vacaciones", "Ingreso"]
    return csv_response(records, columns, f"empleados-{today.isoformat()}.csv")

@app.get("/export/attendance.csv")
def export_attendance(
    employee_id: Optional[str] = None,
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    today: date = Depends(get_today),
    user: AuthUser = Depends(require_admin),
    supabase=Depends(get_supabase_client),
):
    rows = fetch_rows(attendance_query(supabase, employee_id, status, start_date, end_date), "attendance export")
    employees = fetch_rows(supabase.table("employees").select("id, first_name, last_name"), "employee list")
    names = {employee["id"]: full_name(employee) for employee in employees}

    records = []
    for row in rows:
        hours = hours_worked(row.get("check_in"), row.get("check_out"), row.get("break_minutes"))
        records.append({
            "Fecha": format_date(row.get("attendance_date")),
            "Empleado": names.get(row.get("employee_id"), ""),
            "Estado": row.get("status"),
            "Entrada": row.get("check_in"),
            "Salida": row.get("check_out"),
            "Descanso (min)": row.get("break_minutes"),
            "Horas": f"{hours:.2f}" if hours is not None else None,
            "Origen": row.get("source"),
            "Notas": row.get("notes"),
        })
    columns = ["Fecha", "Empleado", "Estado", "Entrada", "Salida", "Descanso (min)", "Horas", "Origen", "Notas"]
    return csv_response(records, columns, f"asistencia-{today.isoformat()}.csv")


# --- Portal ---

@app.get("/portal/summary", response_model=PortalSummary)
def portal_summary(
    today: date = Depends(get_today),
    now: datetime = Depends(get_now),
    employee: dict = Depends(get_portal_employee),
    supabase=Depends(get_supabase_client),
):
    employee_id = employee["id"]
    receipts = fetch_rows(
        supabase.table("salary_receipts").select("id, signed_at").eq("employee_id", employee_id), "receipt list"
    )
    medical = fetch_rows(
        supabase.table("employee_documents")
        .select("id, employee_id, uploaded_at")
        .eq("employee_id", employee_id)
        .in_("document_type", list(MEDICAL_DOCUMENT_TYPES)),
        "medical certificates",
    )
    uniforms = fetch_rows(
        supabase.table("employee_documents")
        .select("id, signed_at")
        .eq("employee_id", employee_id)
        .in_("document_type", list(UNIFORM_DOCUMENT_TYPES)),
        "uniform list",
    )

    status = effective_status(EmployeeStatusInput.from_row(employee), today)
    latest = latest_documents_by_employee(medical).get(employee_id)
    return PortalSummary(
        employee_id=employee_id,
        effective_status=status,
        status_label=status_label(status),
        medical_count=len(medical),
        medical=medical_summary(latest, now, employee_id),
        pending_receipts=sum(1 for r in receipts if not r.get("signed_at")),
        pending_uniforms=sum(1 for u in uniforms if not u.get("signed_at")),
    )

@app.get("/portal/attendance")
def portal_attendance(
    employee: dict = Depends(get_portal_employee),
    supabase=Depends(get_supabase_client),
):
    rows = fetch_rows(attendance_query(supabase, employee_id=employee["id"]), "portal attendance")
    return {"data": [with_hours(row) for row in rows]}

@app.post("/portal/attendance/leave")
def portal_leave(
    req: LeaveRequest,
    user: AuthUser = Depends(get_current_user),
    employee: dict = Depends(get_portal_employee),
    supabase=Depends(get_supabase_client),
):
    if not req.start_date or not req.end_date:
        raise HTTPException(status_code=400, detail="Start and end dates are required.")

    dates = dates_in_range(req.start_date, req.end_date)
    if not dates:
        raise HTTPException(status_code=400, detail="Invalid date range.")

    status = req.status if req.status in LEAVE_STATUSES else "sick_leave"
    rows = [
        {
            "employee_id": employee["id"],
            "attendance_date": day,
            "status": status,
            "source": "manual",
            "notes": req.notes,
            "created_by": user.id,
        }
        for day in dates
    ]
    data = fetch_rows(supabase.table("attendance_records").insert(rows), "leave insert")
    logger.info("Leave %s registered for %s (%d days)", status, employee["id"], len(dates))
    return {"data": data}

@app.get("/portal/receipts")
def portal_receipts(
    status: Optional[str] = None,
    employee: dict = Depends(get_portal_employee),
    supabase=Depends(get_supabase_client),
):
    query = supabase.table("salary_receipts").select("*").eq("employee_id", employee["id"])
    if status:
        query = query.eq("status", status)
    return {"data": fetch_rows(query.order("payment_date", desc=True), "portal receipts")}

@app.get("/portal/documents")
def portal_documents(
    document_group: Optional[str] = Query(None, alias="type"),
    employee: dict = Depends(get_portal_employee),
    supabase=Depends(get_supabase_client),
):
    query = supabase.table("employee_documents").select("*").eq("employee_id", employee["id"])
    group = (document_group or "").lower()
    if group == "medical":
        query = query.in_("document_type", list(MEDICAL_DOCUMENT_TYPES))
    elif group == "uniforms":
        query = query.in_("document_type", list(UNIFORM_DOCUMENT_TYPES))
    return {"data": fetch_rows(query.order("uploaded_at", desc=True), "portal documents")}

@app.post("/portal/documents")
def portal_upload_document(
    req: DocumentCreate,
    user: AuthUser = Depends(get_current_user),
    employee: dict = Depends(get_portal_employee),
    supabase=Depends(get_supabase_client),
):
    payload = document_payload(req, employee["id"], user)
    # Employees may only hand in medical certificates themselves
    if payload["document_type"] not in MEDICAL_DOCUMENT_TYPES:
        raise HTTPException(status_code=400, detail="Only medical certificates can be uploaded from the portal.")

    rows = fetch_rows(supabase.table("employee_documents").insert(payload), "document insert")
    logger.info("Medical certificate uploaded by %s", employee["id"])
    return {"data": rows[0] if rows else payload}
