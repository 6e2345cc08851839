import os
import streamlit as st
import httpx
import pandas as pd
from datetime import date, timedelta

# Config
API_URL = os.getenv("STAFFDESK_API_URL", "http://localhost:8000")

st.set_page_config(page_title="Staffdesk", layout="wide", page_icon="🗂️")

# Nord palette, trimmed to what the console uses
NORD_CSS = """
<style>
    .stApp { background-color: #2E3440; }
    h1, h2, h3, p, label { color: #E5E9F0 !important; }
    [data-testid="stSidebar"] { background-color: #242933; border-right: 1px solid #434C5E; }
    [data-testid="stMetricValue"] { color: #88C0D0 !important; font-weight: 700; }
</style>
"""
st.markdown(NORD_CSS, unsafe_allow_html=True)

if 'token' not in st.session_state:
    st.session_state.token = ""


# --- HELPERS ---
def auth_headers():
    return {"Authorization": f"Bearer {st.session_state.token}"}

def api_get(path, params=None):
    """GET against the API; shows the error and returns None when the call fails."""
    try:
        res = httpx.get(f"{API_URL}{path}", params=params, headers=auth_headers(), timeout=15)
    except httpx.HTTPError as e:
        st.error(f"Backend Error: {e}")
        return None
    if res.status_code != 200:
        try:
            detail = res.json().get('detail')
        except ValueError:
            detail = res.text
        st.error(f"{res.status_code}: {detail}")
        return None
    return res

def download_button(label, path, params=None):
    res = api_get(path, params)
    if res is not None:
        filename = path.rsplit("/", 1)[-1]
        st.download_button(label, data=res.content, file_name=filename, mime="text/csv")


# --- PAGES ---
def render_dashboard():
    st.title("Dashboard")
    res = api_get("/dashboard")
    if res is None:
        return
    stats = res.json()

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total empleados", stats['total_employees'])
    c2.metric("Activos", stats['active'])
    c3.metric("Vacaciones", stats['vacation'])
    c4.metric("Licencias", stats['on_leave'])

    st.divider()
    c1, c2, c3 = st.columns(3)
    c1.metric("Nomina mensual", f"$ {stats['monthly_payroll']:,.2f}")
    c2.metric("Promedio por empleado", f"$ {stats['average_payroll']:,.2f}")
    c3.metric("Sin salario cargado", stats['employees_without_salary'])

    c1, c2, c3 = st.columns(3)
    c1.metric("Recibos sin firmar", stats['pending_receipts'])
    c2.metric("Uniformes sin firmar", stats['pending_uniforms'])
    c3.metric(
        "Certificados medicos pendientes", stats['pending_medical'],
        help=f"{stats['medical_missing']} sin certificado, {stats['medical_expired']} vencidos",
    )

def render_employees():
    st.title("Empleados")
    col_s, col_q = st.columns([1, 2])
    with col_s:
        status = st.selectbox(
            "Estado",
            ["", "active", "vacation", "on_leave", "inactive"],
            format_func=lambda s: {"": "Todos", "active": "Activo", "vacation": "Vacaciones",
                                   "on_leave": "Licencia", "inactive": "Desactivado"}[s],
        )
    with col_q:
        search = st.text_input("Buscar", placeholder="Nombre, email o legajo")

    params = {k: v for k, v in {"status": status, "search": search}.items() if v}
    res = api_get("/employees", params)
    if res is None:
        return
    data = res.json()
    if not data:
        st.info("No hay empleados para este filtro.")
        return

    df = pd.DataFrame(data)
    df['nombre'] = (df['first_name'].fillna('') + ' ' + df['last_name'].fillna('')).str.strip()
    st.dataframe(
        df[['employee_number', 'nombre', 'email', 'department', 'position', 'status_label']],
        use_container_width=True,
        hide_index=True,
        column_config={
            "employee_number": "Legajo",
            "nombre": "Nombre",
            "email": "Email",
            "department": "Departamento",
            "position": "Puesto",
            "status_label": "Estado",
        }
    )
    download_button("Exportar CSV", "/export/employees.csv")

def render_attendance():
    st.title("Asistencia")
    c1, c2, c3 = st.columns(3)
    with c1:
        start = st.date_input("Desde", value=date.today() - timedelta(days=30))
    with c2:
        end = st.date_input("Hasta", value=date.today())
    with c3:
        page_size = st.selectbox("Filas", [10, 25, 50, 100])

    if 'attendance_page' not in st.session_state:
        st.session_state.attendance_page = 1

    params = {"start_date": str(start), "end_date": str(end),
              "page": st.session_state.attendance_page, "page_size": page_size}
    res = api_get("/attendance", params)
    if res is None:
        return
    body = res.json()
    if not body['data']:
        st.info("Sin registros en el rango.")
        return

    df = pd.DataFrame(body['data'])
    df['hours_worked'] = df['hours_worked'].map(lambda h: f"{h:.2f}" if pd.notnull(h) else "-")
    st.dataframe(
        df[['attendance_date', 'employee_id', 'status', 'check_in', 'check_out', 'break_minutes', 'hours_worked']],
        use_container_width=True,
        hide_index=True,
        column_config={
            "attendance_date": "Fecha",
            "employee_id": "Empleado",
            "status": "Estado",
            "check_in": "Entrada",
            "check_out": "Salida",
            "break_minutes": st.column_config.NumberColumn("Descanso (min)"),
            "hours_worked": "Horas",
        }
    )

    pages = max(1, -(-body['count'] // page_size))
    prev_c, info_c, next_c = st.columns([1, 2, 1])
    with prev_c:
        if st.button("← Anterior", disabled=st.session_state.attendance_page <= 1):
            st.session_state.attendance_page -= 1
            st.rerun()
    with info_c:
        st.caption(f"Pagina {st.session_state.attendance_page} de {pages} ({body['count']} registros)")
    with next_c:
        if st.button("Siguiente →", disabled=st.session_state.attendance_page >= pages):
            st.session_state.attendance_page += 1
            st.rerun()

    download_button("Exportar CSV", "/export/attendance.csv", {"start_date": str(start), "end_date": str(end)})

def render_medical():
    st.title("Certificados medicos")
    res = api_get("/documents/medical")
    if res is None:
        return
    df = pd.DataFrame(res.json())
    if df.empty:
        st.info("No hay empleados cargados.")
        return

    only_pending = st.toggle("Solo pendientes", value=True)
    if only_pending:
        df = df[df['status'] != 'valid'].copy()
    df['uploaded_at'] = pd.to_datetime(df['uploaded_at'], errors='coerce', utc=True).dt.strftime('%d/%m/%Y').fillna('-')
    st.dataframe(
        df[['employee_name', 'uploaded_at', 'label']],
        use_container_width=True,
        hide_index=True,
        column_config={"employee_name": "Empleado", "uploaded_at": "Cargado", "label": "Estado"},
    )


# --- MAIN ---
def main_app():
    with st.sidebar:
        st.markdown("<h2 style='color:#88C0D0; font-weight:800; margin:0;'>Staffdesk.</h2>", unsafe_allow_html=True)
        st.session_state.token = st.text_input("Access token", value=st.session_state.token, type="password")
        page = st.radio(
            "Navegar",
            ["📊 Dashboard", "👥 Empleados", "🕘 Asistencia", "🩺 Certificados medicos"],
            label_visibility="collapsed",
        )

    if not st.session_state.token:
        st.info("Pega un access token de Supabase en la barra lateral para continuar.")
        return

    if page == "📊 Dashboard":
        render_dashboard()
    elif page == "👥 Empleados":
        render_employees()
    elif page == "🕘 Asistencia":
        render_attendance()
    else:
        render_medical()

main_app()
