# =============================================================================
# app.py - CleanTrack Housekeeping Dashboard
# Period reports, task entry and location management over the sync layer
# =============================================================================
"""
CleanTrack - Streamlit entry point

Sections:
1. Sidebar: report period, location manager, sync status
2. Stats cards and area distribution for the selected period
3. Task table with add / edit / delete
4. CSV and PDF export, written summary

Data flows through SyncService: every change is applied to the session copy
and the local cache first, then pushed to Supabase in the background.
"""
from __future__ import annotations
import base64
from dataclasses import replace
from datetime import date
from typing import Optional

import plotly.express as px
import streamlit as st

from cleantrack_core.config import load_settings
from cleantrack_core.errors import ErrorContext, rerun_after, safe_execute, show_flash
from cleantrack_core.logging import get_logger, setup_logging
from cleantrack_core.models import DEFAULT_CATEGORY, Area, FilterPeriod, Task, TaskStatus
from cleantrack_core.offline import SyncContext, SyncService, build_context
from cleantrack_core.reporting import (
    ReportSummarizer,
    area_distribution,
    compute_stats,
    export_tasks_csv,
    export_tasks_pdf,
    filter_tasks,
    period_label,
    report_filename,
    report_title,
    shift_reference,
    tasks_to_dataframe,
)

# ============================================================================
# PAGE CONFIGURATION
# ============================================================================
st.set_page_config(
    page_title="CleanTrack - Housekeeping Records",
    page_icon="🧹",
    layout="wide",
)

logger = get_logger(__name__)

STATUS_OPTIONS = [status.value for status in TaskStatus]
PHOTO_SLOTS = [
    ("photo_before", "Before"),
    ("photo_progress", "In progress"),
    ("photo_after", "After"),
]


@st.cache_resource
def get_context() -> SyncContext:
    """One SyncContext (SQLite handle, Supabase client, propagator) per process."""
    setup_logging()
    return build_context(load_settings())


def get_service() -> SyncService:
    if "sync_service" not in st.session_state:
        service = SyncService(get_context())
        result = service.load()
        logger.info(
            f"Session loaded: tasks from {result.task_source.value}, "
            f"areas from {result.area_source.value}"
        )
        st.session_state["sync_service"] = service
    return st.session_state["sync_service"]


def _photo_to_data_url(upload) -> Optional[str]:
    """Encode an uploaded image as a data URL, the form photos are stored in."""
    if upload is None:
        return None
    encoded = base64.b64encode(upload.getvalue()).decode("ascii")
    return f"data:{upload.type or 'image/jpeg'};base64,{encoded}"


def _step_reference(steps: int) -> None:
    st.session_state["ref_date"] = shift_reference(
        st.session_state["period"], st.session_state["ref_date"], steps
    )


service = get_service()
show_flash()

# ============================================================================
# SIDEBAR - PERIOD & LOCATION MANAGER
# ============================================================================
with st.sidebar:
    st.markdown("## 🧹 CleanTrack")

    period = FilterPeriod(
        st.radio(
            "Report period",
            [p.value for p in FilterPeriod],
            format_func=str.capitalize,
            key="period",
        )
    )
    st.session_state.setdefault("ref_date", date.today())
    ref_date = st.date_input("Reference date", key="ref_date")
    col_prev, col_next = st.columns(2)
    col_prev.button("◀ Previous", on_click=_step_reference, args=(-1,), use_container_width=True)
    col_next.button("Next ▶", on_click=_step_reference, args=(1,), use_container_width=True)

    if st.button("🔄 Refresh from server", use_container_width=True):
        with ErrorContext("Refreshing data"):
            result = service.load(refresh=True)
            if result.is_remote:
                st.success("Synced with server")
            else:
                st.warning(f"Server unavailable - showing {result.task_source.value} data")

    st.markdown("---")
    st.markdown("### 📍 Location Manager")

    with st.expander("Add area"):
        with st.form("add_area", clear_on_submit=True):
            new_name = st.text_input("Area name")
            new_category = st.text_input("Category", value=DEFAULT_CATEGORY)
            if st.form_submit_button("Add"):
                with ErrorContext("Adding area") as action:
                    service.add_area(Area(new_name.strip(), new_category.strip()))
                rerun_after(action, "Area added")

    with st.expander("Rename / delete area"):
        if service.area_names:
            target = st.selectbox("Area", service.area_names, key="area_target")
            current = service.get_area(target)
            renamed = st.text_input("New name", value=current.name, key=f"rename_{target}")
            recategorized = st.text_input("New category", value=current.category, key=f"recat_{target}")
            col_a, col_b = st.columns(2)
            if col_a.button("Save", key="area_save"):
                with ErrorContext("Renaming area") as action:
                    cascaded = service.rename_area(target, Area(renamed.strip(), recategorized.strip()))
                rerun_after(action, None if action.failed else f"Area updated ({len(cascaded)} task(s) moved)")
            if col_b.button("Delete", key="area_delete"):
                with ErrorContext("Deleting area") as action:
                    service.delete_area(target)
                rerun_after(action, "Area deleted")
        else:
            st.caption("No areas yet.")

    with st.expander("Categories"):
        if service.categories:
            category = st.selectbox("Category", service.categories, key="category_target")
            new_label = st.text_input("Rename to", value=category, key=f"cat_{category}")
            col_a, col_b = st.columns(2)
            if col_a.button("Rename", key="category_rename"):
                with ErrorContext("Renaming category") as action:
                    changed = service.rename_category(category, new_label.strip())
                rerun_after(action, None if action.failed else f"{len(changed)} area(s) updated")
            if col_b.button("Delete", key="category_delete"):
                with ErrorContext("Deleting category") as action:
                    removed = service.delete_category(category)
                rerun_after(action, None if action.failed else f"{len(removed)} area(s) removed")
        else:
            st.caption("No categories yet.")

    st.markdown("---")
    status = service.get_status_display()
    propagation = status["propagation"]
    st.markdown("### 📡 Sync Status")
    st.caption(
        f"Server: {'configured' if status['remote_configured'] else 'local only'}  \n"
        f"Tasks source: {status['task_source']}  \n"
        f"Pending uploads: {propagation['in_flight']}  \n"
        f"Failed uploads: {propagation['failed']}"
    )

# ============================================================================
# MAIN - STATS
# ============================================================================
st.title("Housekeeping Records")
st.caption(period_label(period, ref_date))

selected = filter_tasks(service.tasks, period, ref_date)
stats = compute_stats(selected)

c1, c2, c3, c4, c5 = st.columns(5)
c1.metric("Total Tasks", stats.total)
c2.metric("Completed", stats.completed)
c3.metric("Pending", stats.pending)
c4.metric("In Progress", stats.in_progress)
c5.metric("Completion Rate", f"{stats.completion_rate:.0f}%")

distribution = area_distribution(selected, service.areas)
if not distribution.empty:
    fig = px.bar(
        distribution,
        x="name",
        y="tasks",
        color="category",
        labels={"name": "Area", "tasks": "Tasks", "category": "Category"},
        title="Tasks per Area",
    )
    fig.update_layout(height=320, margin=dict(l=10, r=10, t=40, b=10))
    st.plotly_chart(fig, use_container_width=True)

# ============================================================================
# MAIN - TASK TABLE
# ============================================================================
st.markdown("### 📋 Tasks")
if selected:
    table = tasks_to_dataframe(selected).drop(columns=["id"])
    st.dataframe(table, use_container_width=True, hide_index=True)
else:
    st.info("No tasks recorded for this period.")

tab_add, tab_edit = st.tabs(["➕ New Task", "✏️ Edit Task"])

with tab_add:
    if not service.area_names:
        st.warning("Add an area in the Location Manager first.")
    else:
        with st.form("new_task", clear_on_submit=True):
            col_l, col_r = st.columns(2)
            task_date = col_l.date_input("Date", value=ref_date)
            area_name = col_l.selectbox("Area", service.area_names)
            job = col_l.text_input("Job description")
            assignee = col_r.text_input("Assignee")
            status_value = col_r.selectbox("Status", STATUS_OPTIONS)
            remarks = col_r.text_area("Remarks")
            uploads = {
                field: st.file_uploader(f"Photo - {label}", type=["png", "jpg", "jpeg"], key=f"new_{field}")
                for field, label in PHOTO_SLOTS
            }
            if st.form_submit_button("Save task", type="primary"):
                with ErrorContext("Creating task") as action:
                    area = service.get_area(area_name)
                    task = Task.new(
                        date=task_date,
                        area=area_name,
                        job_description=job,
                        assignee=assignee,
                        status=TaskStatus(status_value),
                        remarks=remarks,
                        category=area.category if area else DEFAULT_CATEGORY,
                        **{field: _photo_to_data_url(upload) for field, upload in uploads.items()},
                    )
                    service.upsert_task(task)
                rerun_after(action, "Task saved")

with tab_edit:
    if not selected:
        st.caption("Nothing to edit in this period.")
    else:
        labels = {task.id: f"{task.date} | {task.area} | {task.job_description}" for task in selected}
        task_id = st.selectbox("Task", list(labels), format_func=labels.get, key="edit_target")
        task = service.get_task(task_id)
        if task is not None:
            with st.form(f"edit_{task.id}"):
                status_value = st.selectbox(
                    "Status", STATUS_OPTIONS, index=STATUS_OPTIONS.index(task.status.value)
                )
                assignee = st.text_input("Assignee", value=task.assignee)
                remarks = st.text_area("Remarks", value=task.remarks)
                after = st.file_uploader("Replace 'after' photo", type=["png", "jpg", "jpeg"])
                col_a, col_b = st.columns(2)
                save = col_a.form_submit_button("Update", type="primary")
                delete = col_b.form_submit_button("Delete")

            if save:
                with ErrorContext("Updating task") as action:
                    service.upsert_task(
                        replace(
                            task,
                            status=TaskStatus(status_value),
                            assignee=assignee.strip(),
                            remarks=remarks,
                            photo_after=_photo_to_data_url(after) or task.photo_after,
                        )
                    )
                rerun_after(action, "Task updated")
            if delete:
                with ErrorContext("Deleting task") as action:
                    service.delete_task(task.id)
                rerun_after(action, "Task deleted")

            for field, label in PHOTO_SLOTS:
                photo = getattr(task, field)
                if photo:
                    st.image(photo, caption=label, width=200)

# ============================================================================
# MAIN - EXPORT & SUMMARY
# ============================================================================
st.markdown("### 📤 Export")
filename = report_filename("Housekeeping_Report", period, ref_date)
col_csv, col_pdf = st.columns(2)
if not selected:
    st.caption("No data to export.")
else:
    csv_bytes = safe_execute(export_tasks_csv, selected, error_message="Could not build the CSV report")
    pdf_bytes = safe_execute(
        export_tasks_pdf, selected, report_title(period),
        error_message="Could not build the PDF report",
    )
    if csv_bytes is not None:
        col_csv.download_button(
            "Download CSV",
            data=csv_bytes,
            file_name=f"{filename}.csv",
            mime="text/csv",
            use_container_width=True,
        )
    if pdf_bytes is not None:
        col_pdf.download_button(
            "Download PDF",
            data=pdf_bytes,
            file_name=f"{filename}.pdf",
            mime="application/pdf",
            use_container_width=True,
        )

with st.expander("📝 Report Summary"):
    mode = st.radio("Mode", ["rule_based", "llm"], horizontal=True, key="summary_mode")
    if st.button("Generate summary"):
        result = ReportSummarizer(mode=mode).summarize(
            selected, service.areas, period_label(period, ref_date)
        )
        st.markdown(result.text)
