from __future__ import annotations
import pandas as pd
import streamlit as st
from gradebook.ingest import GradebookLoadError, load_rows_from_bytes, sheet_names
from gradebook.rules import BRANCH_POLICIES, RulesError, load_rules
from gradebook.pipeline import build_report
from gradebook.export import report_to_json, export_to_excel_bytes
from gradebook.layout import COMPONENT_NAMES, component_label

DEFAULTS = load_rules()
st.set_page_config(page_title="Gradebook audit", layout="wide")
st.title("Gradebook audit: totals, averages and rankings")
# =========================

# Helpers
# =========================
def _students_df(report) -> pd.DataFrame:
    rows = []
    for s in report.students:
        row = {"EmplID": s.student_id, "Campus ID": s.cohort_id, "Class No.": s.class_no, "Branch": s.branch_code}
        for name in COMPONENT_NAMES:
            row[component_label(name)] = s.scores.get(name)
        row["Computed total"] = round(s.computed_total, 2)
        row["Discrepancy"] = s.discrepancy or ""
        rows.append(row)
    return pd.DataFrame(rows)

def _top_df(entries) -> pd.DataFrame:
    return pd.DataFrame([{"Rank": e.rank, "EmplID": e.student_id, "Score": e.score} for e in entries])
# =========================

# Upload
# =========================
upload = st.file_uploader("Upload the gradebook (Excel/CSV)", type=["xlsx", "xlsm", "csv"], accept_multiple_files=False)

st.subheader("Settings")
c1, c2, c3, c4 = st.columns(4)
with c1:
    layout_opts = ["auto"] + list(DEFAULTS["layouts"].keys())
    layout = st.selectbox("Column layout", layout_opts, index=layout_opts.index(DEFAULTS.get("layout", "auto")))
with c2:
    policy = st.selectbox(
        "Branch policy",
        list(BRANCH_POLICIES),
        index=list(BRANCH_POLICIES).index(DEFAULTS["branch_policy"]),
        help="positional: keep every row, branch = characters after the year; whitelist: drop rows without a known branch",
    )
with c3:
    year = st.text_input("Admission year", value=DEFAULTS["admission_year"])
with c4:
    top_k = st.number_input("Students per ranking", min_value=1, max_value=50, value=int(DEFAULTS["top_k"]))

if not upload:
    st.warning("Upload a gradebook.")
    st.stop()

data = upload.getvalue()
try:
    sheets = sheet_names(data, upload.name)
except GradebookLoadError as e:
    st.error(str(e))
    st.stop()

sheet = st.selectbox("Sheet", sheets, index=0) if len(sheets) > 1 else sheets[0]

if st.button("Run audit", type="primary"):
    try:
        rules = load_rules(layout=layout, branch_policy=policy, admission_year=year.strip(), top_k=int(top_k))
        rows = load_rows_from_bytes(data, upload.name, None if upload.name.lower().endswith(".csv") else sheet)
        report = build_report(rows, rules)
    except (GradebookLoadError, RulesError) as e:
        st.error(str(e))
        st.stop()
    st.session_state["report"] = report
    st.session_state["source_name"] = upload.name
    st.success("Audit finished.")


report = st.session_state.get("report")
if report is not None:
    info = report.summary
    m1, m2, m3, m4 = st.columns(4)
    with m1:
        st.metric("Students", info.get("students", 0))
    with m2:
        st.metric("Discrepancies", info.get("discrepancies", 0))
    with m3:
        st.metric("Short rows skipped", info.get("short_rows", 0))
    with m4:
        st.metric("Rows without branch", info.get("branch_rejected", 0))
    st.caption(f"Layout: {info.get('layout')} | branch policy: {info.get('branch_policy')}")

    if report.discrepancies:
        with st.expander(f"Total discrepancies ({len(report.discrepancies)})", expanded=True):
            st.dataframe(
                pd.DataFrame([
                    {"Row": s.row_index + 1, "EmplID": s.student_id, "Campus ID": s.cohort_id, "Message": s.discrepancy}
                    for s in report.discrepancies
                ]),
                width="stretch",
            )

    a1, a2 = st.columns(2)
    with a1:
        st.subheader("Component averages")
        st.dataframe(
            pd.DataFrame([{"Component": component_label(k), "Average": round(v, 2)} for k, v in report.averages.items()]),
            width="stretch",
            hide_index=True,
        )
    with a2:
        st.subheader("Branch averages (total)")
        if report.branch_averages:
            st.dataframe(
                pd.DataFrame([{"Branch": k, "Average": round(v, 2)} for k, v in report.branch_averages.items()]),
                width="stretch",
                hide_index=True,
            )
        else:
            st.info("No student has a branch code.")

    st.subheader("Top students")
    comps = list(report.top_students.keys())
    if comps:
        tabs = st.tabs([component_label(c) for c in comps])
        for tab, comp in zip(tabs, comps):
            with tab:
                st.dataframe(_top_df(report.top_students[comp]), width="stretch", hide_index=True)

    st.subheader("Students")
    q = st.text_input("Search by EmplID / Campus ID", value="")
    sdf = _students_df(report)
    if q.strip() and not sdf.empty:
        mask = sdf["EmplID"].astype(str).str.contains(q.strip(), case=False, na=False) | \
               sdf["Campus ID"].astype(str).str.contains(q.strip(), case=False, na=False)
        sdf = sdf[mask]
    st.dataframe(sdf.head(1000), width="stretch")

    d1, d2 = st.columns(2)
    with d1:
        st.download_button(
            "Download report.json",
            data=report_to_json(report).encode("utf-8"),
            file_name=DEFAULTS.get("report_file", "report.json"),
            mime="application/json",
        )
    with d2:
        st.download_button(
            "Download Excel report",
            data=export_to_excel_bytes(report),
            file_name="gradebook_report.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )
