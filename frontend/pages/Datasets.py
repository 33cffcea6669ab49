# frontend/pages/Datasets.py
import pandas as pd
import streamlit as st

from utils.api_client import APIClient
from utils.charts import chart_figure, correlation_heatmap

st.set_page_config(page_title="Datasets", layout="wide")

st.title("Datasets")

api = APIClient()

# -- Upload area
st.subheader("Upload a CSV")
uploaded_file = st.file_uploader("CSV file", type=["csv"])
if uploaded_file is not None and st.button("Upload & analyze"):
    with st.spinner("Analyzing your data..."):
        try:
            resp = api.upload_dataset(uploaded_file)
        except RuntimeError as e:
            st.error(str(e))
        else:
            st.success(f"Loaded {resp['rows']:,} rows from {resp['name']}.")
            if resp.get("truncated"):
                st.warning(f"The file has {resp['total_rows']:,} rows; only the first {resp['rows']:,} were kept.")
            st.session_state["dataset_id"] = resp["dataset_id"]

# -- Dataset selection
st.subheader("Select a dataset")
datasets_map = api.list_datasets().get("datasets", {})

if not datasets_map:
    st.info("No datasets found. Upload a CSV above to get started.")
    st.stop()

options = {f"{ds.get('name', ds_id)} ({ds_id[:8]})": ds_id for ds_id, ds in datasets_map.items()}
ids = list(options.values())
current = st.session_state.get("dataset_id")
choice = st.selectbox(
    "Choose a dataset",
    list(options.keys()),
    index=ids.index(current) if current in ids else 0,
)
dataset_id = options[choice]
st.session_state["dataset_id"] = dataset_id
meta = datasets_map[dataset_id]

try:
    analysis = api.get_analysis(dataset_id)
except RuntimeError:
    analysis = None

# Display metrics cards
profiles = (analysis or {}).get("columns", [])
num_count = sum(1 for c in profiles if c.get("type") == "numeric")
c1, c2, c3, c4 = st.columns(4)
c1.metric("Rows", f"{meta.get('rows', 0):,}")
c2.metric("Rows in file", f"{meta.get('total_rows', 0):,}")
c3.metric("Columns", f"{len(meta.get('columns', [])):,}")
c4.metric("# Numeric", f"{num_count}")

# Summary & insights
if analysis:
    st.subheader("Summary")
    st.write(analysis.get("summary", ""))
    if analysis.get("insights"):
        st.markdown("\n".join(f"- {i}" for i in analysis["insights"]))

# -- Drill-down & search
st.subheader("Explore")
drilldown = st.session_state.setdefault(f"drilldown_{dataset_id}", {})
f1, f2, f3 = st.columns([2, 2, 3])
drill_col = f1.selectbox("Drill down on column", [""] + meta.get("columns", []))
if drill_col:
    drill_val = f2.text_input("equals", key=f"drill_val_{dataset_id}")
    if f2.button("Add filter") and drill_val:
        drilldown[drill_col] = drill_val
search = f3.text_input("Search all columns", key=f"search_{dataset_id}")

if drilldown:
    chips = st.columns(len(drilldown) + 1)
    for i, (col, val) in enumerate(list(drilldown.items())):
        if chips[i].button(f"✕ {col} = {val}", key=f"chip_{col}"):
            drilldown.pop(col)
            st.rerun()
    if chips[-1].button("Clear all"):
        drilldown.clear()
        st.rerun()

view = api.get_view(dataset_id, filters=drilldown, search=search)
view_rows = view.get("data", [])
st.caption(f"{view.get('count', 0):,} of {view.get('total', 0):,} rows match.")

# Recommended charts
charts = (analysis or {}).get("recommendedCharts", [])
if charts:
    st.subheader("Recommended charts")
    chart_cols = st.columns(2)
    for i, cfg in enumerate(charts):
        fig = chart_figure(cfg, view_rows)
        with chart_cols[i % 2]:
            if fig is None:
                st.info(f"{cfg.get('title', 'Chart')}: no data to display.")
            else:
                st.plotly_chart(fig, use_container_width=True)
                if cfg.get("description"):
                    st.caption(cfg["description"])

# Correlation heatmap
st.subheader("Correlation (Pearson)")
corr = api.get_correlations(dataset_id)
if corr.get("sufficient"):
    st.plotly_chart(correlation_heatmap(corr["variables"], corr["matrix"]), use_container_width=True)
else:
    st.info(corr.get("message") or "Not enough numeric data for correlations")

# -- Data preview / editing
st.subheader("Data")
n_preview = st.number_input("Rows per page", min_value=1, max_value=1000, value=25, step=1)
page = st.number_input("Page", min_value=1, value=1, step=1)
preview = api.get_preview(dataset_id, n=n_preview, page=page)
st.caption(f"Page {preview.get('page', 1)} of {preview.get('total_pages', 1)}")

df_preview = pd.DataFrame.from_records(preview.get("data", []), columns=preview.get("columns", []))
st.dataframe(df_preview, use_container_width=True, height=350)

with st.expander("Edit rows", expanded=False):
    full = api.get_view(dataset_id).get("data", [])
    edited = st.data_editor(
        pd.DataFrame.from_records(full, columns=meta.get("columns", [])),
        use_container_width=True,
        num_rows="dynamic",
        key=f"editor_{dataset_id}",
    )
    if st.button("Save changes"):
        records = edited.astype(object).where(pd.notna(edited), None).to_dict(orient="records")
        resp = api.update_rows(dataset_id, records)
        st.success(resp.get("message", "Saved."))
        st.rerun()

if st.button("Delete dataset", type="secondary"):
    api.delete_dataset(dataset_id)
    st.session_state.pop("dataset_id", None)
    st.rerun()
