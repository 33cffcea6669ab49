import streamlit as st
from utils.api_client import APIClient

st.set_page_config(page_title="AutoViz-Insight", layout="wide")
st.title("AutoViz-Insight: AI-assisted CSV analytics")

try:
    h = APIClient().health()
    st.success(f"API Health: {h.get('status', 'unknown')} ({h.get('datasets', 0)} datasets loaded)")
except RuntimeError as e:
    st.error(str(e))
st.caption("Upload a CSV on the Datasets page, then ask questions on the Chat page.")
