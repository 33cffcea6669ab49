import streamlit as st

from utils.api_client import APIClient
from utils.charts import chart_figure

st.set_page_config(page_title="Chat", layout="wide")
st.header("💬 Chat with your data")

api = APIClient()

datasets_map = api.list_datasets().get("datasets", {})
if not datasets_map:
    st.info("Upload a dataset on the Datasets page first.")
    st.stop()

options = {info.get("name", ds_id): ds_id for ds_id, info in datasets_map.items()}
dataset_id = options[st.sidebar.selectbox("Dataset", list(options.keys()))]

history_key = f"chat_{dataset_id}"
if history_key not in st.session_state:
    welcome = api.welcome(dataset_id)
    st.session_state[history_key] = [{"role": "ai", "content": welcome["message"]}]
history = st.session_state[history_key]


def _render(message, idx):
    with st.chat_message("assistant" if message["role"] == "ai" else "user"):
        if message.get("isError"):
            st.error(message["content"])
        else:
            st.markdown(message["content"])
        chart = message.get("chart")
        if chart:
            fig = chart_figure(chart["config"], chart["data"])
            if fig is not None:
                st.plotly_chart(fig, use_container_width=True, key=f"{history_key}_{idx}")


for i, msg in enumerate(history):
    _render(msg, i)

question = st.chat_input("Ask a question about your data")
if question and question.strip():
    history.append({"role": "user", "content": question})
    _render(history[-1], len(history) - 1)
    with st.spinner("Thinking..."):
        try:
            reply = api.ask(dataset_id, question)
        except RuntimeError:
            reply = {"role": "ai", "content": "Sorry, I encountered an error processing your request.", "isError": True}
    history.append(reply)
    _render(reply, len(history) - 1)
