# frontend/utils/api_client.py

import os
import requests

API_URL = os.getenv("API_URL", "http://localhost:8000")


# -------------------------------
# Simple helper for handling errors
# -------------------------------
def _safe_request(method, url, **kwargs):
    try:
        r = requests.request(method, url, **kwargs)
        r.raise_for_status()
        return r.json()
    except requests.HTTPError as e:
        # surface the API's own message (e.g. "Please upload a valid CSV file.")
        try:
            detail = e.response.json().get("detail")
        except ValueError:
            detail = None
        raise RuntimeError(detail or f"API request failed: {e}")
    except Exception as e:
        raise RuntimeError(f"API request failed: {e}")


# -------------------------------
# APIClient class for Streamlit
# -------------------------------
class APIClient:
    def __init__(self, base_url: str | None = None, timeout: int = 90):
        self.base_url = (base_url or API_URL).rstrip("/")
        self.timeout = timeout

    # ---------- Health ----------
    def health(self):
        return _safe_request("GET", f"{self.base_url}/health", timeout=self.timeout)

    # ---------- Datasets ----------
    def upload_dataset(self, file):
        """POST /ingest/upload (parses and analyzes; can take a few seconds)"""
        files = {"file": (file.name, file.getvalue(), file.type or "text/csv")}
        return _safe_request("POST", f"{self.base_url}/ingest/upload", files=files, timeout=self.timeout)

    def list_datasets(self):
        return _safe_request("GET", f"{self.base_url}/ingest/list", timeout=self.timeout)

    def get_preview(self, dataset_id: str, n: int = 10, page: int = 1):
        return _safe_request(
            "GET",
            f"{self.base_url}/ingest/preview/{dataset_id}",
            params={"n": n, "page": page},
            timeout=self.timeout,
        )

    def get_analysis(self, dataset_id: str):
        return _safe_request("GET", f"{self.base_url}/ingest/{dataset_id}/analysis", timeout=self.timeout)

    def update_rows(self, dataset_id: str, rows: list):
        return _safe_request(
            "PUT",
            f"{self.base_url}/ingest/{dataset_id}/rows",
            json={"data": rows},
            timeout=self.timeout,
        )

    def delete_dataset(self, dataset_id: str):
        return _safe_request("DELETE", f"{self.base_url}/ingest/{dataset_id}", timeout=self.timeout)

    # ---------- Explore ----------
    def run_query(self, dataset_id: str, intent: dict):
        """POST /explore/{id}/query with a camelCase QueryIntent"""
        return _safe_request("POST", f"{self.base_url}/explore/{dataset_id}/query", json=intent, timeout=self.timeout)

    def get_correlations(self, dataset_id: str, columns: list | None = None):
        payload = {"columns": columns} if columns else None
        return _safe_request(
            "POST",
            f"{self.base_url}/explore/{dataset_id}/correlations",
            json=payload,
            timeout=self.timeout,
        )

    def get_view(self, dataset_id: str, filters: dict | None = None, search: str = ""):
        return _safe_request(
            "POST",
            f"{self.base_url}/explore/{dataset_id}/view",
            json={"filters": filters or {}, "search": search},
            timeout=self.timeout,
        )

    # ---------- Assistant ----------
    def welcome(self, dataset_id: str):
        return _safe_request("GET", f"{self.base_url}/nlq/{dataset_id}/welcome", timeout=self.timeout)

    def ask(self, dataset_id: str, question: str):
        return _safe_request(
            "POST",
            f"{self.base_url}/nlq/{dataset_id}/ask",
            json={"question": question},
            timeout=self.timeout,
        )
