# backend/app/services/registry.py
"""
In-memory dataset registry for the exploration session.

Datasets are never written to disk. Row edits replace the whole row list, so a
reader holding an earlier Dataset keeps a consistent snapshot.
"""

from threading import RLock
from typing import Any, Dict, List, Optional

from loguru import logger

from ..schemas.dataset import AnalysisResult, Dataset
from ..utils.values import coerce_cell

_lock = RLock()


class Registry:
    def __init__(self):
        self.datasets: Dict[str, Dataset] = {}

    # ----------------------------------------------------
    # DATASET METHODS
    # ----------------------------------------------------
    def get_dataset(self, dataset_id: str) -> Optional[Dataset]:
        with _lock:
            return self.datasets.get(dataset_id)

    def put_dataset(self, dataset: Dataset) -> Dataset:
        with _lock:
            self.datasets[dataset.id] = dataset
        logger.info(f"Registered dataset {dataset.id} ({dataset.name}, {len(dataset.data)} rows)")
        return dataset

    def set_analysis(self, dataset_id: str, analysis: AnalysisResult) -> Dataset:
        with _lock:
            ds = self.datasets.get(dataset_id)
            if ds is None:
                raise KeyError(f"Dataset '{dataset_id}' not found")
            updated = ds.model_copy(update={"analysis": analysis})
            self.datasets[dataset_id] = updated
            return updated

    def replace_rows(self, dataset_id: str, rows: List[Dict[str, Any]]) -> Dataset:
        """
        Swap in an edited row list. Cells are re-typed the way ingestion types
        them. row_count keeps the source file total.
        """
        typed = [{str(k): coerce_cell(v) for k, v in row.items()} for row in rows]
        with _lock:
            ds = self.datasets.get(dataset_id)
            if ds is None:
                raise KeyError(f"Dataset '{dataset_id}' not found")
            updated = ds.model_copy(update={"data": typed})
            self.datasets[dataset_id] = updated
        logger.info(f"Replaced rows of dataset {dataset_id}: {len(typed)} rows")
        return updated

    def delete_dataset(self, dataset_id: str) -> bool:
        with _lock:
            return self.datasets.pop(dataset_id, None) is not None

    def list_datasets(self) -> Dict[str, Any]:
        """
        Return metadata for all registered datasets, keyed by dataset_id.
        """
        with _lock:
            return {
                ds_id: {
                    "id": ds.id,
                    "name": ds.name,
                    "rows": len(ds.data),
                    "total_rows": ds.row_count,
                    "columns": ds.columns,
                    "analyzed": ds.analysis is not None,
                }
                for ds_id, ds in self.datasets.items()
            }

    def clear(self):
        with _lock:
            self.datasets.clear()


# =============================================================
# GLOBAL REGISTRY INSTANCE
# =============================================================
registry = Registry()


# =============================================================
# Top-Level Helper Functions (used by routers & tests)
# =============================================================
def put_dataset(dataset: Dataset):
    return registry.put_dataset(dataset)

def get_dataset(dataset_id: str):
    return registry.get_dataset(dataset_id)

def set_analysis(dataset_id: str, analysis: AnalysisResult):
    return registry.set_analysis(dataset_id, analysis)

def replace_rows(dataset_id: str, rows: List[Dict[str, Any]]):
    return registry.replace_rows(dataset_id, rows)

def delete_dataset(dataset_id: str):
    return registry.delete_dataset(dataset_id)

def list_datasets():
    return registry.list_datasets()

def clear():
    return registry.clear()
