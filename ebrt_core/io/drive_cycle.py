from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import numpy as np
import pandas as pd


REQUIRED_COLUMNS = {"Time_s", "Speed_mps"}
OPTIONAL_COLUMNS = ("Altitude_m",)


def load_drive_cycle(csv_path: str | Path) -> Dict[str, Any]:
    """
    Read a custom drive cycle CSV (Time_s, Speed_mps and optionally
    Altitude_m columns) into the Driving_Cycle series fields.
    """
    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(path)

    df = pd.read_csv(path)
    df.columns = [str(c).strip() for c in df.columns]
    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise ValueError(f"Missing columns in drive cycle CSV: {sorted(missing)}")

    columns = sorted(REQUIRED_COLUMNS) + [c for c in OPTIONAL_COLUMNS if c in df.columns]
    numeric = df[columns].apply(pd.to_numeric, errors="coerce")
    if numeric.isna().any().any():
        bad = [c for c in columns if numeric[c].isna().any()]
        raise ValueError(f"Drive cycle CSV has empty or non-numeric cells in {bad}")

    time_s = numeric["Time_s"].to_numpy(dtype=float)
    if len(time_s) and np.any(np.diff(time_s) <= 0):
        raise ValueError("Time_s must be strictly increasing")

    return {column: numeric[column].astype(float).tolist() for column in columns}
