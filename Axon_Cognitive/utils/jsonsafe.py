import dataclasses
import datetime
import enum
import math
import pathlib
from typing import Any

import numpy as np


def json_sanitize(x: Any):
    """Convert chunks, results and numpy scalars into plain JSON values."""
    if isinstance(x, np.bool_):
        return bool(x)
    if isinstance(x, np.integer):
        return int(x)
    if isinstance(x, np.floating):
        x = float(x)
    if isinstance(x, np.ndarray):
        return [json_sanitize(i) for i in x.tolist()]

    if isinstance(x, float) and not math.isfinite(x):
        return None
    if x is None or isinstance(x, (str, int, float, bool)):
        return x
    if isinstance(x, enum.Enum):
        return json_sanitize(x.value)
    if hasattr(x, "to_dict") and callable(x.to_dict):
        return json_sanitize(x.to_dict())
    if isinstance(x, (list, tuple, set, frozenset)):
        return [json_sanitize(i) for i in x]
    if isinstance(x, dict):
        return {str(k): json_sanitize(v) for k, v in x.items()}
    if isinstance(x, (datetime.date, datetime.datetime)):
        return x.isoformat()
    if isinstance(x, pathlib.Path):
        return str(x)
    if dataclasses.is_dataclass(x) and not isinstance(x, type):
        return {f.name: json_sanitize(getattr(x, f.name)) for f in dataclasses.fields(x)}
    if hasattr(x, "__dict__"):
        return json_sanitize(vars(x))
    return str(x)
