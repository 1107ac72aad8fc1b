import numpy as np


def is_legal(v) -> bool:
    """Returns whether every entry of v is real and finite"""
    arr = np.asarray(v)
    if np.iscomplexobj(arr) and np.any(arr.imag != 0):
        return False
    return bool(np.all(np.isfinite(arr)))
