import os

# The TBB threading layer deadlocks at interpreter exit once a parallel kernel
# has run and the process has later forked (ProcessPoolExecutor in tiles tests).
os.environ.setdefault("NUMBA_THREADING_LAYER", "workqueue")
