"""
Utility package setup.

Enables pandas Copy-on-Write globally so feature subsets taken for every
elimination round are cheap views until something writes to them.
"""

import pandas as pd

# Reduce implicit copies across the pipeline.
pd.options.mode.copy_on_write = True
