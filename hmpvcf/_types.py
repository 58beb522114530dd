from __future__ import annotations

import numpy as np

OFFSET_DTYPE = np.int64
"""Dtype for byte offsets into a normalized grid. Grids routinely exceed 2 GiB so this must be 64-bit."""

MISSING = "."
"""VCF code for an unknown or missing allele."""

PLUS_STRAND = "+"
