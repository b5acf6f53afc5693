"""
rvconflict — Shared Configuration
=================================

Constants used across the validator core, the catalog loaders and the
rvcheck command-line tool. Everything here is a plain module-level value;
override by passing arguments to the functions that read them.
"""

# =============================================================================
#  INSTRUCTION WORD GEOMETRY
# =============================================================================
WORD_BITS = 32
WORD_MASK = (1 << WORD_BITS) - 1      # 0xFFFFFFFF

# Token alphabet, MSB (bit 31) first:
#   '0' / '1'  fixed bit with the required value
#   '-'        don't-care
TOKEN_ALPHABET = "01-"
DONT_CARE = "-"


# =============================================================================
#  VALIDATION / CONCURRENCY
# =============================================================================
# Below this many catalog entries the sequential loop always wins; thread
# start-up costs more than the bitwise work.
PARALLEL_THRESHOLD = 256

# rvcheck uses this when --workers is not given.
DEFAULT_WORKERS = 1


# =============================================================================
#  LOGGING
# =============================================================================
LOG_FORMAT = "%(levelname)s: %(message)s"
LOG_FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# =============================================================================
#  REPORT LABELS (rvcheck text output)
# =============================================================================
# Keyed by ConflictKind.name so this module stays import-free.
KIND_LABELS = {
    "IDENTICAL":                   "identical encoding",
    "PROPOSED_SUBSET_OF_EXISTING": "proposed is inside existing",
    "EXISTING_SUBSET_OF_PROPOSED": "existing is inside proposed",
    "PARTIAL_OVERLAP":             "partial overlap",
}


# =============================================================================
#  EXIT CODES
# =============================================================================
EXIT_OK = 0
EXIT_CONFLICTS = 1
EXIT_INPUT_ERROR = 2
