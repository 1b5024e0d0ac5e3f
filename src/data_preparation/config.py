import os

# CSV location (URL or local path); overridable per run with --source
DATA_SOURCE = os.getenv("GLAUCOMA_MRS_DATA_SOURCE")

# Optional ordered severity labels, e.g. "Healthy control,Early glaucoma,Advanced glaucoma"
_severity_env = os.getenv("GLAUCOMA_MRS_SEVERITY_LEVELS")
SEVERITY_LEVELS = (
    [level.strip() for level in _severity_env.split(",") if level.strip()] if _severity_env else None
)

# ─────────────────────────────────────────────────────────────────────────────
# Column schema
# ─────────────────────────────────────────────────────────────────────────────

ID = "ID"
AGE = "Age"
GENDER = "Gender"
SEVERITY_GROUP = "Severity group"
GABA_TCR = "Gaba/tCr"
GLUTAMATE_TCR = "Glutamate/tCr"
GABA_NAA = "GABA/NAA"
GLUTAMATE_NAA = "Glutamate/NAA"
NEURAL_SPECIFICITY = "Neural specificity"
GRAY_MATTER_VOLUME = "Gray matter volume of visual areas"
RETINA_STRUCTURE_INDEX = "Retina Structure Index"

# Canonical column order after cleaning
COLUMNS = [
    ID,
    AGE,
    GENDER,
    SEVERITY_GROUP,
    GABA_TCR,
    GLUTAMATE_TCR,
    GABA_NAA,
    GLUTAMATE_NAA,
    NEURAL_SPECIFICITY,
    GRAY_MATTER_VOLUME,
    RETINA_STRUCTURE_INDEX,
]

# Alternative source headers accepted for each column (matched case-insensitively)
COLUMN_ALIASES = {
    ID: ["subject", "subject id", "participant", "participant id"],
    AGE: ["age (years)"],
    GENDER: ["sex"],
    SEVERITY_GROUP: ["group", "severity", "glaucoma severity"],
    GABA_TCR: ["gaba/cr", "gaba/tcr ratio"],
    GLUTAMATE_TCR: ["glu/tcr", "glx/tcr"],
    GABA_NAA: ["gaba/naa ratio"],
    GLUTAMATE_NAA: ["glu/naa"],
    NEURAL_SPECIFICITY: ["neural selectivity"],
    GRAY_MATTER_VOLUME: ["gray matter volume", "grey matter volume of visual areas", "gmv"],
    RETINA_STRUCTURE_INDEX: ["retinal structure index", "rsi"],
}

NON_NUMERIC_COLUMNS = [ID, GENDER, SEVERITY_GROUP]
NUMERIC_COLUMNS = [c for c in COLUMNS if c not in NON_NUMERIC_COLUMNS]

N_SEVERITY_LEVELS = 3
