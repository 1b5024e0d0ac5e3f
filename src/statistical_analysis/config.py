"""Analysis settings and the partial-correlation analyses run by the pipeline."""

import os

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.data_preparation.config import (
    AGE,
    GABA_TCR,
    GLUTAMATE_TCR,
    GRAY_MATTER_VOLUME,
    NEURAL_SPECIFICITY,
    RETINA_STRUCTURE_INDEX,
)

# Significance level used when interpreting results
ALPHA = float(os.getenv("GLAUCOMA_MRS_ALPHA", "0.05"))

# Measures compared across severity groups
DEFAULT_GROUP_MEASURES = [GABA_TCR, GLUTAMATE_TCR]


class ResidualAnalysis(BaseModel):
    """Association between two measures after regressing out a set of covariates."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    measure_a: str
    measure_b: str
    covariates: list[str] = Field(default_factory=list)
    label: str | None = None

    @model_validator(mode="after")
    def _check_variables(self):
        if self.measure_a == self.measure_b:
            raise ValueError("measure_a and measure_b must differ")
        overlap = {self.measure_a, self.measure_b} & set(self.covariates)
        if overlap:
            raise ValueError(f"measures cannot also be covariates: {sorted(overlap)}")
        if len(set(self.covariates)) != len(self.covariates):
            raise ValueError("covariates must be unique")
        return self

    @property
    def name(self) -> str:
        return self.label or f"{self.measure_a} vs {self.measure_b}"


DEFAULT_RESIDUAL_ANALYSES = [
    ResidualAnalysis(
        measure_a=GABA_TCR,
        measure_b=RETINA_STRUCTURE_INDEX,
        covariates=[AGE],
        label="GABA and retinal structure",
    ),
    ResidualAnalysis(
        measure_a=GLUTAMATE_TCR,
        measure_b=RETINA_STRUCTURE_INDEX,
        covariates=[AGE],
        label="Glutamate and retinal structure",
    ),
    ResidualAnalysis(
        measure_a=GABA_TCR,
        measure_b=NEURAL_SPECIFICITY,
        covariates=[GLUTAMATE_TCR, RETINA_STRUCTURE_INDEX, AGE, GRAY_MATTER_VOLUME],
        label="GABA and neural specificity",
    ),
    ResidualAnalysis(
        measure_a=GLUTAMATE_TCR,
        measure_b=NEURAL_SPECIFICITY,
        covariates=[GABA_TCR, RETINA_STRUCTURE_INDEX, AGE, GRAY_MATTER_VOLUME],
        label="Glutamate and neural specificity",
    ),
]
