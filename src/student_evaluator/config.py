"""Configuration management for Student Evaluator."""

import os
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Optional, Any
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Fixed presenter weighting: peer evaluations count 80%, instructor evaluations 20%.
PEER_WEIGHT = 0.80
INSTRUCTOR_WEIGHT = 0.20

# Fixed per-kind weights of the ledger-wide overall grade.
OVERALL_GRADE_WEIGHTS = {"quiz": 50.0, "assignment": 30.0, "evaluation": 20.0}


class RoleSource(str, Enum):
    """Which role an evaluation is partitioned on."""

    EVALUATOR = "evaluator"  # Live role of the evaluating user
    SUBMITTED = "submitted"  # Role stamped on the evaluation when it was submitted


@dataclass
class ScoringConfig:
    """Configuration for score aggregation."""

    peer_weight: float = PEER_WEIGHT
    instructor_weight: float = INSTRUCTOR_WEIGHT
    decimals: int = 2
    role_source: RoleSource = RoleSource.EVALUATOR
    overall_weights: dict[str, float] = field(default_factory=lambda: dict(OVERALL_GRADE_WEIGHTS))


@dataclass
class StoreConfig:
    """Configuration for the gradebook store."""

    data_path: Optional[Path] = None


@dataclass
class Config:
    """Main configuration container."""

    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables."""
        load_dotenv()
        data_path = os.getenv("STUDENT_EVALUATOR_DATA")
        return cls(
            store=StoreConfig(data_path=Path(data_path) if data_path else None),
            log_level=os.getenv("STUDENT_EVALUATOR_LOG_LEVEL", "INFO"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for serialization."""
        data = asdict(self)
        data["scoring"]["role_source"] = self.scoring.role_source.value
        if self.store.data_path is not None:
            data["store"]["data_path"] = str(self.store.data_path)
        else:
            del data["store"]["data_path"]
        return data

    def to_yaml(self, path: Path) -> None:
        """Save configuration to YAML file."""
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load configuration from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        scoring_data = dict(data.get("scoring", {}))
        store_data = dict(data.get("store", {}))

        # Handle role_source enum
        if "role_source" in scoring_data:
            scoring_data["role_source"] = RoleSource(scoring_data["role_source"])

        # Handle data_path Path
        if store_data.get("data_path"):
            store_data["data_path"] = Path(store_data["data_path"])

        return cls(
            scoring=ScoringConfig(**scoring_data),
            store=StoreConfig(**store_data),
            log_level=data.get("log_level", "INFO"),
        )
