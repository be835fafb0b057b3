"""Materialization engine configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from contentforge.content.materializer import DuplicatePolicy


@dataclass
class EngineConfig:
    """Options applied to every materialization pass of the application."""

    max_reference_depth: int | None = None
    duplicates: DuplicatePolicy = DuplicatePolicy.LAST_WINS

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Create config from environment variables.

        CONTENTFORGE_MAX_REFERENCE_DEPTH: non-negative integer, unset or empty
            for unbounded expansion
        CONTENTFORGE_DUPLICATE_POLICY: "last" (default) or "reject"
        """
        depth = os.environ.get("CONTENTFORGE_MAX_REFERENCE_DEPTH", "").strip()
        max_depth = None
        if depth:
            max_depth = int(depth)
            if max_depth < 0:
                raise ValueError(
                    f"CONTENTFORGE_MAX_REFERENCE_DEPTH must be >= 0, got {max_depth}"
                )

        policy = os.environ.get("CONTENTFORGE_DUPLICATE_POLICY", "last").strip().lower()
        return cls(max_reference_depth=max_depth, duplicates=DuplicatePolicy(policy))

    def options(self) -> dict[str, Any]:
        """Keyword arguments for FieldMaterializer / materialize()."""
        return {
            "max_reference_depth": self.max_reference_depth,
            "duplicates": self.duplicates,
        }
