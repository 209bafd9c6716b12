"""
tiermint.tests package bootstrap.

Registers Hypothesis profiles for the property tests:

- dev (default locally): 100 examples, random seeds
- ci (default when $CI is set): 300 examples, derandomized
- fast: 25 examples for quick edit/test loops

Select one explicitly with HYPOTHESIS_PROFILE=dev|ci|fast.
"""
from __future__ import annotations

import os

from hypothesis import HealthCheck, settings

settings.register_profile(
    "dev",
    settings(max_examples=100, deadline=None, suppress_health_check=(HealthCheck.too_slow,)),
)
settings.register_profile(
    "ci",
    settings(
        max_examples=300,
        deadline=None,
        derandomize=True,
        suppress_health_check=(HealthCheck.too_slow,),
    ),
)
settings.register_profile("fast", settings(max_examples=25, deadline=None))

_default = "ci" if os.getenv("CI", "").strip().lower() in ("1", "true", "yes") else "dev"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", _default))
