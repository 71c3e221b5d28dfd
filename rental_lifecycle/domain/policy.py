"""Typed lifecycle rules derived from configuration"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, Tuple

from rental_lifecycle.domain.exceptions import ConfigError
from rental_lifecycle.domain.models import RentalApplication
from rental_lifecycle.domain.states import AutoProcessingPolicy

DEFAULT_CATEGORY = "default"


@dataclass(frozen=True)
class ApplicationRules:
    """Effective SLA, grace period and auto-processing policy for one application"""

    sla: timedelta
    grace: timedelta
    policy: AutoProcessingPolicy


@dataclass(frozen=True)
class LifecyclePolicy:
    """
    Warning schedule and per-category application rules.

    The schedule is kept in descending order (e.g. 60, 30, 15, 7, 1) so
    crossed thresholds come out from least to most urgent.
    """

    warning_schedule: Tuple[int, ...]
    sla_by_category: Dict[str, timedelta]
    grace_by_category: Dict[str, timedelta]
    policy_by_category: Dict[str, AutoProcessingPolicy]

    def __post_init__(self):
        if not self.warning_schedule:
            raise ConfigError("Warning schedule is empty")
        if any(t <= 0 for t in self.warning_schedule):
            raise ConfigError("Warning thresholds must be positive day counts")
        for name, table in (
            ("SLA", self.sla_by_category),
            ("grace", self.grace_by_category),
            ("auto-processing", self.policy_by_category),
        ):
            if DEFAULT_CATEGORY not in table:
                raise ConfigError(f"No default {name} configured")

    @classmethod
    def from_settings(cls, settings) -> "LifecyclePolicy":
        return cls(
            warning_schedule=tuple(sorted(set(settings.warning_days), reverse=True)),
            sla_by_category={k: timedelta(hours=v) for k, v in settings.application_sla_hours.items()},
            grace_by_category={k: timedelta(hours=v) for k, v in settings.application_grace_hours.items()},
            policy_by_category=dict(settings.auto_processing_policy),
        )

    def rules_for(self, application: RentalApplication) -> ApplicationRules:
        """Resolve per-application overrides, then the category, then the default"""
        category = application.category

        def pick(override, table):
            if override is not None:
                return override
            return table.get(category, table[DEFAULT_CATEGORY])

        return ApplicationRules(
            sla=pick(application.sla_deadline, self.sla_by_category),
            grace=pick(application.grace_duration, self.grace_by_category),
            policy=pick(application.auto_processing_policy, self.policy_by_category),
        )
