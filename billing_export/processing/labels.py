"""Accounting label configuration and resolution for invoice items."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Set

from billing_export.core.errors import ExportConfigError
from billing_export.core.models import ClientService, LineItem, ServicePlan

logger = logging.getLogger(__name__)

DEFAULT_LABEL_FILE = Path("data/label_mapping.json")


@dataclass
class LabelConfig:
    """Persisted label settings: Internet default plus per-plan and per-surcharge labels."""

    internet_label: str = ""
    plans: Dict[str, str] = field(default_factory=dict)
    surcharges: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {
            "internetLabel": self.internet_label,
            "plans": dict(self.plans),
            "surcharges": dict(self.surcharges),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "LabelConfig":
        plans = data.get("plans") or {}
        surcharges = data.get("surcharges") or {}
        if not isinstance(plans, Mapping) or not isinstance(surcharges, Mapping):
            raise ExportConfigError("Label mapping 'plans' and 'surcharges' must be objects")
        return cls(
            internet_label=str(data.get("internetLabel") or ""),
            plans={str(key): str(value) for key, value in plans.items()},
            surcharges={str(key): str(value) for key, value in surcharges.items()},
        )

    def update(
        self,
        internet_label: Optional[str] = None,
        plans: Optional[Mapping[str, str]] = None,
        surcharges: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Apply settings changes; a blank label removes the entry."""

        if internet_label is not None:
            self.internet_label = internet_label.strip()
        for target, changes in ((self.plans, plans), (self.surcharges, surcharges)):
            for key, value in (changes or {}).items():
                label = value.strip()
                if label:
                    target[str(key)] = label
                else:
                    target.pop(str(key), None)


def load_label_config(path: Path = DEFAULT_LABEL_FILE) -> LabelConfig:
    """Read the label mapping file; a missing file means no overrides."""

    if not path.exists():
        logger.info("No label mapping at %s, using item labels", path)
        return LabelConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise ExportConfigError(f"Label mapping {path} is not valid JSON") from exc
    if not isinstance(data, dict):
        raise ExportConfigError(f"Label mapping {path} must contain a JSON object")
    return LabelConfig.from_dict(data)


def save_label_config(config: LabelConfig, path: Path = DEFAULT_LABEL_FILE) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(config.to_dict(), ensure_ascii=False, indent=2)
    path.write_text(payload + "\n", encoding="utf-8")
    logger.info("Saved label mapping to %s", path)
    return path


@dataclass
class LabelMap:
    """Resolved lookup tables used while building sales rows."""

    service_labels: Dict[int, str] = field(default_factory=dict)
    surcharge_labels: Dict[int, str] = field(default_factory=dict)
    internet_label: str = ""
    internet_services: Set[int] = field(default_factory=set)

    def resolve(self, item: LineItem) -> Optional[str]:
        """Return the accounting label override for an item, if any.

        Precedence: surcharge label, then the label of the client service the
        item belongs to, then the Internet default for Internet plans.
        """

        if item.service_surcharge_id is not None and item.service_surcharge_id in self.surcharge_labels:
            return self.surcharge_labels[item.service_surcharge_id]
        if item.service_id is None:
            return None
        if item.service_id in self.service_labels:
            return self.service_labels[item.service_id]
        if self.internet_label and item.service_id in self.internet_services:
            return self.internet_label
        return None


def _int_keys(labels: Mapping[str, str]) -> Dict[int, str]:
    resolved: Dict[int, str] = {}
    for key, label in labels.items():
        try:
            resolved[int(key)] = label
        except ValueError:
            logger.warning("Ignoring label for non-numeric id %r", key)
    return resolved


def build_label_map(
    config: LabelConfig,
    plans: Iterable[ServicePlan],
    client_services: Iterable[ClientService],
) -> LabelMap:
    """Expand plan-level labels onto every client service of that plan."""

    plan_labels: Dict[int, str] = {}
    internet_plans: Set[int] = set()
    for plan in plans:
        if plan.is_internet:
            internet_plans.add(plan.id)
        label = config.plans.get(str(plan.id))
        if label:
            plan_labels[plan.id] = label
        elif plan.is_internet and config.internet_label:
            plan_labels[plan.id] = config.internet_label

    label_map = LabelMap(
        surcharge_labels=_int_keys(config.surcharges),
        internet_label=config.internet_label,
    )
    for service in client_services:
        if service.service_plan_id is None:
            continue
        if service.service_plan_id in internet_plans:
            label_map.internet_services.add(service.id)
        if service.service_plan_id in plan_labels:
            label_map.service_labels[service.id] = plan_labels[service.service_plan_id]

    logger.info(
        "Label map: %d service labels, %d surcharge labels",
        len(label_map.service_labels),
        len(label_map.surcharge_labels),
    )
    return label_map
