"""Accounting label settings and their resolution for invoice items."""
import json
from pathlib import Path

import pytest

from billing_export.core.errors import ExportConfigError
from billing_export.core.models import ClientService, LineItem, ServicePlan
from billing_export.processing.labels import (
    LabelConfig,
    LabelMap,
    build_label_map,
    load_label_config,
    save_label_config,
)

PLANS = [
    ServicePlan(id=5, name="Fiber 100", plan_type="Internet"),
    ServicePlan(id=6, name="IPTV", plan_type="General"),
    ServicePlan(id=7, name="Fiber 500", plan_type="Internet"),
]
SERVICES = [
    ClientService(id=500, service_plan_id=5),
    ClientService(id=501, service_plan_id=6),
    ClientService(id=502, service_plan_id=7),
    ClientService(id=503, service_plan_id=None),
]


def test_surcharge_label_beats_every_other_label():
    config = LabelConfig(internet_label="Интернет", plans={"5": "Fiber"}, surcharges={"700": "Static IP"})
    label_map = build_label_map(config, PLANS, SERVICES)

    item = LineItem(label="Own label", service_id=500, service_surcharge_id=700)

    assert label_map.resolve(item) == "Static IP"


def test_plan_label_beats_internet_default():
    config = LabelConfig(internet_label="Интернет", plans={"5": "Fiber"})
    label_map = build_label_map(config, PLANS, SERVICES)

    assert label_map.resolve(LineItem(service_id=500)) == "Fiber"
    assert label_map.resolve(LineItem(service_id=502)) == "Интернет"


def test_no_override_returns_none():
    config = LabelConfig(internet_label="Интернет")
    label_map = build_label_map(config, PLANS, SERVICES)

    assert label_map.resolve(LineItem(service_id=501)) is None
    assert label_map.resolve(LineItem(service_id=503)) is None
    assert label_map.resolve(LineItem(label="Product")) is None
    assert label_map.resolve(LineItem(service_surcharge_id=999)) is None


def test_instances_inherit_plan_labels():
    config = LabelConfig(plans={"6": "Телевизия"})
    label_map = build_label_map(config, PLANS, SERVICES)

    assert label_map.service_labels == {501: "Телевизия"}
    assert label_map.internet_services == {500, 502}


def test_internet_default_applies_without_prebuilt_table():
    label_map = LabelMap(internet_label="Интернет", internet_services={42})

    assert label_map.resolve(LineItem(service_id=42)) == "Интернет"


def test_save_then_load_round_trip(tmp_path: Path):
    path = tmp_path / "mapping.json"
    config = LabelConfig(internet_label="Интернет", plans={"5": "Fiber", "6": "ТВ"}, surcharges={"700": "IP"})

    save_label_config(config, path)
    first_bytes = path.read_bytes()
    loaded = load_label_config(path)
    save_label_config(loaded, path)

    assert loaded == config
    assert path.read_bytes() == first_bytes
    assert json.loads(first_bytes.decode("utf-8")) == {
        "internetLabel": "Интернет",
        "plans": {"5": "Fiber", "6": "ТВ"},
        "surcharges": {"700": "IP"},
    }


def test_missing_file_means_empty_config(tmp_path: Path):
    assert load_label_config(tmp_path / "absent.json") == LabelConfig()


def test_invalid_json_is_a_configuration_error(tmp_path: Path):
    path = tmp_path / "mapping.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ExportConfigError):
        load_label_config(path)


def test_update_sets_and_clears_labels():
    config = LabelConfig(plans={"5": "Fiber"}, surcharges={"700": "IP"})

    config.update(internet_label=" Интернет ", plans={"5": " ", "6": "TV"}, surcharges={"701": "Setup"})

    assert config.internet_label == "Интернет"
    assert config.plans == {"6": "TV"}
    assert config.surcharges == {"700": "IP", "701": "Setup"}
