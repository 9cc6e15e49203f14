from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_CONFIG: Dict[str, Any] = {
  "data_dir": ".",
  "output_dir": "csv_output",
  "admin_units_file": "provinces.open-api.vn.json",
  "station_addresses_file": "benxe_addresses.csv",
  "address_audit_file": "benxe_addresses_with_ward_ids.csv",
  "benxe_tickets_file": "tickets_benxe.csv",
  "nhaxe_tickets_file": "tickets_nhaxe.csv",
  "roster_file": None,
  "seed": None,
  "verbose": False,
  "station_fuzzy_cutoff": 90,
  "route_fuzzy_cutoff": 80,
  # column index of each ticket field after splitting the line on "|"
  "ticket_layouts": {
    "benxe": {"route": 0, "price": 2, "bus_name": 3, "departure": 5, "arrival": 7, "date": 11},
    "nhaxe": {"route": 0, "bus_name": 1, "departure": 4, "arrival": 6, "price": 9, "date": 11},
  },
}

CONFIG_PATH_KEYS = (
    "data_dir",
    "output_dir",
)


def load_config(config_path: Optional[Path] = None, **overrides: Any) -> Dict[str, Any]:
    config = json.loads(json.dumps(DEFAULT_CONFIG))
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        user_config = json.loads(config_path.read_text(encoding="utf-8"))
        if not isinstance(user_config, dict):
            raise TypeError(f"{config_path} must contain a JSON object")
        layouts = user_config.pop("ticket_layouts", None) or {}
        config.update(user_config)
        for source, layout in layouts.items():
            config["ticket_layouts"].setdefault(source, {}).update(layout)
    config.update({key: value for key, value in overrides.items() if value is not None})
    for key in CONFIG_PATH_KEYS:
        value = config.get(key)
        if value is not None:
            config[key] = Path(value)
    return config


def data_path(config: Dict[str, Any], key: str) -> Path:
    """Input file named by ``key``, relative to ``data_dir`` unless absolute."""
    path = Path(config[key])
    if path.is_absolute():
        return path
    return Path(config["data_dir"]) / path
