import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

DEFAULT_DATASETS = {
    "HIV": "HIV_data.xlsx",
    "TB": "TB.xlsx",
    "Diabetes": "Diabetes.xlsx",
    "Hepatitis-B": "HepatitisB.xlsx",
    "Hepatitis-A": "HepatitisA.xlsx",
    "Hepatitis-C": "HepatitisC.xlsx",
    "Gonorrhea": "Gonorrhea.xlsx",
    "Chlamydia": "Chlamydia.xlsx",
    "syphilis": "syphilis.xlsx",
}


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    load_dotenv()
    if path is None:
        cfg: Dict[str, Any] = {}
        base_dir = Path.cwd()
    else:
        cfg_path = Path(path).resolve()
        if not cfg_path.exists():
            raise FileNotFoundError(f"Config not found: {cfg_path}")
        with cfg_path.open("r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
        base_dir = cfg_path.parent.parent

    cfg.setdefault("project", {})
    cfg.setdefault("source", {})
    cfg.setdefault("geography", {})
    if cfg.get("datasets") is None:
        cfg["datasets"] = dict(DEFAULT_DATASETS)

    cfg["project"].setdefault("output_dir", "out")
    cfg["source"].setdefault("base_url", None)
    cfg["source"].setdefault("data_dir", "data")
    cfg["source"].setdefault("fetch_timeout", 60)
    cfg["source"].setdefault("probe_timeout", 5)
    cfg["source"].setdefault("retries", 3)
    cfg["source"].setdefault("backoff", 0.5)
    cfg["geography"].setdefault("file", "usa_states.geojson")

    if not cfg["datasets"]:
        raise ValueError("Config must include at least one entry under datasets")
    cfg["datasets"] = {str(k): str(v) for k, v in cfg["datasets"].items()}

    env_base_url = os.getenv("CASEMAP_BASE_URL", "").strip()
    if env_base_url:
        cfg["source"]["base_url"] = env_base_url
    env_data_dir = os.getenv("CASEMAP_DATA_DIR", "").strip()
    if env_data_dir:
        cfg["source"]["data_dir"] = env_data_dir

    cfg["paths"] = {
        "base_dir": str(base_dir),
        "data_dir": str((base_dir / cfg["source"]["data_dir"]).resolve()),
        "output_dir": str((base_dir / cfg["project"]["output_dir"]).resolve()),
    }

    return cfg
