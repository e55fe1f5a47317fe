"""Local persistence of the last form state and of named saved records.

Two independent JSON blobs live in the storage directory, one per storage
key. Every read passes through the same normalization used to build inputs,
so blobs written by older versions (missing newer fields, camelCase keys)
are upgraded transparently.
"""

import json
import math
import os
import re
import tempfile
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from config import (
    DEFAULT_BUYER_VALUES,
    DEFAULT_CITY_NAME,
    DEFAULT_SELLER_VALUES,
    get_city_by_name,
)
from logger import get_app_logger
from models import BuyerInput, PitMode, SavedRecord, SellerInput

LAST_STATE_KEY = "resale-tax:last-state"
SAVED_RECORDS_KEY = "resale-tax:saved-records"
SCHEMA_VERSION = 2

_OPTIONAL_PRICE_FIELDS = ("vat_guide_price", "assessed_price")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")

logger = get_app_logger("storage")


@dataclass(frozen=True)
class AppState:
    seller_input: SellerInput
    buyer_input: BuyerInput
    city_name: str = DEFAULT_CITY_NAME
    surcharge_discount: bool = False


def _snake(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def _snake_keys(raw: Mapping[str, Any]) -> Dict[str, Any]:
    return {_snake(str(k)): v for k, v in raw.items()}


def _coerce(name: str, value: Any, default: Any) -> Any:
    if value is None:
        return default
    fallback = default
    if name in _OPTIONAL_PRICE_FIELDS:
        default = 0.0
    if isinstance(default, bool):
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)
    if isinstance(default, PitMode):
        try:
            return PitMode(value)
        except ValueError:
            logger.warning(f"Unknown pit_mode {value!r}, using {default.value}")
            return default
    if isinstance(default, float):
        if isinstance(value, bool):
            return fallback
        try:
            number = float(value)
        except (TypeError, ValueError):
            logger.warning(f"Field {name} has non-numeric value {value!r}, using default")
            return fallback
        if not math.isfinite(number):
            logger.warning(f"Field {name} is not finite ({value!r}), using default")
            return fallback
        return number
    return value


def _fill(raw: Optional[Mapping[str, Any]], defaults: Mapping[str, Any]) -> Dict[str, Any]:
    values = _snake_keys(raw or {})
    return {name: _coerce(name, values.get(name), default) for name, default in defaults.items()}


def normalize_seller_input(raw: Optional[Mapping[str, Any]] = None, **overrides) -> SellerInput:
    """Build a SellerInput from a possibly partial or older mapping.

    Missing fields take their defaults, numbers are coerced, unknown PIT
    modes fall back to the default mode and an absent VAT guide price keeps
    following the sale price.
    """
    values = _fill({**(raw or {}), **overrides}, DEFAULT_SELLER_VALUES)
    return SellerInput(**values)


def normalize_buyer_input(raw: Optional[Mapping[str, Any]] = None, **overrides) -> BuyerInput:
    values = _fill({**(raw or {}), **overrides}, DEFAULT_BUYER_VALUES)
    return BuyerInput(**values)


def normalize_state(raw: Optional[Mapping[str, Any]]) -> AppState:
    """Upgrade any persisted last-state shape to the current AppState."""
    values = _snake_keys(raw or {})
    city = get_city_by_name(values.get("city_name"))
    return AppState(
        seller_input=normalize_seller_input(values.get("seller_input")),
        buyer_input=normalize_buyer_input(values.get("buyer_input")),
        city_name=city.name,
        surcharge_discount=_coerce("surcharge_discount", values.get("surcharge_discount"), False),
    )


def normalize_record(raw: Mapping[str, Any]) -> Optional[SavedRecord]:
    values = _snake_keys(raw)
    name = str(values.get("name") or "").strip()
    if not name:
        return None
    state = normalize_state(values)
    return SavedRecord(
        name=name,
        saved_at=str(values.get("saved_at") or ""),
        city_name=state.city_name,
        surcharge_discount=state.surcharge_discount,
        seller_input=state.seller_input,
        buyer_input=state.buyer_input,
    )


def default_state(city_name: str = DEFAULT_CITY_NAME) -> AppState:
    return normalize_state({"city_name": city_name})


def _inputs_to_dict(seller: SellerInput, buyer: BuyerInput) -> Dict[str, Any]:
    seller_data = asdict(seller)
    seller_data["pit_mode"] = PitMode(seller.pit_mode).value
    return {"seller_input": seller_data, "buyer_input": asdict(buyer)}


def state_to_dict(state: AppState) -> Dict[str, Any]:
    return {
        **_inputs_to_dict(state.seller_input, state.buyer_input),
        "city_name": state.city_name,
        "surcharge_discount": state.surcharge_discount,
    }


def record_to_dict(record: SavedRecord) -> Dict[str, Any]:
    return {
        "name": record.name,
        "saved_at": record.saved_at,
        "city_name": record.city_name,
        "surcharge_discount": record.surcharge_discount,
        **_inputs_to_dict(record.seller_input, record.buyer_input),
    }


class StateStore:
    """JSON-file store keyed by the two fixed storage identifiers."""

    def __init__(self, storage_dir: Path):
        self.storage_dir = Path(storage_dir)

    def path_for(self, key: str) -> Path:
        return self.storage_dir / f"{key.replace(':', '_')}.json"

    # ------------------------- raw blobs -------------------------

    def _read(self, key: str) -> Any:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            blob = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning(f"Ignoring unreadable blob {path}: {exc}")
            return None
        if isinstance(blob, dict) and "version" in blob and "data" in blob:
            return blob["data"]
        logger.info(f"Upgrading unversioned blob {path}")
        return blob

    def _write(self, key: str, data: Any) -> None:
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        payload = json.dumps({"version": SCHEMA_VERSION, "data": data}, ensure_ascii=False, indent=2)
        fd, tmp_name = tempfile.mkstemp(dir=self.storage_dir, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, path)
        except Exception:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        logger.debug(f"Wrote {path}")

    # ------------------------- last state -------------------------

    def load_state(self, default_city: str = DEFAULT_CITY_NAME) -> AppState:
        data = self._read(LAST_STATE_KEY)
        if not isinstance(data, dict):
            return default_state(default_city)
        return normalize_state(data)

    def save_state(self, state: AppState) -> None:
        self._write(LAST_STATE_KEY, state_to_dict(state))

    # ------------------------- saved records -------------------------

    def load_records(self) -> List[SavedRecord]:
        data = self._read(SAVED_RECORDS_KEY)
        if not isinstance(data, list):
            return []
        records = []
        for raw in data:
            if not isinstance(raw, dict):
                continue
            record = normalize_record(raw)
            if record is not None:
                records.append(record)
        return records

    def save_record(self, name: str, state: AppState, saved_at: Optional[str] = None) -> SavedRecord:
        """Save the state under a name, replacing any record with the same name."""
        record = SavedRecord(
            name=name.strip(),
            saved_at=saved_at or datetime.now().isoformat(timespec="seconds"),
            city_name=state.city_name,
            surcharge_discount=state.surcharge_discount,
            seller_input=state.seller_input,
            buyer_input=state.buyer_input,
        )
        if not record.name:
            raise ValueError("record name must not be empty")
        records = [r for r in self.load_records() if r.name != record.name]
        records.append(record)
        self._write(SAVED_RECORDS_KEY, [record_to_dict(r) for r in records])
        logger.info(f"Saved record {record.name!r}")
        return record

    def delete_record(self, name: str) -> bool:
        records = self.load_records()
        kept = [r for r in records if r.name != name]
        if len(kept) == len(records):
            return False
        self._write(SAVED_RECORDS_KEY, [record_to_dict(r) for r in kept])
        logger.info(f"Deleted record {name!r}")
        return True

    def get_record(self, name: str) -> Optional[SavedRecord]:
        for record in self.load_records():
            if record.name == name:
                return record
        return None

    @staticmethod
    def record_to_state(record: SavedRecord) -> AppState:
        return AppState(
            seller_input=record.seller_input,
            buyer_input=record.buyer_input,
            city_name=record.city_name,
            surcharge_discount=record.surcharge_discount,
        )
