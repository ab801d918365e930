# Overview: Per-tenant delivery, pause and payment-method settings with cache fallback.

"""
Store Config Service

Three tenant settings, each an OptimisticSetting over:
- durable store: tenant_settings rows (JSON value per key)
- fallback: the app LocalCache, keyed by tenant id

    delivery_config   {"mostrador": bool, "domicilio": bool, "mesa": bool}   default all True
    pause_status      {"is_paused": bool, "message": str | None}             default not paused
    payment_methods   {"efectivo", "tarjeta", "qr", "transferencia": bool}   default all True

Stored documents are merged over the defaults, so a partial or older
document still yields every key.
"""

from __future__ import annotations

from ..extensions import db
from ..models import TenantSetting
from .local_cache import LocalCache, get_local_cache
from .optimistic_setting import OptimisticSetting

DELIVERY_CONFIG_KEY = "delivery_config"
PAUSE_STATUS_KEY = "pause_status"
PAYMENT_METHODS_KEY = "payment_methods"

DEFAULT_DELIVERY_CONFIG = {"mostrador": True, "domicilio": True, "mesa": True}
DEFAULT_PAUSE_STATUS = {"is_paused": False, "message": None}
DEFAULT_PAYMENT_METHODS = {"efectivo": True, "tarjeta": True, "qr": True, "transferencia": True}

_DEFAULTS = {
    DELIVERY_CONFIG_KEY: DEFAULT_DELIVERY_CONFIG,
    PAUSE_STATUS_KEY: DEFAULT_PAUSE_STATUS,
    PAYMENT_METHODS_KEY: DEFAULT_PAYMENT_METHODS,
}


class SettingsValidationError(ValueError):
    pass


def _read_setting(tenant_id: int, key: str):
    try:
        row = db.session.query(TenantSetting).filter_by(tenant_id=tenant_id, key=key).first()
    except Exception:
        db.session.rollback()
        raise
    return row.value if row else None


def _write_setting(tenant_id: int, key: str, value) -> None:
    try:
        row = db.session.query(TenantSetting).filter_by(tenant_id=tenant_id, key=key).first()
        if row is None:
            row = TenantSetting(tenant_id=tenant_id, key=key)
            db.session.add(row)
        row.value = value
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def setting_for(tenant_id: int, key: str, cache: LocalCache | None = None) -> OptimisticSetting:
    if key not in _DEFAULTS:
        raise SettingsValidationError(f"Unknown setting '{key}'")
    cache = cache or get_local_cache()
    return OptimisticSetting(
        name=f"{key} for tenant {tenant_id}",
        load_remote=lambda: _read_setting(tenant_id, key),
        save_remote=lambda value: _write_setting(tenant_id, key, value),
        cache=cache,
        cache_key=LocalCache.key(tenant_id, key),
        default=dict(_DEFAULTS[key]),
    )


def _merge(defaults: dict, value) -> dict:
    merged = dict(defaults)
    if isinstance(value, dict):
        merged.update({k: v for k, v in value.items() if k in defaults})
    return merged


def _validate_flags(patch, defaults: dict) -> dict:
    if not isinstance(patch, dict):
        raise SettingsValidationError("Settings payload must be an object")
    for key, value in patch.items():
        if key not in defaults:
            raise SettingsValidationError(f"Unknown option '{key}'")
        if not isinstance(value, bool):
            raise SettingsValidationError(f"'{key}' must be true or false")
    return patch


# =============================================================================
# DELIVERY CONFIG
# =============================================================================

def get_delivery_config(tenant_id: int) -> dict:
    return _merge(DEFAULT_DELIVERY_CONFIG, setting_for(tenant_id, DELIVERY_CONFIG_KEY).load())


def update_delivery_config(tenant_id: int, patch: dict) -> dict:
    _validate_flags(patch, DEFAULT_DELIVERY_CONFIG)
    setting = setting_for(tenant_id, DELIVERY_CONFIG_KEY)
    current = _merge(DEFAULT_DELIVERY_CONFIG, setting.load())
    return _merge(DEFAULT_DELIVERY_CONFIG, setting.set({**current, **patch}))


def is_delivery_type_enabled(tenant_id: int, delivery_type: str) -> bool:
    return bool(get_delivery_config(tenant_id).get(delivery_type, False))


# =============================================================================
# PAUSE STATUS
# =============================================================================

def get_pause_status(tenant_id: int) -> dict:
    return _merge(DEFAULT_PAUSE_STATUS, setting_for(tenant_id, PAUSE_STATUS_KEY).load())


def set_pause_status(tenant_id: int, is_paused, message: str | None = None) -> dict:
    if not isinstance(is_paused, bool):
        raise SettingsValidationError("'is_paused' must be true or false")
    if message is not None:
        message = str(message).strip()[:255] or None
    setting = setting_for(tenant_id, PAUSE_STATUS_KEY)
    return _merge(DEFAULT_PAUSE_STATUS, setting.set({"is_paused": is_paused, "message": message}))


def is_paused(tenant_id: int) -> bool:
    return bool(get_pause_status(tenant_id)["is_paused"])


# =============================================================================
# PAYMENT METHODS
# =============================================================================

def get_payment_methods(tenant_id: int) -> dict:
    return _merge(DEFAULT_PAYMENT_METHODS, setting_for(tenant_id, PAYMENT_METHODS_KEY).load())


def update_payment_methods(tenant_id: int, patch: dict) -> dict:
    _validate_flags(patch, DEFAULT_PAYMENT_METHODS)
    setting = setting_for(tenant_id, PAYMENT_METHODS_KEY)
    merged = {**_merge(DEFAULT_PAYMENT_METHODS, setting.load()), **patch}
    if not any(merged.values()):
        raise SettingsValidationError("At least one payment method must stay enabled")
    return _merge(DEFAULT_PAYMENT_METHODS, setting.set(merged))


def is_payment_method_enabled(tenant_id: int, payment_method: str) -> bool:
    return bool(get_payment_methods(tenant_id).get(payment_method, False))
