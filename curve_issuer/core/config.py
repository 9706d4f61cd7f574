import json
import os
from pathlib import Path
from typing import Any

from curve_issuer.core.constants.chains import CHAIN_ID_TO_CODE, DEFAULT_RPC_URLS
from curve_issuer.core.constants.mintclub_contracts import MINTCLUB_BY_CHAIN

_CONFIG_ENV_KEYS = ("CURVE_ISSUER_CONFIG_PATH", "CURVE_ISSUER_CONFIG")
_DEFAULT_CONFIG_FILENAME = "config.json"
_PRIVATE_KEY_ENV = "PRIVATE_KEY"
_WALLET_PATH_ENV = "CURVE_ISSUER_WALLET_PATH"
_RPC_URL_ENV_PREFIX = "CURVE_ISSUER_RPC_URL_"
_WALLET_KEY_FIELDS = ("privateKey", "private_key", "private_key_hex")


class ConfigError(ValueError):
    pass


def _find_project_root(start: Path) -> Path | None:
    cur = start.resolve()
    for parent in [cur, *cur.parents]:
        if (parent / "pyproject.toml").exists():
            return parent
    return None


def _project_root() -> Path | None:
    return _find_project_root(Path.cwd()) or _find_project_root(Path(__file__).parent)


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path).expanduser()

    env_path = next(
        (os.getenv(k, "").strip() for k in _CONFIG_ENV_KEYS if os.getenv(k)), ""
    )
    if env_path:
        p = Path(env_path).expanduser()
        if p.is_absolute():
            return p
        root = _project_root()
        return (root / p) if root else p

    root = _project_root()
    return (root / _DEFAULT_CONFIG_FILENAME) if root else Path(_DEFAULT_CONFIG_FILENAME)


def load_config_json(
    path: str | Path | None = None, *, require_exists: bool = False
) -> dict[str, Any]:
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        if require_exists:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return {}
    try:
        parsed = json.loads(cfg_path.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file is not valid JSON: {cfg_path}") from exc
    if not isinstance(parsed, dict):
        raise ConfigError(f"Config file must contain a JSON object: {cfg_path}")
    return parsed


CONFIG: dict[str, Any] = {}


def set_config(config: dict[str, Any]) -> None:
    """Replace the global CONFIG dict in-place.

    This allows code that imported CONFIG at module import time to see updates.
    """
    CONFIG.clear()
    CONFIG.update(config)


def load_config(
    path: str | Path | None = None, *, require_exists: bool = False
) -> None:
    """Load config from disk into the global CONFIG dict."""
    set_config(load_config_json(path, require_exists=require_exists))


def _rpc_env_key(chain_id: int) -> str | None:
    code = CHAIN_ID_TO_CODE.get(int(chain_id))
    if not code:
        return None
    return _RPC_URL_ENV_PREFIX + code.upper().replace("-", "_")


def get_rpc_urls() -> dict[str, Any]:
    return CONFIG.get("rpc_urls", {})


def get_rpc_urls_for_chain(chain_id: int) -> list[str]:
    env_key = _rpc_env_key(chain_id)
    if env_key:
        env_value = os.getenv(env_key, "").strip()
        if env_value:
            return [u.strip() for u in env_value.split(",") if u.strip()]

    mapping = get_rpc_urls()
    rpcs = mapping.get(str(chain_id))
    if rpcs is None:
        rpcs = mapping.get(chain_id)  # allow int keys
    if rpcs is None:
        default = DEFAULT_RPC_URLS.get(int(chain_id))
        if default is None:
            raise ConfigError(f"No RPCs configured for chain ID {chain_id}")
        return [default]
    if isinstance(rpcs, str):
        return [rpcs]
    return list(rpcs)


def _read_wallet_file(path: Path) -> str | None:
    if not path.exists():
        raise ConfigError(f"Wallet file not found: {path}")
    try:
        wallet = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Wallet file is not valid JSON: {path}") from exc
    if not isinstance(wallet, dict):
        return None
    for field in _WALLET_KEY_FIELDS:
        value = wallet.get(field)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def get_wallet_path() -> Path | None:
    env_path = os.getenv(_WALLET_PATH_ENV, "").strip()
    if env_path:
        return Path(env_path).expanduser()
    wallet = CONFIG.get("wallet", {})
    path = wallet.get("path") if isinstance(wallet, dict) else None
    if isinstance(path, str) and path.strip():
        return Path(path.strip()).expanduser()
    return None


def get_private_key() -> str:
    """Return the signing key; only its presence is checked here."""
    env_key = os.getenv(_PRIVATE_KEY_ENV, "").strip()
    if env_key:
        return env_key

    wallet = CONFIG.get("wallet", {})
    if isinstance(wallet, dict):
        value = wallet.get("private_key")
        if isinstance(value, str) and value.strip():
            return value.strip()

    wallet_path = get_wallet_path()
    if wallet_path is not None:
        value = _read_wallet_file(wallet_path)
        if value:
            return value
        raise ConfigError(f"Wallet file has no private key: {wallet_path}")

    raise ConfigError(
        f"No signing key configured. Set {_PRIVATE_KEY_ENV}, wallet.private_key in "
        f"config.json, or point {_WALLET_PATH_ENV} at a wallet JSON file."
    )


def get_factory_address(chain_id: int) -> str:
    overrides = CONFIG.get("mintclub", {})
    entry = overrides.get(str(chain_id)) if isinstance(overrides, dict) else None
    if isinstance(entry, dict) and entry.get("bond"):
        return str(entry["bond"]).strip()
    default = MINTCLUB_BY_CHAIN.get(int(chain_id))
    if not default:
        raise ConfigError(f"No Mint Club bond factory known for chain ID {chain_id}")
    return default["bond"]
