import os
from dataclasses import dataclass
from typing import Dict, Optional

import yaml

from .errors import ConfigError

# --- EXPLORER API ---
BASE_URL = "https://api.etherscan.io/api"
# ?module=account
# &action=tokennfttx
# &contractaddress=0x...
# &startblock=0
# &sort=asc
# &apikey=YourApiKeyToken
REQUEST_TIMEOUT = 10  # seconds

# --- MINT DETECTION ---
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# --- REPORTS ---
MAX_LOOKBACK_DAYS = 180
DEFAULT_LOG_FILE = "/tmp/mintwatch.log"

# --- PUBLISHING ---
MEDIA_INITIAL_WAIT = 30  # seconds before the first status check
MEDIA_RETRY_WAIT = 45    # one extra wait if media is still processing

# Credentials looked up in the config file (or the upper-cased env var)
ES_KEY = "es_key"
TWITTER_KEYS = ("con_key", "con_secret", "acc_key", "acc_secret")


# --- NAMED REPORTS ---
@dataclass(frozen=True)
class ProjectDef:
    command: str
    label: Optional[str]          # None: derive from the token name
    address: Optional[str] = None  # None: --address is required
    max_supply: Optional[int] = None  # set for fixed-supply progress reports


PROJECTS = {
    p.command: p
    for p in [
        ProjectDef(command="erc721_mint_act", label=None),
        ProjectDef(
            command="migration",
            label="Bears Deluxe Migration",
            address="0x4BB33f6E69fd62cf3abbcC6F1F43b94A5D572C2B",
            max_supply=6900,
        ),
        ProjectDef(
            command="bee_mint_act",
            label="Bees Deluxe",
            address="0x1c2CD50f9Efb463bDd2ec9E36772c14A8D1658B3",
        ),
        ProjectDef(
            command="hive_mint_act",
            label="Honey Hives Deluxe",
            address="0x5df89cC648a6bd179bB4Db68C7CBf8533e8d796e",
        ),
    ]
}


def load_config(path: str) -> Dict[str, str]:
    """Reads a flat key-value YAML file (API keys and platform credentials)."""
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"{path} cannot be opened: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"{path} is not valid YAML: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a key-value mapping")

    config = {}
    for key, value in data.items():
        if isinstance(value, (dict, list)):
            raise ConfigError(f"{path}: value for '{key}' must be a scalar")
        config[str(key)] = "" if value is None else str(value)
    return config


def require(config: Dict[str, str], key: str) -> str:
    """Returns a config value, falling back to the upper-cased env var."""
    value = config.get(key) or os.getenv(key.upper())
    if not value:
        raise ConfigError(f"config: {key} is missing")
    return value
