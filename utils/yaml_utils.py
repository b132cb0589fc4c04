import os
from typing import Dict, Any

import yaml


def load_configuration(config_path: str) -> Dict[str, Any]:
    path = os.path.expanduser(config_path)
    if not os.path.exists(path):
        return {}
    with open(path, 'r') as f:
        return yaml.safe_load(f) or {}
