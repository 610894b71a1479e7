"""Shading parameter loading from JSON files."""

from __future__ import annotations

import json
from pathlib import Path

from .errors import ConfigurationError
from .models.config import ShadingParameters


def load_params(params_json_path: str | Path | None = None) -> ShadingParameters:
    """
    Load shading parameters from a JSON file.

    Args:
        params_json_path: Path to the parameters JSON file.
            If None (default), loads the bundled default_params.json.
            Keys missing from the file keep their dataclass defaults.

    Returns:
        ShadingParameters (not yet validated; validation happens when
        the parameters are used).

    Examples:
        >>> params = load_params()
        >>> params.azimuth
        315.0

        >>> params = load_params("mdow.json")  # {"method": "mdow", "exaggeration": 3}
    """
    if params_json_path is None:
        params_path = Path(__file__).parent / "data" / "default_params.json"
    else:
        params_path = Path(params_json_path)

    if not params_path.exists():
        raise FileNotFoundError(f"Parameters file not found: {params_path}")

    with open(params_path) as f:
        params_dict = json.load(f)

    if not isinstance(params_dict, dict):
        raise ConfigurationError(str(params_path), "parameters file must contain a JSON object")

    return ShadingParameters.from_dict(params_dict)
