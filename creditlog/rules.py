"""
Assignment of a responsible credit handler to each request.

The decision table lives in ``ClassificationRules`` so thresholds, country
lists and partner names can change through a YAML rule file without touching
``classify``.
"""
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from creditlog.exceptions import ConfigurationError
from creditlog.logger import setup_logger

logger = setup_logger(__name__)


class Handler(str, Enum):
    HANDLER_A = "HandlerA"
    HANDLER_B = "HandlerB"
    HANDLER_C = "HandlerC"
    UNCLASSIFIABLE = "Unclassifiable"


class ClassificationRules(BaseModel):
    """
    Decision table for ``classify``.

    Attributes:
        threshold: Requests up to and including this USD amount go to HANDLER_A.
        direct_countries: Partner countries always routed to HANDLER_B above
            the threshold.
        partner_countries: Countries routed to HANDLER_B only when the partner
            name contains one of the listed substrings.
        labels: Display name written to the output for each handler.
    """

    threshold: float = 500000
    direct_countries: List[str] = Field(
        default_factory=lambda: ["AM", "EG", "GR", "IN", "MT", "RO", "TW", "TR", "VN"]
    )
    partner_countries: Dict[str, List[str]] = Field(
        default_factory=lambda: {
            "SG": ["Mogli"],
            "JP": ["Mitsubishi", "Sumitomo Mitsui"],
            "US": ["Standard Chartered Bank New York"],
        }
    )
    labels: Dict[Handler, str] = Field(
        default_factory=lambda: {
            Handler.HANDLER_A: "lux",
            Handler.HANDLER_B: "trey",
            Handler.HANDLER_C: "bost",
            Handler.UNCLASSIFIABLE: "N/A",
        }
    )

    @field_validator("direct_countries")
    @classmethod
    def upper_country_list(cls, v: List[str]) -> List[str]:
        return [code.upper() for code in v]

    @field_validator("partner_countries")
    @classmethod
    def upper_country_keys(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        return {code.upper(): names for code, names in v.items()}

    def label(self, handler: Handler) -> str:
        return self.labels.get(handler, handler.value)


DEFAULT_RULES = ClassificationRules()


def load_rules(path: Union[str, Path, None] = None) -> ClassificationRules:
    """
    Loads a rule table from a YAML file. Keys left out of the file keep their
    default values; without a path the built-in table is returned.

    Raises:
        ConfigurationError: If the file cannot be read or does not describe a
            valid rule table.
    """
    if path is None:
        return DEFAULT_RULES

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read rule file '{path}': {e}", {"path": str(path)})

    try:
        rules = ClassificationRules.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid rule file '{path}': {e}", {"path": str(path)})

    logger.info(f"Loaded classification rules from {path}")
    return rules


def classify(
    country_code: Optional[str],
    usd_amount: object,
    partner_name: Optional[str],
    rules: Optional[ClassificationRules] = None,
) -> Handler:
    """
    Picks the handler for a request from the partner country, the requested
    amount in USD and the partner's name.
    """
    rules = rules or DEFAULT_RULES

    if isinstance(usd_amount, bool) or not isinstance(usd_amount, (int, float, str)):
        return Handler.UNCLASSIFIABLE
    try:
        amount = float(usd_amount)
    except ValueError:
        return Handler.UNCLASSIFIABLE
    if amount != amount:  # NaN
        return Handler.UNCLASSIFIABLE

    if amount <= rules.threshold:
        return Handler.HANDLER_A

    code = (country_code or "").upper()
    if code in rules.direct_countries:
        return Handler.HANDLER_B

    required_names = rules.partner_countries.get(code)
    if required_names and partner_name:
        if any(name in partner_name for name in required_names):
            return Handler.HANDLER_B

    return Handler.HANDLER_C
