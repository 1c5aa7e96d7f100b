"""Niveles de agregación geográfica, del más fino al más grueso.

English: Geographic aggregation levels, finest first.
"""

from __future__ import annotations

from typing import Tuple

GPS = "gps"
CITY = "city"
PROVINCE = "province"
COUNTRY = "country"
REGION = "region"
GLOBAL = "global"

LEVELS: Tuple[str, ...] = (GPS, CITY, PROVINCE, COUNTRY, REGION, GLOBAL)

# Ground truth for conservation checks.
BASE_LEVEL = GPS

GEOGRAPHY_FIELDS: Tuple[str, ...] = ("city", "province", "country", "region")

GLOBAL_SCOPE = "GLOBAL"
