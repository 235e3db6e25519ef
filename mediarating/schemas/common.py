"""
Shared schema types.
"""
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator

from mediarating.core.datetime_utils import ensure_timezone_aware

# SQLite hands back naive datetimes; every stored value is UTC.
UtcDatetime = Annotated[datetime, AfterValidator(ensure_timezone_aware)]
