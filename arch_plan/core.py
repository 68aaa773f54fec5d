# core.py
from typing import Optional
from arch_plan.utils.logger import RichAppLogger

# A global variable to hold the initialized logger wrapper
# It starts as None and is set by the CLI callback
app_logger: Optional[RichAppLogger] = None
