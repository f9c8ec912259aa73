from __future__ import annotations

from .base import BaseSettings


class HostSettings(BaseSettings):
    """Where the host LMS keeps its grade book tables"""

    table_prefix: str = "mdl_"
    # capability which lets a user see hidden grades, and so see unadjusted totals
    view_hidden_capability: str = "moodle/grade:viewhidden"
