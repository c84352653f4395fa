"""Build information reported by the index endpoint and the CLI.

Learn: The defaults are placeholders. Release pipelines override them via
SERVER_SERVICE_* env vars (see config.py) instead of patching this file.
"""

from pydantic import BaseModel

PROJECT = "vortexq"
BUILD_TIME = "unset"
COMMIT = "unset"
RELEASE = "unset"


class Version(BaseModel):
    project: str = PROJECT
    build_time: str = BUILD_TIME
    commit: str = COMMIT
    release: str = RELEASE

    model_config = {"frozen": True}
